"""Concurrent shortening, against an interleaving in-memory registry and against SQLite on disk."""

import asyncio
import itertools
from datetime import datetime, timezone
from typing import Dict, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.models.url import ShortURL
from app.repositories.base import DuplicateEntityError
from app.services.shortener import ShortenedURLService
from tests.utils import RecordingEventSink


class InterleavingRegistry:
    """
    In-memory registry that yields to the event loop around every statement.

    Uniqueness is checked at insert time, as the database constraints would,
    so two requests reading the same latest id race for the same code.
    """

    def __init__(self):
        self.rows: Dict[str, ShortURL] = {}
        self._ids = itertools.count(1)

    async def _yield(self):
        await asyncio.sleep(0)

    async def find_by_long_url(self, db, original_url: str) -> Optional[ShortURL]:
        await self._yield()
        for row in self.rows.values():
            if row.original_url == original_url:
                return row
        return None

    async def find_by_short_code(self, db, short_code: str) -> Optional[ShortURL]:
        await self._yield()
        return self.rows.get(short_code)

    async def highest_id(self, db) -> Optional[int]:
        await self._yield()
        if not self.rows:
            return None
        return max(row.id for row in self.rows.values())

    async def insert(self, db, original_url: str, short_code: str) -> ShortURL:
        await self._yield()
        if short_code in self.rows:
            raise DuplicateEntityError(ShortURL, "short_code", short_code)
        if any(row.original_url == original_url for row in self.rows.values()):
            raise DuplicateEntityError(ShortURL, "original_url", original_url)
        row = ShortURL(
            id=next(self._ids),
            original_url=original_url,
            short_code=short_code,
            created_at=datetime.now(timezone.utc),
        )
        self.rows[short_code] = row
        return row


@pytest.fixture
def registry():
    return InterleavingRegistry()


@pytest.mark.service
class TestConcurrentShorten:

    @pytest.mark.asyncio
    async def test_distinct_urls_get_distinct_codes(self, registry):
        events = RecordingEventSink()
        service = ShortenedURLService(registry, events=events, max_attempts=3)

        first, second = await asyncio.gather(
            service.shorten(None, "https://example.com/one"),
            service.shorten(None, "https://example.com/two"),
        )

        assert first != second
        assert {first, second} == {"a", "b"}
        assert len(registry.rows) == 2
        assert registry.rows[first].original_url == "https://example.com/one"
        assert registry.rows[second].original_url == "https://example.com/two"
        assert "url.insert_conflict" in events.names()

    @pytest.mark.asyncio
    async def test_same_url_gets_one_mapping(self, registry):
        service = ShortenedURLService(registry, max_attempts=3)

        codes = await asyncio.gather(
            service.shorten(None, "https://example.com/same"),
            service.shorten(None, "https://example.com/same"),
        )

        assert codes[0] == codes[1]
        assert len(registry.rows) == 1

    @pytest.mark.asyncio
    async def test_many_concurrent_requests(self, registry):
        service = ShortenedURLService(registry, max_attempts=3)
        urls = [f"https://example.com/{n}" for n in range(3)]

        codes = await asyncio.gather(*(service.shorten(None, url) for url in urls))

        assert len(set(codes)) == len(urls)
        for code, url in zip(codes, urls):
            assert await service.resolve(None, code) == url


@pytest_asyncio.fixture
async def file_engine(tmp_path):
    """SQLite database on disk, so each session gets its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'registry.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.mark.service
class TestConcurrentShortenWithDatabase:
    """Concurrent requests racing on the real unique constraints."""

    @staticmethod
    async def _shorten(factory, service, url):
        async with factory() as db:
            return await service.shorten(db, url)

    @pytest.mark.asyncio
    async def test_distinct_urls_get_distinct_codes(self, file_engine, url_repository):
        factory = async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False)
        service = ShortenedURLService(url_repository, max_attempts=3)

        first, second = await asyncio.gather(
            self._shorten(factory, service, "https://example.com/one"),
            self._shorten(factory, service, "https://example.com/two"),
        )

        assert first != second
        async with factory() as db:
            assert await url_repository.count(db) == 2
            assert await service.resolve(db, first) == "https://example.com/one"
            assert await service.resolve(db, second) == "https://example.com/two"

    @pytest.mark.asyncio
    async def test_same_url_gets_one_mapping(self, file_engine, url_repository):
        factory = async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False)
        service = ShortenedURLService(url_repository, max_attempts=3)

        codes = await asyncio.gather(
            self._shorten(factory, service, "https://example.com/same"),
            self._shorten(factory, service, "https://example.com/same"),
        )

        assert codes[0] == codes[1]
        async with factory() as db:
            assert await url_repository.count(db) == 1
