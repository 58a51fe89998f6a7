"""Test fixtures for the URL shortener application."""

import os

# Settings are read at import time, so the environment must be in place first
os.environ["ENVIRONMENT"] = "testing"
os.environ["DEBUG"] = "false"
os.environ["OTEL_ENABLED"] = "false"
os.environ["DB_INIT_SCHEMA"] = "false"
os.environ.setdefault("LOG_DIR", os.path.join(os.path.dirname(__file__), ".logs"))

from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.db.session import get_db
from app.main import app as main_app
# Import models to ensure they're registered with SQLModel metadata
from app.models.url import ShortURL  # noqa: F401
from app.repositories.url_repository import URLRepository
from tests.utils import RecordingEventSink


# Test database URL - using SQLite in-memory
TEST_SQLALCHEMY_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh in-memory SQLite database for each test.

    The registry commits its inserts, so tests cannot rely on an outer
    rollback for isolation.
    """
    engine = create_async_engine(
        TEST_SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def url_repository():
    """Return URL repository instance."""
    return URLRepository()


@pytest.fixture
def events():
    """Return an event sink that keeps everything it receives."""
    return RecordingEventSink()


@pytest.fixture
def override_get_db(test_db):
    """Override the get_db dependency for testing."""
    async def _override_get_db():
        yield test_db

    return _override_get_db


@pytest.fixture
def test_app(override_get_db) -> FastAPI:
    """Create FastAPI test app with overridden dependencies."""
    app = main_app
    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Return an HTTP client bound to the app, without following redirects."""
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client
