"""Tests for the HTTP routes."""

import pytest
from unittest.mock import AsyncMock, patch

from app.api.dependencies import get_shortener_service
from app.core.config import settings
from app.main import DOCS_URL, REDOC_URL
from app.services.codegen import is_valid_short_code
from app.services.exceptions import ShortCodeExhaustedError, URLStorageError
from tests.utils import create_test_url, random_url

GENERATE_PATH = f"{settings.API_PREFIX}/generate"


def failing_service(error):
    service = AsyncMock()
    service.shorten.side_effect = error
    service.resolve.side_effect = error
    return lambda: service


@pytest.mark.api
class TestGenerateRoute:
    """Test suite for POST /generate."""

    @pytest.mark.asyncio
    async def test_generate(self, client):
        response = await client.post(GENERATE_PATH, json={"url": "https://example.com/a"})

        assert response.status_code == 200
        data = response.json()
        assert data["short_code"] == "a"
        assert data["short_url"] == f"{settings.BASE_URL}/a"

    @pytest.mark.asyncio
    async def test_generate_is_idempotent(self, client):
        first = await client.post(GENERATE_PATH, json={"url": "https://example.com/a"})
        second = await client.post(GENERATE_PATH, json={"url": "https://example.com/b"})
        again = await client.post(GENERATE_PATH, json={"url": "https://example.com/a"})

        assert first.json()["short_code"] == "a"
        assert second.json()["short_code"] == "b"
        assert again.json() == first.json()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {},
        {"url": 12345},
        {"url": None},
        {"url": ""},
        {"url": "ftp://example.com/file"},
        {"url": "example.com"},
    ])
    async def test_generate_rejects_bad_input(self, client, payload):
        response = await client.post(GENERATE_PATH, json=payload)

        assert response.status_code == 400
        assert "detail" in response.json()

    @pytest.mark.asyncio
    async def test_generate_rejects_non_json(self, client):
        response = await client.post(
            GENERATE_PATH,
            content="url=https://example.com",
            headers={"Content-Type": "text/plain"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_generate_exhausted(self, client, test_app):
        test_app.dependency_overrides[get_shortener_service] = failing_service(
            ShortCodeExhaustedError("Could not claim a short code after 3 attempts")
        )

        response = await client.post(GENERATE_PATH, json={"url": random_url()})

        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_generate_storage_unavailable(self, client, test_app):
        test_app.dependency_overrides[get_shortener_service] = failing_service(
            URLStorageError("connection refused")
        )

        response = await client.post(GENERATE_PATH, json={"url": random_url()})

        assert response.status_code == 503


@pytest.mark.api
class TestRedirectRoute:
    """Test suite for GET /{short_code}."""

    @pytest.mark.asyncio
    async def test_redirect(self, client, test_db):
        url = await create_test_url(test_db, original_url="https://example.com/target", short_code="abc")

        response = await client.get(f"/{url.short_code}")

        assert response.status_code == 308
        assert response.headers["location"] == "https://example.com/target"

    @pytest.mark.asyncio
    async def test_generate_then_redirect(self, client):
        original_url = "https://example.com/path?q=1&r=2"
        created = await client.post(GENERATE_PATH, json={"url": original_url})

        response = await client.get(f"/{created.json()['short_code']}")

        assert response.status_code == 308
        assert response.headers["location"] == original_url

    @pytest.mark.asyncio
    @pytest.mark.parametrize("short_code", ["zzz", "not-a-code", "a" * 11])
    async def test_redirect_unknown_code(self, client, short_code):
        response = await client.get(f"/{short_code}")

        assert response.status_code == 404
        assert response.json()["detail"] == "Short URL not found."

    @pytest.mark.asyncio
    async def test_redirect_storage_unavailable(self, client, test_app):
        test_app.dependency_overrides[get_shortener_service] = failing_service(
            URLStorageError("connection refused")
        )

        response = await client.get("/abc")

        assert response.status_code == 503


@pytest.mark.api
class TestHealthRoutes:

    @pytest.mark.asyncio
    async def test_health_check(self, client):
        response = await client.get(f"{settings.API_PREFIX}/health-check")

        assert response.status_code == 200
        assert response.content == b""

    @pytest.mark.asyncio
    async def test_health(self, client):
        healthy = {"status": "healthy", "message": "Database connection is healthy"}
        with patch(
            "app.api.routes.health.DatabaseHealthCheck.check_connection",
            AsyncMock(return_value=healthy),
        ):
            response = await client.get(f"{settings.API_PREFIX}/health-status")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["database"] == healthy

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client):
        response = await client.get(
            f"{settings.API_PREFIX}/health-check",
            headers={"X-Request-ID": "req-123"},
        )

        assert response.headers["X-Request-ID"] == "req-123"

    @pytest.mark.asyncio
    async def test_request_id_is_generated(self, client):
        response = await client.get(f"{settings.API_PREFIX}/health-check")

        assert response.headers["X-Request-ID"]


@pytest.mark.api
class TestReservedPaths:
    """Fixed paths must never collide with an issuable short code."""

    def test_fixed_get_routes_are_not_short_codes(self, test_app):
        fixed_paths = [
            route.path
            for route in test_app.routes
            if "GET" in getattr(route, "methods", set()) and "{" not in route.path
        ]

        assert fixed_paths
        for path in fixed_paths:
            assert not is_valid_short_code(path.rsplit("/", 1)[-1]), path

    @pytest.mark.parametrize("path", [DOCS_URL, REDOC_URL, "/openapi.json"])
    def test_docs_paths_are_not_short_codes(self, path):
        assert not is_valid_short_code(path.lstrip("/"))

    @pytest.mark.asyncio
    async def test_code_health_redirects(self, client, test_db):
        await create_test_url(test_db, original_url="https://example.com/h", short_code="health")

        response = await client.get("/health")

        assert response.status_code == 308
        assert response.headers["location"] == "https://example.com/h"
