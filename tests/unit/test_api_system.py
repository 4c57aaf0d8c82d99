"""Unit tests for the banner and health endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

import recordstream.api.routes.system as system_mod
from recordstream.api.main import create_app
from recordstream.sources import DatabaseRecordSource


@pytest.fixture
async def system_client(test_settings):
    async with AsyncClient(
        transport=ASGITransport(app=create_app(test_settings)),
        base_url="http://test",
    ) as client:
        yield client


def _database_source(count: AsyncMock) -> DatabaseRecordSource:
    source = DatabaseRecordSource(MagicMock())
    source.count = count
    return source


class TestBanner:
    @pytest.mark.asyncio
    async def test_banner_is_plain_text(self, system_client):
        response = await system_client.get("/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "NDJSON record streaming backend is running."


class TestHealth:
    @pytest.mark.asyncio
    async def test_generator_source(self, system_client):
        response = await system_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["source"] == "generator"
        assert body["record_count"] == 30
        assert body["active_streams"] == 0
        assert body["database"] is None

    @pytest.mark.asyncio
    async def test_database_source_connected(self, system_client, monkeypatch):
        source = _database_source(AsyncMock(return_value=42))
        monkeypatch.setattr(system_mod, "get_record_source", lambda settings: source)

        response = await system_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["source"] == "database"
        assert body["database"] == "connected"
        assert body["record_count"] == 42

    @pytest.mark.asyncio
    async def test_database_unreachable_is_503(self, system_client, monkeypatch):
        source = _database_source(AsyncMock(side_effect=OSError("connection refused")))
        monkeypatch.setattr(system_mod, "get_record_source", lambda settings: source)

        response = await system_client.get("/health")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "unhealthy"
        assert body["database"] == "error"
        assert "connection refused" in body["error"]
