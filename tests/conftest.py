"""Pytest configuration and fixtures for the catalog console service."""

from decimal import Decimal

import pytest
import pytest_asyncio
from fakeredis import aioredis as fakeredis
from httpx import ASGITransport, AsyncClient

from src.models.product import ImageEntry, ProductSubmission
from src.services.storage.blob_store import RedisBlobStore
from src.services.storage.redis_client import get_blob_client, get_redis_client
from src.services.storage.row_store import RedisRowStore


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "asyncio: marks tests as async tests")


@pytest_asyncio.fixture()
async def redis_client():
    """Provide a fake text Redis client for each test."""
    from src.main import app

    client = fakeredis.FakeRedis(decode_responses=True)
    app.dependency_overrides[get_redis_client] = lambda: client
    try:
        yield client
    finally:
        await client.flushdb()
        await client.aclose()
        app.dependency_overrides.pop(get_redis_client, None)


@pytest_asyncio.fixture()
async def blob_client():
    """Provide a fake binary Redis client for the blob store."""
    from src.main import app

    client = fakeredis.FakeRedis()
    app.dependency_overrides[get_blob_client] = lambda: client
    try:
        yield client
    finally:
        await client.flushdb()
        await client.aclose()
        app.dependency_overrides.pop(get_blob_client, None)


@pytest.fixture()
def row_store(redis_client):
    return RedisRowStore(redis_client)


@pytest.fixture()
def blob_store(blob_client):
    return RedisBlobStore(blob_client, base_url="http://testserver/images/product-images")


@pytest.fixture()
def submission():
    """The Gold Ring product used across the scenarios."""
    return ProductSubmission(
        title="Gold Ring",
        price=Decimal("199.99"),
        sku="GR-1",
        stock=5,
        tags=["gold", "ring"],
        is_featured=False,
    )


@pytest.fixture()
def make_images():
    """Build image entries whose URL and alt text derive from a short name."""

    def _make(*names: str) -> list[ImageEntry]:
        return [
            ImageEntry(url=f"https://cdn.example.com/{name}.png", alt_text=name)
            for name in names
        ]

    return _make


@pytest_asyncio.fixture()
async def client(redis_client, blob_client):
    """Return an HTTPX async client pointing at the FastAPI app."""
    from src.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client
