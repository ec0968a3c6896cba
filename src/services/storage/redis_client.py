"""Redis client factories shared by the catalog stores."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import redis.asyncio as redis
from redis.exceptions import RedisError

from src.config import settings
from src.services.catalog.errors import StoreError

logger = logging.getLogger(__name__)

_redis_client: redis.Redis | None = None
_blob_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return a singleton text Redis client for the current process."""

    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


def get_blob_client() -> redis.Redis:
    """Return a singleton Redis client that keeps values as raw bytes."""

    global _blob_client
    if _blob_client is None:
        _blob_client = redis.from_url(settings.REDIS_URL, decode_responses=False)
    return _blob_client


async def close_clients() -> None:
    """Close the process wide clients, if they were ever created."""

    global _redis_client, _blob_client
    for client in (_redis_client, _blob_client):
        if client is not None:
            await client.aclose()
    _redis_client = None
    _blob_client = None


@contextmanager
def translate_redis_errors(action: str) -> Iterator[None]:
    """Re-raise Redis failures as ``StoreError`` for the catalog services."""

    try:
        yield
    except RedisError as exc:
        logger.warning("Redis call failed while trying to %s: %s", action, exc)
        raise StoreError(f"Failed to {action}") from exc
