"""Blob store interface for uploaded image files and its Redis implementation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends
from pydantic import BaseModel

from src.config import settings
from src.services.catalog.errors import BlobExistsError
from src.services.storage.redis_client import get_blob_client, translate_redis_errors

logger = logging.getLogger(__name__)


class StoredBlob(BaseModel):
    """A binary file read back from the blob store."""

    name: str
    content_type: str
    data: bytes


class BlobStore(ABC):
    """Abstract store for binary files addressed by name."""

    @abstractmethod
    async def store(self, name: str, data: bytes, content_type: str) -> None:
        """Persist ``data`` under ``name``; raise ``BlobExistsError`` if taken."""

    @abstractmethod
    def public_url(self, name: str) -> str:
        """Return the publicly retrievable URL of a stored blob."""

    @abstractmethod
    async def fetch(self, name: str) -> StoredBlob | None:
        """Return a stored blob or ``None``."""


class RedisBlobStore(BlobStore):
    """Blob store keeping file bodies in Redis under a key prefix."""

    def __init__(
        self,
        client: redis.Redis,
        *,
        prefix: str | None = None,
        base_url: str | None = None,
    ) -> None:
        self._client = client
        self._prefix = prefix if prefix is not None else settings.BLOB_KEY_PREFIX
        self._base_url = (base_url or settings.image_base_url).rstrip("/")

    def _data_key(self, name: str) -> str:
        return f"{self._prefix}{settings.IMAGE_BUCKET}:{name}"

    def _type_key(self, name: str) -> str:
        return f"{self._data_key(name)}:content-type"

    async def store(self, name: str, data: bytes, content_type: str) -> None:
        if not name or "/" in name:
            raise ValueError(f"Invalid blob name: {name!r}")

        with translate_redis_errors("store blob"):
            created = await self._client.set(self._data_key(name), data, nx=True)
            if not created:
                raise BlobExistsError(f"Blob {name} already exists")
            await self._client.set(self._type_key(name), content_type)

        logger.info("Stored blob %s (%d bytes)", name, len(data))

    def public_url(self, name: str) -> str:
        return f"{self._base_url}/{name}"

    async def fetch(self, name: str) -> StoredBlob | None:
        with translate_redis_errors("fetch blob"):
            data, content_type = await self._client.mget(
                self._data_key(name), self._type_key(name)
            )
        if data is None:
            return None
        if isinstance(content_type, bytes):
            content_type = content_type.decode("utf-8")
        return StoredBlob(
            name=name,
            content_type=content_type or "application/octet-stream",
            data=data,
        )


def get_blob_store(
    client: Annotated[redis.Redis, Depends(get_blob_client)],
) -> BlobStore:
    """FastAPI dependency factory."""

    return RedisBlobStore(client)


BlobStoreDependency = Annotated[BlobStore, Depends(get_blob_store)]
