"""Row store interface and its Redis implementation."""

from __future__ import annotations

import json
import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import UTC, datetime
from decimal import Decimal
from typing import Annotated, Any

import redis.asyncio as redis
from fastapi import Depends

from src.config import settings
from src.services.catalog.errors import RowNotFoundError
from src.services.storage.redis_client import get_redis_client, translate_redis_errors

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class RowStore(ABC):
    """Abstract relational-style store for product, image and order rows.

    Product rows returned by reads carry an ``images`` list ordered by
    ``display_order``. Failures surface as ``StoreError``.
    """

    @abstractmethod
    async def insert_product(self, fields: Row) -> Row:
        """Insert a product row, assigning ``id`` and ``created_at``."""

    @abstractmethod
    async def update_product(self, product_id: str, fields: Row) -> Row:
        """Replace the mutable fields of a product row."""

    @abstractmethod
    async def delete_product(self, product_id: str) -> bool:
        """Delete a product row and, by cascade, its image rows."""

    @abstractmethod
    async def delete_images(self, product_id: str) -> int:
        """Delete every image row of a product, returning how many existed."""

    @abstractmethod
    async def insert_images(self, product_id: str, rows: Sequence[Row]) -> None:
        """Insert image rows for an existing product."""

    @abstractmethod
    async def list_products(self) -> list[Row]:
        """Return all product rows, newest first."""

    @abstractmethod
    async def fetch_product(self, product_id: str) -> Row | None:
        """Return one product row or ``None``."""

    @abstractmethod
    async def count_products(self) -> int:
        """Return the number of product rows."""

    @abstractmethod
    async def insert_order(self, total: Decimal, created_at: datetime | None = None) -> Row:
        """Record an order row."""

    @abstractmethod
    async def orders_since(self, since: datetime) -> list[Row]:
        """Return order rows created at or after ``since``."""


class RedisRowStore(RowStore):
    """Row store keeping JSON rows in Redis.

    Layout under the configured prefix:
    ``product:<id>`` JSON product row, ``product:<id>:images`` list of JSON
    image rows, ``products`` sorted set of ids scored by creation time and
    ``orders`` sorted set of JSON order rows scored by creation time.
    """

    def __init__(self, client: redis.Redis, prefix: str | None = None) -> None:
        self._client = client
        self._prefix = prefix if prefix is not None else settings.CATALOG_KEY_PREFIX

    def _product_key(self, product_id: str) -> str:
        return f"{self._prefix}product:{product_id}"

    def _images_key(self, product_id: str) -> str:
        return f"{self._prefix}product:{product_id}:images"

    @property
    def _index_key(self) -> str:
        return f"{self._prefix}products"

    @property
    def _orders_key(self) -> str:
        return f"{self._prefix}orders"

    async def insert_product(self, fields: Row) -> Row:
        created_at = datetime.now(UTC)
        row = {**fields, "id": uuid.uuid4().hex, "created_at": created_at.isoformat()}
        with translate_redis_errors("insert product"):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.set(self._product_key(row["id"]), json.dumps(row), nx=True)
                pipe.zadd(self._index_key, {row["id"]: created_at.timestamp()})
                await pipe.execute()
        logger.debug("Inserted product row %s", row["id"])
        return row

    async def update_product(self, product_id: str, fields: Row) -> Row:
        with translate_redis_errors("update product"):
            raw = await self._client.get(self._product_key(product_id))
            if raw is None:
                raise RowNotFoundError(f"Product {product_id} does not exist")
            existing = json.loads(raw)
            row = {**existing, **fields, "id": product_id, "created_at": existing["created_at"]}
            await self._client.set(self._product_key(product_id), json.dumps(row), xx=True)
        return row

    async def delete_product(self, product_id: str) -> bool:
        with translate_redis_errors("delete product"):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.delete(self._product_key(product_id))
                pipe.delete(self._images_key(product_id))
                pipe.zrem(self._index_key, product_id)
                deleted, _images, _indexed = await pipe.execute()
        return bool(deleted)

    async def delete_images(self, product_id: str) -> int:
        with translate_redis_errors("delete images"):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.llen(self._images_key(product_id))
                pipe.delete(self._images_key(product_id))
                count, _deleted = await pipe.execute()
        return int(count)

    async def insert_images(self, product_id: str, rows: Sequence[Row]) -> None:
        if not rows:
            return
        with translate_redis_errors("insert images"):
            if not await self._client.exists(self._product_key(product_id)):
                raise RowNotFoundError(f"Product {product_id} does not exist")
            payloads = [json.dumps({**row, "product_id": product_id}) for row in rows]
            await self._client.rpush(self._images_key(product_id), *payloads)

    async def list_products(self) -> list[Row]:
        with translate_redis_errors("list products"):
            product_ids = await self._client.zrevrange(self._index_key, 0, -1)
            if not product_ids:
                return []
            async with self._client.pipeline(transaction=False) as pipe:
                for product_id in product_ids:
                    pipe.get(self._product_key(product_id))
                    pipe.lrange(self._images_key(product_id), 0, -1)
                results = await pipe.execute()

        rows = []
        for raw, images in zip(results[::2], results[1::2]):
            if raw is None:
                # Index entry outlived its row; skip it.
                continue
            rows.append(self._with_images(raw, images))
        return rows

    async def fetch_product(self, product_id: str) -> Row | None:
        with translate_redis_errors("fetch product"):
            async with self._client.pipeline(transaction=False) as pipe:
                pipe.get(self._product_key(product_id))
                pipe.lrange(self._images_key(product_id), 0, -1)
                raw, images = await pipe.execute()
        if raw is None:
            return None
        return self._with_images(raw, images)

    async def count_products(self) -> int:
        with translate_redis_errors("count products"):
            return int(await self._client.zcard(self._index_key))

    async def insert_order(self, total: Decimal, created_at: datetime | None = None) -> Row:
        created_at = created_at or datetime.now(UTC)
        row = {
            "id": uuid.uuid4().hex,
            "total": str(total),
            "created_at": created_at.isoformat(),
        }
        with translate_redis_errors("insert order"):
            await self._client.zadd(self._orders_key, {json.dumps(row): created_at.timestamp()})
        return row

    async def orders_since(self, since: datetime) -> list[Row]:
        with translate_redis_errors("read orders"):
            members = await self._client.zrangebyscore(self._orders_key, since.timestamp(), "+inf")
        return [json.loads(member) for member in members]

    @staticmethod
    def _with_images(raw: str, images: Sequence[str]) -> Row:
        row = json.loads(raw)
        image_rows = [json.loads(image) for image in images]
        row["images"] = sorted(image_rows, key=lambda image: image["display_order"])
        return row


def get_row_store(
    client: Annotated[redis.Redis, Depends(get_redis_client)],
) -> RowStore:
    """FastAPI dependency factory."""

    return RedisRowStore(client)


RowStoreDependency = Annotated[RowStore, Depends(get_row_store)]
