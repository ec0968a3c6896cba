"""Two-phase product deletion: request, then confirm or cancel."""

from __future__ import annotations

import json
import logging
import uuid
from enum import Enum
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from src.config import settings
from src.models.product import PendingDeletion
from src.services.catalog.errors import DeleteError, StoreError
from src.services.storage.redis_client import get_redis_client, translate_redis_errors
from src.services.storage.row_store import RowStore

logger = logging.getLogger(__name__)


class DeletionState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"


class DeletionConfirmer:
    """State machine ``Idle -> PendingConfirmation(id) -> Idle``.

    Only confirming touches the store. Image rows are removed by the store's
    cascade, not here.
    """

    def __init__(self, row_store: RowStore, pending_id: str | None = None) -> None:
        self._row_store = row_store
        self._pending_id = pending_id

    @property
    def state(self) -> DeletionState:
        return DeletionState.IDLE if self._pending_id is None else DeletionState.PENDING

    @property
    def pending_id(self) -> str | None:
        return self._pending_id

    def request_delete(self, product_id: str) -> None:
        self._pending_id = product_id

    def cancel_delete(self) -> None:
        self._pending_id = None

    async def confirm_delete(self) -> None:
        """Delete the pending product. A no-op when nothing is pending.

        Raises:
            DeleteError: if the store rejected the delete.
        """

        product_id, self._pending_id = self._pending_id, None
        if product_id is None:
            return

        try:
            deleted = await self._row_store.delete_product(product_id)
        except StoreError as exc:
            logger.warning(
                "Failed to delete product %s: %s",
                product_id,
                exc,
                extra={"product_id": product_id},
            )
            raise DeleteError("Error deleting product") from exc

        if not deleted:
            logger.warning("Product %s was already gone", product_id)
            return
        logger.info("Deleted product %s", product_id, extra={"product_id": product_id})


class PendingDeletionStore:
    """Keeps pending deletions between the request and the confirmation call."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client
        self._prefix = f"{settings.CATALOG_KEY_PREFIX}deletion:"
        self._ttl = settings.DELETION_TTL_SECONDS

    def _key(self, token: str) -> str:
        return f"{self._prefix}{token}"

    async def save(self, confirmer: DeletionConfirmer) -> PendingDeletion:
        if confirmer.pending_id is None:
            raise ValueError("No deletion requested")
        pending = PendingDeletion(token=uuid.uuid4().hex, product_id=confirmer.pending_id)
        with translate_redis_errors("save pending deletion"):
            await self._client.set(
                self._key(pending.token), pending.model_dump_json(), ex=self._ttl
            )
        return pending

    async def fetch(self, token: str) -> PendingDeletion | None:
        with translate_redis_errors("fetch pending deletion"):
            raw = await self._client.get(self._key(token))
        if not raw:
            return None
        return PendingDeletion(**json.loads(raw))

    async def discard(self, token: str) -> None:
        with translate_redis_errors("discard pending deletion"):
            await self._client.delete(self._key(token))


def get_pending_deletion_store(
    client: Annotated[redis.Redis, Depends(get_redis_client)],
) -> PendingDeletionStore:
    """FastAPI dependency factory."""

    return PendingDeletionStore(client)


PendingDeletionStoreDependency = Annotated[
    PendingDeletionStore, Depends(get_pending_deletion_store)
]
