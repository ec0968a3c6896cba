"""Redis-backed persistence for product editing sessions."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from src.config import settings
from src.models.draft import Draft
from src.services.catalog.image_set import ImageSetBuilder
from src.services.storage.redis_client import get_redis_client, translate_redis_errors


class DraftStore:
    """Wrapper responsible for persisting drafts in Redis."""

    def __init__(self, client: redis.Redis):
        self._client = client
        self._prefix = f"{settings.CATALOG_KEY_PREFIX}draft:"
        self._ttl = settings.DRAFT_TTL_SECONDS

    def _key(self, draft_id: str) -> str:
        return f"{self._prefix}{draft_id}"

    async def create(
        self,
        image_set: ImageSetBuilder,
        *,
        product_id: str | None = None,
        title: str = "",
    ) -> Draft:
        draft = Draft(
            draft_id=uuid.uuid4().hex,
            product_id=product_id,
            title=title,
            images=image_set.snapshot(),
        )
        await self._write(draft)
        return draft

    async def save(self, draft: Draft, image_set: ImageSetBuilder) -> Draft:
        updated = draft.model_copy(
            update={"images": image_set.snapshot(), "updated_at": datetime.now(UTC)}
        )
        await self._write(updated)
        return updated

    async def fetch(self, draft_id: str) -> Draft | None:
        with translate_redis_errors("fetch draft"):
            raw = await self._client.get(self._key(draft_id))
        if not raw:
            return None
        return Draft.model_validate_json(raw)

    async def discard(self, draft_id: str) -> bool:
        with translate_redis_errors("discard draft"):
            return bool(await self._client.delete(self._key(draft_id)))

    async def _write(self, draft: Draft) -> None:
        with translate_redis_errors("save draft"):
            await self._client.set(
                self._key(draft.draft_id), draft.model_dump_json(), ex=self._ttl
            )


def image_set_for(draft: Draft) -> ImageSetBuilder:
    return ImageSetBuilder(draft.images)


def get_draft_store(
    client: Annotated[redis.Redis, Depends(get_redis_client)],
) -> DraftStore:
    """FastAPI dependency factory."""

    return DraftStore(client)


DraftStoreDependency = Annotated[DraftStore, Depends(get_draft_store)]
