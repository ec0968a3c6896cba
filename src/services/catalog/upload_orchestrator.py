"""Uploads image files to the blob store and feeds them into an image set."""

from __future__ import annotations

import asyncio
import logging
import re
import uuid
from collections.abc import Sequence
from typing import Annotated

from fastapi import Depends
from pydantic import BaseModel

from src.config import settings
from src.models.product import ImageEntry, UploadResult
from src.services.catalog.errors import BlobExistsError, StoreError, UploadError
from src.services.catalog.image_set import ImageSetBuilder
from src.services.storage.blob_store import BlobStore, BlobStoreDependency

logger = logging.getLogger(__name__)

_EXTENSION_PATTERN = re.compile(r"^[a-z0-9]{1,8}$")


class UploadPayload(BaseModel):
    """A single file received from the console."""

    filename: str
    content_type: str | None = None
    data: bytes


def generate_blob_name(filename: str) -> str:
    """Return a collision resistant storage name.

    Only a short alphanumeric extension is kept from the original filename.
    """

    name = uuid.uuid4().hex
    if "." not in filename:
        return name
    extension = filename.rsplit(".", 1)[-1].lower()
    if _EXTENSION_PATTERN.match(extension):
        return f"{name}.{extension}"
    return name


class UploadOrchestrator:
    """Stores uploaded files and appends the successful ones to an image set."""

    def __init__(
        self,
        blob_store: BlobStore,
        *,
        max_bytes: int | None = None,
        name_attempts: int | None = None,
        concurrency: int | None = None,
    ) -> None:
        self._blob_store = blob_store
        self._max_bytes = max_bytes or settings.MAX_UPLOAD_BYTES
        self._name_attempts = max(1, name_attempts or settings.UPLOAD_NAME_ATTEMPTS)
        self._semaphore = asyncio.Semaphore(max(1, concurrency or settings.UPLOAD_CONCURRENCY))

    @property
    def max_bytes(self) -> int:
        """Largest accepted file size; callers need not read past one byte more."""
        return self._max_bytes

    async def upload(
        self,
        files: Sequence[UploadPayload],
        image_set: ImageSetBuilder,
        alt_text: str | None,
    ) -> list[UploadResult]:
        """Upload ``files`` concurrently and append successes in input order.

        Raises:
            UploadError: if at least one file failed. Successful files of the
                batch have already been appended when this is raised.
        """

        if not files:
            return []

        results = list(await asyncio.gather(*(self._store_one(file) for file in files)))

        image_set.append(
            ImageEntry(url=result.url, alt_text=alt_text or None)
            for result in results
            if result.url is not None
        )

        failures = [result for result in results if not result.succeeded]
        if failures:
            logger.warning(
                "Upload batch finished with failures",
                extra={"failed": len(failures), "total": len(results)},
            )
            raise UploadError(results)

        logger.info("Uploaded %d images", len(results))
        return results

    async def _store_one(self, payload: UploadPayload) -> UploadResult:
        problem = self._reject_reason(payload)
        if problem is not None:
            return UploadResult(filename=payload.filename, error=problem)

        async with self._semaphore:
            for attempt in range(1, self._name_attempts + 1):
                name = generate_blob_name(payload.filename)
                try:
                    await self._blob_store.store(name, payload.data, payload.content_type)
                except BlobExistsError:
                    logger.warning(
                        "Blob name collision, retrying",
                        extra={"blob_name": name, "attempt": attempt},
                    )
                    continue
                except StoreError as exc:
                    logger.warning(
                        "Failed to store upload %s: %s",
                        payload.filename,
                        exc,
                        extra={"upload_filename": payload.filename},
                    )
                    return UploadResult(filename=payload.filename, error=str(exc))

                return UploadResult(
                    filename=payload.filename,
                    url=self._blob_store.public_url(name),
                )

        return UploadResult(
            filename=payload.filename,
            error="Could not allocate a unique storage name",
        )

    def _reject_reason(self, payload: UploadPayload) -> str | None:
        if not payload.data:
            return "File is empty"
        if len(payload.data) > self._max_bytes:
            return "File is too large"
        if not (payload.content_type or "").startswith("image/"):
            return "File is not an image"
        return None


def get_upload_orchestrator(blob_store: BlobStoreDependency) -> UploadOrchestrator:
    """FastAPI dependency factory."""

    return UploadOrchestrator(blob_store)


UploadOrchestratorDependency = Annotated[UploadOrchestrator, Depends(get_upload_orchestrator)]
