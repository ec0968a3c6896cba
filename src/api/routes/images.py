"""Serves uploaded product images from the blob store."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Response

from src.config import settings
from src.services.storage.blob_store import BlobStoreDependency

router = APIRouter(prefix="/images", tags=["images"])


@router.get("/{bucket}/{name}", summary="Fetch a stored product image")
async def get_image(bucket: str, name: str, blob_store: BlobStoreDependency) -> Response:
    if bucket != settings.IMAGE_BUCKET:
        raise HTTPException(status_code=404, detail="Unknown image")

    blob = await blob_store.fetch(name)
    if blob is None:
        raise HTTPException(status_code=404, detail="Unknown image")

    return Response(
        content=blob.data,
        media_type=blob.content_type,
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )
