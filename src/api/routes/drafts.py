"""Routes for editing sessions: image uploads, reordering by removal, saving."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, File, Form, HTTPException, Response, UploadFile, status

from src.api.errors import read_failed, upload_failed, validation_failed, write_failed
from src.models.draft import Draft, DraftCreateRequest, DraftUploadResponse
from src.models.product import Product, ProductFormInput
from src.services.catalog.draft_store import DraftStore, DraftStoreDependency, image_set_for
from src.services.catalog.errors import ReadError, UploadError, ValidationError, WriteError
from src.services.catalog.image_set import ImageSetBuilder
from src.services.catalog.reader import CatalogReaderDependency
from src.services.catalog.upload_orchestrator import (
    UploadOrchestratorDependency,
    UploadPayload,
)
from src.services.catalog.validator import validate
from src.services.catalog.writer import CatalogWriterDependency

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drafts", tags=["drafts"])


async def _require_draft(store: DraftStore, draft_id: str) -> Draft:
    draft = await store.fetch(draft_id)
    if draft is None:
        raise HTTPException(status_code=404, detail="Unknown draft")
    return draft


@router.post(
    "",
    response_model=Draft,
    status_code=status.HTTP_201_CREATED,
    summary="Open an editing session, seeded from the stored product when editing",
)
async def create_draft(
    payload: DraftCreateRequest,
    store: DraftStoreDependency,
    reader: CatalogReaderDependency,
) -> Draft:
    if payload.product_id is None:
        return await store.create(ImageSetBuilder(), title=payload.title)

    try:
        product = await reader.load_one(payload.product_id)
    except ReadError as exc:
        raise read_failed(exc) from exc

    return await store.create(
        ImageSetBuilder.from_product(product),
        product_id=product.id,
        title=product.title,
    )


@router.get("/{draft_id}", response_model=Draft, summary="Read an editing session")
async def get_draft(draft_id: str, store: DraftStoreDependency) -> Draft:
    return await _require_draft(store, draft_id)


@router.delete(
    "/{draft_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Discard an editing session",
)
async def discard_draft(draft_id: str, store: DraftStoreDependency) -> Response:
    if not await store.discard(draft_id):
        raise HTTPException(status_code=404, detail="Unknown draft")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{draft_id}/images",
    response_model=DraftUploadResponse,
    summary="Upload image files and append them to the draft in the order sent",
)
async def upload_images(
    draft_id: str,
    files: Annotated[list[UploadFile], File(description="Image files, in display order")],
    store: DraftStoreDependency,
    orchestrator: UploadOrchestratorDependency,
    title: Annotated[str | None, Form(description="Current product title")] = None,
) -> DraftUploadResponse:
    """Store the files and append the successful ones to the draft.

    Files that were stored stay in the draft even when other files of the same
    request failed; the 502 response lists the outcome of every file.
    """

    draft = await _require_draft(store, draft_id)
    if title is not None:
        draft = draft.model_copy(update={"title": title})

    payloads = [
        UploadPayload(
            filename=upload.filename or "upload",
            content_type=upload.content_type,
            data=await upload.read(orchestrator.max_bytes + 1),
        )
        for upload in files
    ]

    image_set = image_set_for(draft)
    try:
        results = await orchestrator.upload(payloads, image_set, draft.title)
    except UploadError as exc:
        await store.save(draft, image_set)
        raise upload_failed(exc) from exc

    draft = await store.save(draft, image_set)
    return DraftUploadResponse(draft=draft, results=results)


@router.delete(
    "/{draft_id}/images/{index}",
    response_model=Draft,
    summary="Remove one image from the draft by position",
)
async def remove_image(draft_id: str, index: int, store: DraftStoreDependency) -> Draft:
    draft = await _require_draft(store, draft_id)
    image_set = image_set_for(draft)
    try:
        image_set.remove_at(index)
    except IndexError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return await store.save(draft, image_set)


@router.post(
    "/{draft_id}/save",
    response_model=Product,
    summary="Validate the form and write the product with the draft's images",
)
async def save_draft(
    draft_id: str,
    payload: ProductFormInput,
    store: DraftStoreDependency,
    writer: CatalogWriterDependency,
) -> Product:
    draft = await _require_draft(store, draft_id)

    try:
        submission = validate(payload)
    except ValidationError as exc:
        raise validation_failed(exc) from exc

    image_set = image_set_for(draft)
    try:
        product = await writer.save(submission, image_set.snapshot(), draft.product_id)
    except WriteError as exc:
        if exc.product_id and draft.product_id is None:
            # The product row exists now; a retry from this draft must update it.
            draft = draft.model_copy(update={"product_id": exc.product_id})
            await store.save(draft, image_set)
        raise write_failed(exc) from exc

    draft = draft.model_copy(update={"product_id": product.id, "title": product.title})
    await store.save(draft, image_set)
    logger.info(
        "Draft %s saved",
        draft_id,
        extra={"product_id": product.id, "images": len(product.images)},
    )
    return product
