"""Routes for listing, saving and deleting catalog products."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response, status

from src.api.errors import delete_failed, read_failed, validation_failed, write_failed
from src.models.product import (
    DeletionResult,
    PendingDeletion,
    Product,
    ProductListResponse,
    ProductSaveRequest,
)
from src.services.catalog.deletion import DeletionConfirmer, PendingDeletionStoreDependency
from src.services.catalog.errors import DeleteError, ReadError, ValidationError, WriteError
from src.services.catalog.reader import CatalogReaderDependency
from src.services.catalog.validator import validate
from src.services.catalog.writer import CatalogWriterDependency
from src.services.storage.row_store import RowStoreDependency

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List products, newest first, with their primary image",
)
async def list_products(
    reader: CatalogReaderDependency,
    response: Response,
) -> ProductListResponse:
    try:
        products = await reader.list_products()
    except ReadError as exc:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ProductListResponse(error=str(exc))
    return ProductListResponse(products=products)


@router.get(
    "/{product_id}",
    response_model=Product,
    summary="Load a product with its ordered images",
)
async def get_product(product_id: str, reader: CatalogReaderDependency) -> Product:
    try:
        return await reader.load_one(product_id)
    except ReadError as exc:
        raise read_failed(exc) from exc


async def _save(
    payload: ProductSaveRequest,
    writer: CatalogWriterDependency,
    product_id: str | None = None,
) -> Product:
    try:
        submission = validate(payload)
    except ValidationError as exc:
        raise validation_failed(exc) from exc

    try:
        return await writer.save(submission, payload.images, product_id)
    except WriteError as exc:
        raise write_failed(exc) from exc


@router.post(
    "",
    response_model=Product,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product together with its ordered images",
)
async def create_product(
    payload: ProductSaveRequest,
    writer: CatalogWriterDependency,
) -> Product:
    product = await _save(payload, writer)
    logger.info("Product created", extra={"product_id": product.id})
    return product


@router.put(
    "/{product_id}",
    response_model=Product,
    summary="Replace a product's fields and its full image list",
)
async def update_product(
    product_id: str,
    payload: ProductSaveRequest,
    writer: CatalogWriterDependency,
) -> Product:
    product = await _save(payload, writer, product_id)
    logger.info("Product updated", extra={"product_id": product_id})
    return product


@router.post(
    "/{product_id}/deletion",
    response_model=PendingDeletion,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request deletion of a product; nothing is deleted until confirmed",
)
async def request_deletion(
    product_id: str,
    row_store: RowStoreDependency,
    pending_store: PendingDeletionStoreDependency,
) -> PendingDeletion:
    confirmer = DeletionConfirmer(row_store)
    confirmer.request_delete(product_id)
    return await pending_store.save(confirmer)


@router.post(
    "/deletions/{token}/confirm",
    response_model=DeletionResult,
    summary="Confirm a pending deletion",
)
async def confirm_deletion(
    token: str,
    row_store: RowStoreDependency,
    pending_store: PendingDeletionStoreDependency,
) -> DeletionResult:
    pending = await pending_store.fetch(token)
    if pending is None:
        raise HTTPException(status_code=404, detail="Unknown deletion request")

    # The request is consumed whether or not the delete succeeds.
    await pending_store.discard(token)
    confirmer = DeletionConfirmer(row_store, pending.product_id)
    try:
        await confirmer.confirm_delete()
    except DeleteError as exc:
        raise delete_failed(exc) from exc
    return DeletionResult(product_id=pending.product_id, status="deleted")


@router.delete(
    "/deletions/{token}",
    response_model=DeletionResult,
    summary="Cancel a pending deletion",
)
async def cancel_deletion(
    token: str,
    row_store: RowStoreDependency,
    pending_store: PendingDeletionStoreDependency,
) -> DeletionResult:
    pending = await pending_store.fetch(token)
    if pending is None:
        raise HTTPException(status_code=404, detail="Unknown deletion request")

    confirmer = DeletionConfirmer(row_store, pending.product_id)
    confirmer.cancel_delete()
    await pending_store.discard(token)
    return DeletionResult(product_id=pending.product_id, status="cancelled")
