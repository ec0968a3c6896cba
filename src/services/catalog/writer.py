"""Create-or-update sequence for a product and its ordered image rows.

The row store has no multi-statement transaction, so a save is a saga of
individually committed steps:

* create: insert product row, then insert image rows
* update: update product row, delete all image rows, insert image rows

A failing step stops the sequence and earlier steps stay committed. Each
step converges to the same state when repeated, so a failed save is resumed
by saving again against the ``product_id`` carried on the ``WriteError``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Annotated

from fastapi import Depends

from src.models.product import ImageEntry, Product, ProductSubmission
from src.services.catalog.errors import RowNotFoundError, StoreError, WriteError
from src.services.storage.row_store import Row, RowStore, RowStoreDependency

logger = logging.getLogger(__name__)


def build_image_rows(images: Sequence[ImageEntry]) -> list[Row]:
    """Number images by their position in the list."""

    return [
        {"url": image.url, "alt_text": image.alt_text, "display_order": index}
        for index, image in enumerate(images)
    ]


class CatalogWriter:
    """Persists validated submissions together with their image lists."""

    def __init__(self, row_store: RowStore) -> None:
        self._row_store = row_store

    async def save(
        self,
        submission: ProductSubmission,
        images: Sequence[ImageEntry],
        product_id: str | None = None,
    ) -> Product:
        """Create the product when ``product_id`` is None, otherwise update it.

        Raises:
            WriteError: naming the step that failed.
        """

        image_rows = build_image_rows(images)
        if product_id is None:
            row = await self._create_product(submission)
            product_id = row["id"]
        else:
            row = await self._update_product(product_id, submission)
            await self._clear_images(product_id)

        await self._insert_images(product_id, image_rows)

        logger.info(
            "Saved product %s with %d images",
            product_id,
            len(image_rows),
            extra={"product_id": product_id},
        )
        return Product.model_validate({**row, "images": image_rows})

    async def _create_product(self, submission: ProductSubmission) -> Row:
        try:
            row = await self._row_store.insert_product(submission.to_row())
        except StoreError as exc:
            logger.warning("Product insert failed: %s", exc, extra={"step": "product"})
            raise WriteError("product", "Error saving product") from exc
        logger.info("Created product row %s", row["id"], extra={"product_id": row["id"]})
        return row

    async def _update_product(self, product_id: str, submission: ProductSubmission) -> Row:
        try:
            row = await self._row_store.update_product(product_id, submission.to_row())
        except RowNotFoundError as exc:
            raise WriteError(
                "product", "Product not found", product_id=product_id, not_found=True
            ) from exc
        except StoreError as exc:
            logger.warning(
                "Product update failed: %s",
                exc,
                extra={"product_id": product_id, "step": "product"},
            )
            raise WriteError("product", "Error saving product", product_id=product_id) from exc
        logger.info("Updated product row %s", product_id, extra={"product_id": product_id})
        return row

    async def _clear_images(self, product_id: str) -> None:
        try:
            removed = await self._row_store.delete_images(product_id)
        except StoreError as exc:
            logger.warning(
                "Image cleanup failed: %s",
                exc,
                extra={"product_id": product_id, "step": "images"},
            )
            raise WriteError("images", "Error saving images", product_id=product_id) from exc
        logger.debug("Removed %d image rows of product %s", removed, product_id)

    async def _insert_images(self, product_id: str, image_rows: list[Row]) -> None:
        if not image_rows:
            return
        try:
            await self._row_store.insert_images(product_id, image_rows)
        except StoreError as exc:
            # The product row is committed; it stays without images until a retry.
            logger.warning(
                "Image insert failed: %s",
                exc,
                extra={"product_id": product_id, "step": "images"},
            )
            raise WriteError("images", "Error saving images", product_id=product_id) from exc


def get_catalog_writer(row_store: RowStoreDependency) -> CatalogWriter:
    """FastAPI dependency factory."""

    return CatalogWriter(row_store)


CatalogWriterDependency = Annotated[CatalogWriter, Depends(get_catalog_writer)]
