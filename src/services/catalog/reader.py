"""Read access to the catalog for listing and editing."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends
from pydantic import ValidationError as PydanticValidationError

from src.models.product import Product, ProductSummary
from src.services.catalog.errors import ReadError, StoreError
from src.services.storage.row_store import Row, RowStore, RowStoreDependency

logger = logging.getLogger(__name__)


class CatalogReader:
    """Loads products from the row store. Nothing is cached here."""

    def __init__(self, row_store: RowStore) -> None:
        self._row_store = row_store

    async def list_products(self) -> list[ProductSummary]:
        """Return every product, newest first, with only its first image."""

        try:
            rows = await self._row_store.list_products()
            return [self._summarize(row) for row in rows]
        except (StoreError, PydanticValidationError) as exc:
            logger.warning("Failed to list products: %s", exc)
            raise ReadError("Error loading products") from exc

    async def load_one(self, product_id: str) -> Product:
        """Return one product with all images in display order."""

        try:
            row = await self._row_store.fetch_product(product_id)
        except StoreError as exc:
            logger.warning(
                "Failed to load product %s: %s",
                product_id,
                exc,
                extra={"product_id": product_id},
            )
            raise ReadError("Error loading product") from exc

        if row is None:
            raise ReadError("Product not found", not_found=True)

        images = sorted(row.get("images", []), key=lambda image: image["display_order"])
        try:
            return Product.model_validate({**row, "images": images})
        except PydanticValidationError as exc:
            logger.exception("Stored product %s is malformed", product_id)
            raise ReadError("Error loading product") from exc

    @staticmethod
    def _summarize(row: Row) -> ProductSummary:
        images = sorted(row.get("images", []), key=lambda image: image["display_order"])
        fields = {key: value for key, value in row.items() if key != "images"}
        return ProductSummary.model_validate(
            {**fields, "primary_image": images[0] if images else None}
        )


def get_catalog_reader(row_store: RowStoreDependency) -> CatalogReader:
    """FastAPI dependency factory."""

    return CatalogReader(row_store)


CatalogReaderDependency = Annotated[CatalogReader, Depends(get_catalog_reader)]
