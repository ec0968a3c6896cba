"""Error taxonomy of the catalog services and their store collaborators."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

from src.models.product import UploadResult

WriteStep = Literal["product", "images"]


class StoreError(Exception):
    """Raised by a row or blob store when the backing service fails."""


class RowNotFoundError(StoreError):
    """The referenced product row does not exist."""


class BlobExistsError(StoreError):
    """A blob is already stored under the requested name."""


class CatalogError(Exception):
    """Base class for errors surfaced to the console."""


class ValidationError(CatalogError):
    """First violated form rule, reported per field."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class UploadError(CatalogError):
    """At least one file of an upload batch could not be stored.

    Successful files of the batch are already part of the image set; ``results``
    lists the outcome of every file in input order.
    """

    def __init__(
        self,
        results: Sequence[UploadResult],
        message: str = "Error uploading images",
    ) -> None:
        super().__init__(message)
        self.results = list(results)

    @property
    def failed(self) -> list[UploadResult]:
        return [result for result in self.results if not result.succeeded]


class WriteError(CatalogError):
    """A catalog save stopped at ``step``; earlier steps stay committed.

    ``product_id`` names the product the save was working on, so a failure
    after the product row was written can be resumed as an update.
    """

    def __init__(
        self,
        step: WriteStep,
        message: str,
        product_id: str | None = None,
        *,
        not_found: bool = False,
    ) -> None:
        super().__init__(message)
        self.step = step
        self.product_id = product_id
        self.not_found = not_found

    def to_dict(self) -> dict[str, str | None]:
        return {"step": self.step, "product_id": self.product_id, "message": str(self)}


class ReadError(CatalogError):
    """Loading from the catalog failed or the product does not exist."""

    def __init__(self, message: str, *, not_found: bool = False) -> None:
        super().__init__(message)
        self.not_found = not_found


class DeleteError(CatalogError):
    """Deleting a product failed."""
