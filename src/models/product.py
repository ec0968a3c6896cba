"""Product domain models and API schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _as_text(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return str(value)


# Any JSON value is accepted and kept as text so the validator ranks every rule.
FormText = Annotated[str | None, BeforeValidator(_as_text)]


class ProductFormInput(BaseModel):
    """Raw product form fields as typed by the console user.

    Every field stays text here; the validator decides whether it parses.
    """

    title: FormText = ""
    description: FormText = None
    price: FormText = None
    sku: FormText = ""
    stock: FormText = "0"
    tags: FormText = Field(
        None,
        description="Comma separated tag list, e.g. 'gold, necklace, luxury'",
    )
    is_featured: Any = False


class ImageEntry(BaseModel):
    """An image held by an editing session before it is persisted."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., min_length=1)
    alt_text: str | None = None


class ProductImage(BaseModel):
    """A persisted image row belonging to exactly one product."""

    url: str
    alt_text: str | None = None
    display_order: int = Field(..., ge=0)


class ProductFields(BaseModel):
    """Scalar product attributes shared by submissions and stored products."""

    title: str
    description: str | None = None
    price: Decimal
    sku: str
    stock: int
    tags: list[str] = Field(default_factory=list)
    is_featured: bool = False


class ProductSubmission(ProductFields):
    """Validated product data ready for the catalog writer. Never persisted."""

    def to_row(self) -> dict:
        return self.model_dump(mode="json")


class Product(ProductFields):
    """A stored product with its complete ordered image set."""

    id: str
    created_at: datetime
    images: list[ProductImage] = Field(default_factory=list)


class ProductSummary(ProductFields):
    """Listing entry carrying only the first image of a product."""

    id: str
    created_at: datetime
    primary_image: ProductImage | None = None


class ProductSaveRequest(ProductFormInput):
    """Request body for creating or updating a product in one call."""

    images: list[ImageEntry] = Field(default_factory=list)


class ProductListResponse(BaseModel):
    """Response body for the product listing."""

    products: list[ProductSummary] = Field(default_factory=list)
    error: str | None = None


class UploadResult(BaseModel):
    """Outcome of storing a single uploaded file."""

    filename: str
    url: str | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.url is not None


class PendingDeletion(BaseModel):
    """A deletion request awaiting confirmation."""

    token: str
    product_id: str


class DeletionResult(BaseModel):
    """Response body once a pending deletion is confirmed or cancelled."""

    product_id: str
    status: str
