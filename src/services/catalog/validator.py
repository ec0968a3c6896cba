"""Validation of raw product form input."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, Field, StringConstraints
from pydantic import ValidationError as PydanticValidationError

from src.models.product import ProductFormInput, ProductSubmission
from src.services.catalog.errors import ValidationError

# Rules are reported in this order when several fields are invalid at once.
FIELD_PRIORITY = ("title", "price", "sku", "stock", "description", "tags", "is_featured")

_MESSAGES = {
    ("title", "string_too_short"): "Title is required",
    ("price", "greater_than"): "Price must be positive",
    ("price", "decimal_parsing"): "Price must be a number",
    ("sku", "string_too_short"): "SKU is required",
    ("stock", "greater_than_equal"): "Stock cannot be negative",
    ("stock", "int_parsing"): "Stock must be a whole number",
}


class _CheckedForm(BaseModel):
    title: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    price: Annotated[Decimal, Field(gt=0)]
    sku: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
    stock: Annotated[int, Field(ge=0)]
    description: Annotated[str, StringConstraints(strip_whitespace=True, max_length=2000)] | None = None
    tags: Annotated[str, StringConstraints(max_length=500)] | None = None
    is_featured: bool = False


def parse_tags(raw: str | None) -> list[str]:
    """Split a comma separated tag string, keeping order and duplicates."""

    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def _first_violation(error: PydanticValidationError) -> ValidationError:
    def rank(detail: dict[str, Any]) -> int:
        field = str(detail["loc"][0]) if detail["loc"] else ""
        if field in FIELD_PRIORITY:
            return FIELD_PRIORITY.index(field)
        return len(FIELD_PRIORITY)

    detail = min(error.errors(), key=rank)
    field = str(detail["loc"][0]) if detail["loc"] else "form"
    message = _MESSAGES.get((field, detail["type"]), detail["msg"])
    return ValidationError(field, message)


def validate(form: ProductFormInput | Mapping[str, Any]) -> ProductSubmission:
    """Check raw form input and return a typed submission.

    Raises:
        ValidationError: naming the highest priority violated field.
    """

    try:
        if not isinstance(form, ProductFormInput):
            form = ProductFormInput.model_validate(dict(form))

        description = form.description if form.description and form.description.strip() else None
        checked = _CheckedForm(
            title=form.title or "",
            price=form.price or "",
            sku=form.sku or "",
            stock=form.stock or "",
            description=description,
            tags=form.tags or None,
            is_featured=False if form.is_featured is None else form.is_featured,
        )
    except PydanticValidationError as exc:
        raise _first_violation(exc) from exc

    return ProductSubmission(
        title=checked.title,
        description=checked.description,
        price=checked.price,
        sku=checked.sku,
        stock=checked.stock,
        tags=parse_tags(checked.tags),
        is_featured=checked.is_featured,
    )
