"""Schemas for server-held product editing sessions."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from src.models.product import ImageEntry, UploadResult


class DraftCreateRequest(BaseModel):
    """Opens a draft for a new product, or for editing an existing one."""

    product_id: str | None = Field(
        None,
        description="Existing product to edit; omit to create a new product",
    )
    title: str = ""


class Draft(BaseModel):
    """The image set and target product of one editing session."""

    draft_id: str
    product_id: str | None = None
    title: str = ""
    images: list[ImageEntry] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class DraftUploadResponse(BaseModel):
    """Per-file outcome of an upload plus the resulting draft."""

    draft: Draft
    results: list[UploadResult]
