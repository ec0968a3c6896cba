"""Ordered, in-memory image list of the product being edited."""

from __future__ import annotations

from collections.abc import Iterable

from src.models.product import ImageEntry, Product


class ImageSetBuilder:
    """Holds the images of one editing session in display order."""

    def __init__(self, entries: Iterable[ImageEntry] = ()) -> None:
        self._entries: list[ImageEntry] = list(entries)

    @classmethod
    def from_product(cls, product: Product) -> ImageSetBuilder:
        ordered = sorted(product.images, key=lambda image: image.display_order)
        return cls(ImageEntry(url=image.url, alt_text=image.alt_text) for image in ordered)

    def append(self, entries: ImageEntry | Iterable[ImageEntry]) -> None:
        if isinstance(entries, ImageEntry):
            entries = [entries]
        self._entries.extend(entries)

    def remove_at(self, index: int) -> ImageEntry:
        if not 0 <= index < len(self._entries):
            raise IndexError(f"Image index {index} out of range")
        return self._entries.pop(index)

    def snapshot(self) -> list[ImageEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
