"""Conversion output models.

PageResult is what one page contributes; ConversionResult is the owned
output of a whole document: the Markdown string plus the image table the
exporter/UI layer embeds or persists.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ExtractedImage(BaseModel, frozen=True):
    """A materialized image registered as a retrievable resource."""
    id: str  # pdf_img_<page>_<op index>
    src: str  # the resource handle: relative asset path or data: URI
    alt: str = ""
    title: str = ""
    width_px: int = 0
    height_px: int = 0
    page_number: int = 0
    png_data: bytes | None = Field(default=None, exclude=True)


class PageResult(BaseModel, frozen=True):
    """Markdown fragment and images produced by a single page."""
    page_number: int
    markdown: str = ""
    images: list[ExtractedImage] = Field(default_factory=list)
    base_font_size: float = 0.0
    line_count: int = 0
    warnings: list[str] = Field(default_factory=list)


class ConversionResult(BaseModel, frozen=True):
    """Final output of a document conversion.

    On failure ``markdown`` and ``images`` are empty and ``failed_page_index``
    names the 0-based page where the failure occurred.
    """
    success: bool = False
    markdown: str = ""
    images: list[ExtractedImage] = Field(default_factory=list)
    page_count: int = 0
    warnings: list[str] = Field(default_factory=list)
    error: str = ""
    failed_page_index: int | None = None
    processing_time_seconds: float = 0.0

    @property
    def image_table(self) -> dict[str, str]:
        """Identifier -> handle, in first-seen order."""
        return {img.id: img.src for img in self.images}
