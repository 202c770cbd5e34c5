"""Shared test fixtures: build pages programmatically for testing."""

from __future__ import annotations

import io
from pathlib import Path

import fitz
import pytest
from PIL import Image

from pagemark.config import ConverterConfig
from pagemark.models.page import PageContent, TextRun

PAGE_WIDTH = 612.0
PAGE_HEIGHT = 792.0


def make_run(
    text: str,
    x: float = 72.0,
    y: float = 400.0,
    size: float = 12.0,
    width: float | None = None,
) -> TextRun:
    """A text run with its baseline at (x, y). Width defaults to half an em per char."""
    if width is None:
        width = len(text) * size * 0.5
    return TextRun(
        content=text,
        transform=(size, 0.0, 0.0, size, x, y),
        height=size,
        width=width,
    )


def make_page(
    runs=(),
    operators=(),
    resolver=None,
    page_number: int = 1,
    width: float = PAGE_WIDTH,
    height: float = PAGE_HEIGHT,
) -> PageContent:
    kwargs = {}
    if resolver is not None:
        kwargs["resolve_image"] = resolver
    return PageContent(
        page_number=page_number,
        width=width,
        height=height,
        text_runs=tuple(runs),
        operators=tuple(operators),
        **kwargs,
    )


def make_png(width: int = 40, height: int = 20, color: str = "red") -> bytes:
    """Create a simple test image and return as PNG bytes."""
    img = Image.new("RGB", (width, height), color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def cfg() -> ConverterConfig:
    return ConverterConfig()


@pytest.fixture
def simple_pdf(tmp_path: Path) -> Path:
    """A one-page PDF with a title, body text, an image and trailing text."""
    doc = fitz.open()
    page = doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
    page.insert_text((72, 100), "Document Title", fontsize=24)
    page.insert_text((72, 200), "Body text line one.", fontsize=12)
    page.insert_image(fitz.Rect(72, 300, 272, 400), stream=make_png(40, 20, "blue"))
    page.insert_text((72, 500), "After the image.", fontsize=12)

    path = tmp_path / "simple.pdf"
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def two_page_pdf(tmp_path: Path) -> Path:
    """Two pages of body text, each with a page-number footer."""
    doc = fitz.open()
    for n in (1, 2):
        page = doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        page.insert_text((72, 300), f"Content of page {n} goes here.", fontsize=12)
        page.insert_text((300, 770), f"Page {n}", fontsize=9)

    path = tmp_path / "two_pages.pdf"
    doc.save(str(path))
    doc.close()
    return path
