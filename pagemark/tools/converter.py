"""Convert a whole document, page by page, into a ConversionResult.

Pages are processed strictly in order. Image-level problems never fail a
conversion; anything that makes a page unreadable does, and the failure is
returned as a result carrying the page index rather than a partial document.
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Iterable, Iterator

from pagemark.config import ConverterConfig, load_config
from pagemark.errors import ConversionError
from pagemark.models.page import PageContent
from pagemark.models.result import ConversionResult, ExtractedImage
from pagemark.tools.image_materializer import ImageRegistry
from pagemark.tools.markdown import render_document
from pagemark.tools.page_converter import convert_page

logger = logging.getLogger(__name__)


def _failed(error: str, page_index: int | None, warnings: list[str], started: float) -> ConversionResult:
    return ConversionResult(
        success=False,
        error=error,
        failed_page_index=page_index,
        warnings=warnings,
        processing_time_seconds=time.time() - started,
    )


def convert_document(
    pages: Iterable[PageContent],
    cfg: ConverterConfig | None = None,
    registry: ImageRegistry | None = None,
    cancel_event: threading.Event | None = None,
) -> ConversionResult:
    """Convert every page of a document into one Markdown string.

    Args:
        pages: Page source, consumed lazily in order.
        cfg: Converter settings; defaults to ``load_config()``.
        registry: Image registry to register resources with. A fresh one
            (using ``cfg``'s handle mode) is created when omitted.
        cancel_event: Checked between pages; when set the conversion stops
            and a failed result is returned.

    Returns:
        ConversionResult. On failure markdown and images are empty.
    """
    started = time.time()
    cfg = cfg or load_config()
    if registry is None:
        registry = ImageRegistry(cfg.image_handle_mode, cfg.assets_dirname)

    iterator: Iterator[PageContent] = iter(pages)
    try:
        return _convert_pages(iterator, cfg, registry, cancel_event, started)
    finally:
        close = getattr(iterator, "close", None)
        if close is not None:
            close()


def _convert_pages(
    iterator: Iterator[PageContent],
    cfg: ConverterConfig,
    registry: ImageRegistry,
    cancel_event: threading.Event | None,
    started: float,
) -> ConversionResult:
    fragments: list[str] = []
    images: list[ExtractedImage] = []
    warnings: list[str] = []
    page_index = 0

    while True:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Conversion cancelled before page index %d", page_index)
            return _failed(
                f"Conversion cancelled before page {page_index + 1}",
                page_index, warnings, started,
            )

        try:
            page = next(iterator)
        except StopIteration:
            break
        except ConversionError as e:
            logger.exception("Failed to read page index %d", page_index)
            index = e.page_index if e.page_index is not None else page_index
            return _failed(f"Failed to read page: {e.message}", index, warnings, started)
        except Exception as e:
            logger.exception("Failed to read page index %d", page_index)
            return _failed(f"Failed to read page: {e}", page_index, warnings, started)

        logger.info("Processing page %d", page.page_number)
        try:
            page_result = convert_page(page, registry, cfg)
        except ConversionError as e:
            logger.exception("Conversion failed on page %d", page.page_number)
            index = e.page_index if e.page_index is not None else page_index
            return _failed(f"Conversion failed: {e.message}", index, warnings, started)
        except Exception as e:
            logger.exception("Conversion failed on page %d", page.page_number)
            return _failed(f"Conversion failed: {e}", page_index, warnings, started)

        fragments.append(page_result.markdown)
        images.extend(page_result.images)
        warnings.extend(page_result.warnings)
        page_index += 1

    markdown = render_document(fragments)
    elapsed = time.time() - started
    logger.info(
        "Converted %d pages (%d images, %d warnings) in %.2fs",
        page_index, len(images), len(warnings), elapsed,
    )
    return ConversionResult(
        success=True,
        markdown=markdown,
        images=images,
        page_count=page_index,
        warnings=warnings,
        processing_time_seconds=elapsed,
    )


def convert_pdf(
    filepath: str | Path,
    cfg: ConverterConfig | None = None,
    registry: ImageRegistry | None = None,
    cancel_event: threading.Event | None = None,
) -> ConversionResult:
    """Open a PDF with PyMuPDF and convert it."""
    from pagemark.tools.pdf_source import open_pdf_pages

    filepath = Path(filepath)
    if not filepath.exists():
        return ConversionResult(success=False, error=f"File not found: {filepath}")
    if filepath.suffix.lower() != ".pdf":
        return ConversionResult(success=False, error=f"Not a .pdf file: {filepath}")

    logger.info("Converting %s", filepath)
    return convert_document(
        open_pdf_pages(filepath), cfg=cfg, registry=registry, cancel_event=cancel_event,
    )
