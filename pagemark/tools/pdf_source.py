"""Read PDF pages with PyMuPDF (fitz) into PageContent.

Text runs come from the ``dict`` text extraction (one run per span). The
operator stream is rebuilt from ``get_image_info``: PyMuPDF reports each
image's placement matrix in its own top-left, y-down space, so the stream
opens with a flip into bottom-left page space and then wraps every image
paint in save/concat/restore.

Images with an xref are painted by name and resolved lazily through
``fitz.Pixmap``; inline images (xref 0) are rendered from the page clip.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import fitz  # PyMuPDF
from PIL import Image

from pagemark.errors import ConversionError
from pagemark.models.page import (
    ColorKind,
    ConcatTransform,
    DecodedImage,
    ImageSource,
    PageContent,
    PaintInlineImage,
    PaintNamedImage,
    RawImage,
    RestoreState,
    SaveState,
    TextRun,
)

logger = logging.getLogger(__name__)

XREF_PREFIX = "xref:"


def open_pdf_pages(filepath: str | Path) -> Iterator[PageContent]:
    """Yield each page of a PDF in order.

    The document stays open until the generator is exhausted or closed, so
    image resolvers stay usable while the caller processes each page.

    Raises:
        ConversionError: The file can't be opened, or a page can't be read.
    """
    try:
        doc = fitz.open(str(filepath))
    except Exception as e:
        raise ConversionError(f"Failed to open PDF: {e}") from e

    try:
        total = len(doc)
        logger.info("Opened %s (%d pages)", filepath, total)
        for page_num in range(total):
            try:
                content = read_page(doc, doc[page_num], page_num + 1)
            except ConversionError:
                raise
            except Exception as e:
                raise ConversionError(f"Failed to read page: {e}", page_index=page_num) from e
            yield content
    finally:
        if not doc.is_closed:
            doc.close()


def read_page(doc: fitz.Document, page: fitz.Page, page_number: int) -> PageContent:
    rect = page.rect
    return PageContent(
        page_number=page_number,
        width=float(rect.width),
        height=float(rect.height),
        text_runs=read_text_runs(page),
        operators=build_operators(page),
        resolve_image=make_resolver(doc),
    )


def read_text_runs(page: fitz.Page) -> list[TextRun]:
    """One TextRun per non-empty span, baseline converted to bottom-left space."""
    height = float(page.rect.height)
    runs: list[TextRun] = []
    blocks = page.get_text("dict")["blocks"]

    for block in blocks:
        if block.get("type") != 0:  # text block
            continue
        for line in block.get("lines", []):
            for span in line.get("spans", []):
                text = span.get("text", "")
                if not text:
                    continue
                size = float(span.get("size", 0.0))
                x0, _, x1, y1 = span.get("bbox", (0.0, 0.0, 0.0, 0.0))
                origin_x, origin_y = span.get("origin", (x0, y1))
                runs.append(TextRun(
                    content=text,
                    transform=(size, 0.0, 0.0, size, float(origin_x), height - float(origin_y)),
                    height=size,
                    width=float(x1 - x0),
                ))
    return runs


def build_operators(page: fitz.Page) -> list:
    """Synthesize save/concat/paint/restore operators for every image on the page."""
    height = float(page.rect.height)
    ops: list = [ConcatTransform((1.0, 0.0, 0.0, -1.0, 0.0, height))]

    for info in page.get_image_info(xrefs=True):
        matrix = tuple(float(v) for v in info["transform"])
        xref = info.get("xref", 0)

        if xref:
            paint = PaintNamedImage(f"{XREF_PREFIX}{xref}")
        else:
            try:
                paint = PaintInlineImage(render_clip(page, info["bbox"]))
            except Exception as e:
                logger.warning("Could not render inline image %s: %s", info.get("number"), e)
                continue

        ops.extend([SaveState(), ConcatTransform(matrix), paint, RestoreState()])
    return ops


def render_clip(page: fitz.Page, bbox) -> DecodedImage:
    """Render the page area under an inline image at 72 dpi.

    This rasterizes the page, not the image stream, so any text or vector
    art drawn over the image area ends up in the PNG too.
    """
    pix = page.get_pixmap(clip=fitz.Rect(bbox), alpha=False)
    raster = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
    return DecodedImage(raster=raster)


def pixmap_to_source(pix: fitz.Pixmap) -> ImageSource:
    """Hand a pixmap's samples over as a tagged RawImage.

    Alpha-carrying pixmaps are normalized to RGB+alpha (copied verbatim as
    RGBA); color spaces other than gray/RGB/CMYK are converted to RGB.
    """
    n_colors = pix.colorspace.n if pix.colorspace else 0

    if pix.alpha:
        if n_colors != 3:
            pix = fitz.Pixmap(fitz.csRGB, pix)
        return RawImage(data=pix.samples, width=pix.width, height=pix.height, kind=ColorKind.RGB)

    kinds = {1: ColorKind.GRAYSCALE, 3: ColorKind.RGB, 4: ColorKind.CMYK}
    if n_colors not in kinds:
        pix = fitz.Pixmap(fitz.csRGB, pix)
        n_colors = 3
    return RawImage(data=pix.samples, width=pix.width, height=pix.height, kind=kinds[n_colors])


def make_resolver(doc: fitz.Document):
    def resolve(name: str) -> ImageSource | None:
        if not name.startswith(XREF_PREFIX):
            raise LookupError(f"Unknown image resource: {name!r}")
        xref = int(name[len(XREF_PREFIX):])
        return pixmap_to_source(fitz.Pixmap(doc, xref))

    return resolve
