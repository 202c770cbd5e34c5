"""Convert one page's operators and text runs into a Markdown fragment.

Pipeline, leaves first:
  1. base font size from all (unfiltered) runs
  2. replay operators to place images, then materialize/register them
  3. drop header/footer runs and edge-hugging images
  4. cluster runs into lines, fold in image lines, sort top to bottom
  5. assemble line strings and classify headings
  6. merge body lines into paragraphs
  7. render blocks
"""

from __future__ import annotations

import logging
import math

from pagemark.config import ConverterConfig
from pagemark.errors import ConversionError
from pagemark.models.page import PageContent
from pagemark.models.result import ExtractedImage, PageResult
from pagemark.tools.font_stats import estimate_font_stats
from pagemark.tools.image_materializer import ImageRegistry, materialize
from pagemark.tools.lines import build_lines
from pagemark.tools.markdown import render_page
from pagemark.tools.paragraphs import assemble_blocks
from pagemark.tools.run_filter import filter_images, filter_runs
from pagemark.tools.structure import process_lines
from pagemark.tools.transforms import track_images

logger = logging.getLogger(__name__)


def _check_page(page: PageContent) -> None:
    index = page.page_number - 1
    if not math.isfinite(page.height) or page.height <= 0:
        raise ConversionError(f"Invalid page height {page.height!r}", page_index=index)
    if not math.isfinite(page.width) or page.width <= 0:
        raise ConversionError(f"Invalid page width {page.width!r}", page_index=index)


def convert_page(
    page: PageContent,
    registry: ImageRegistry,
    cfg: ConverterConfig,
) -> PageResult:
    """Run the full layout pipeline over a single page.

    Image-level failures are absorbed (logged, listed in ``warnings``).
    Malformed page geometry or operator arguments raise ConversionError.
    """
    _check_page(page)
    warnings: list[str] = []

    stats = estimate_font_stats(page.text_runs, cfg.default_font_size)
    base_size = stats.base_size

    tracking = track_images(page)
    warnings.extend(tracking.warnings)

    page_images: list[ExtractedImage] = []
    placements = []
    for tracked in tracking.images:
        image = materialize(tracked, page.page_number, registry, warnings)
        if image is None:
            continue
        page_images.append(image)
        placements.append(tracked.placement)

    runs = filter_runs(page.text_runs, page.height, base_size, cfg)
    placements = filter_images(placements, page.height, cfg)

    lines = build_lines(runs, placements, cfg)
    processed, max_width = process_lines(lines, base_size, cfg)

    handles = {img.id: img.src for img in page_images}
    blocks = assemble_blocks(processed, max_width, handles, cfg)
    markdown = render_page(blocks)

    logger.debug(
        "Page %d: base size %.1f, %d lines, %d images, %d chars",
        page.page_number, base_size, len(lines), len(page_images), len(markdown),
    )
    return PageResult(
        page_number=page.page_number,
        markdown=markdown,
        images=page_images,
        base_font_size=base_size,
        line_count=len(lines),
        warnings=warnings,
    )
