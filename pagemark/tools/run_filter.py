"""Drop page furniture: header/footer text runs and edge-hugging images.

Text runs whose visual top lands in the header or footer band are only
candidates. A candidate goes if it looks like boilerplate (page number,
date, URL) or is noticeably smaller than the page's base font size;
anything else near the edge (a title pushed into the top margin, say) is
kept. Images use a much narrower band since banners often sit near margins.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

from pagemark.config import ConverterConfig
from pagemark.models.page import ImagePlacement, TextRun

logger = logging.getLogger(__name__)

# Matched against the trimmed run text with re.search
BOILERPLATE_PATTERNS = [
    re.compile(r"about:blank", re.IGNORECASE),
    re.compile(r"^\d+\s*/\s*\d+$"),  # "1 / 10"
    re.compile(r"^\(\d+\)$"),  # "(1)"
    re.compile(r"^\s*Page\s*\d+", re.IGNORECASE),
    re.compile(r"^\d{4}[/\-]\d{1,2}[/\-]\d{1,2}"),  # 2026/1/20, 2026-01-20
    re.compile(r"(www\.|http:|https:)\S+"),
    re.compile(r"\.com$", re.IGNORECASE),
]

# Browser print placeholder, dropped wherever it appears
NO_RENDER_PATTERN = re.compile(r"about:blank", re.IGNORECASE)


def is_boilerplate(text: str) -> bool:
    t = text.strip()
    return any(p.search(t) for p in BOILERPLATE_PATTERNS)


def run_visual_top(run: TextRun, cfg: ConverterConfig) -> float:
    """Baseline plus an approximate cap height."""
    return run.baseline_y + run.size_or(cfg.default_font_size) * cfg.cap_height_ratio


def in_edge_band(y: float, page_height: float, cfg: ConverterConfig) -> bool:
    return y < cfg.footer_height or y > page_height - cfg.header_height


def keep_run(
    run: TextRun,
    page_height: float,
    base_font_size: float,
    cfg: ConverterConfig,
) -> bool:
    """Decide whether a single non-blank run survives furniture filtering."""
    if in_edge_band(run_visual_top(run, cfg), page_height, cfg):
        if is_boilerplate(run.content):
            return False
        if run.size_or(cfg.default_font_size) < base_font_size * cfg.small_font_ratio:
            return False

    if NO_RENDER_PATTERN.search(run.content):
        return False
    return True


def filter_runs(
    runs: Iterable[TextRun],
    page_height: float,
    base_font_size: float,
    cfg: ConverterConfig,
) -> list[TextRun]:
    """Return the runs that are neither blank nor page furniture, in input order."""
    kept: list[TextRun] = []
    dropped = 0
    for run in runs:
        if not run.content or not run.content.strip():
            continue
        if keep_run(run, page_height, base_font_size, cfg):
            kept.append(run)
        else:
            dropped += 1

    if dropped:
        logger.debug("Dropped %d header/footer runs", dropped)
    return kept


def keep_image(placement: ImagePlacement, page_height: float, cfg: ConverterConfig) -> bool:
    margin = cfg.image_edge_margin
    return margin <= placement.visual_top <= page_height - margin


def filter_images(
    placements: Iterable[ImagePlacement],
    page_height: float,
    cfg: ConverterConfig,
) -> list[ImagePlacement]:
    return [p for p in placements if keep_image(p, page_height, cfg)]
