"""Estimate a page's base (body) font size.

Runs before any filtering so header/footer text can't skew the estimate.
The most frequent rounded size wins, weighted by character count.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable

from pagemark.models.page import DEFAULT_FONT_SIZE, PageFontStats, TextRun

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3)."""
    return math.floor(value + 0.5)


def estimate_font_stats(
    runs: Iterable[TextRun],
    default_size: float = DEFAULT_FONT_SIZE,
) -> PageFontStats:
    """Bucket character counts by rounded font size and pick the base size.

    Ties go to the smaller size, so the result depends only on the
    (size, length) pairs and not on run order. An empty page (or one whose
    winning bucket rounds to 0) falls back to ``default_size``.

    Args:
        runs: All text runs on the page, unfiltered.
        default_size: Size used when no run contributes any characters.

    Returns:
        PageFontStats with the per-size counts and the base size.
    """
    counts: dict[int, int] = {}
    for run in runs:
        key = round_half_up(run.size_or(default_size))
        counts[key] = counts.get(key, 0) + len(run.content)

    base = 0
    best = 0
    for size, count in counts.items():
        if count > best or (best and count == best and size < base):
            best = count
            base = size

    base_size = float(base) if base else float(default_size)
    logger.debug("Base font size %.1f from %d size buckets", base_size, len(counts))
    return PageFontStats(counts=counts, base_size=base_size)
