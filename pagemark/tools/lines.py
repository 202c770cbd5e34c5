"""Group text runs into visual lines and order everything top to bottom."""

from __future__ import annotations

import logging
from typing import Iterable

from pagemark.config import ConverterConfig
from pagemark.models.page import ImagePlacement, Line, TextRun
from pagemark.tools.run_filter import run_visual_top

logger = logging.getLogger(__name__)


def cluster_text_lines(runs: Iterable[TextRun], cfg: ConverterConfig) -> list[Line]:
    """Assign each run to the first line whose y is within tolerance.

    A run that matches no existing line starts a new one, and its visual top
    becomes that line's canonical y. Lines come back in creation order with
    runs in arrival order.
    """
    clusters: list[tuple[float, list[TextRun]]] = []
    for run in runs:
        y = run_visual_top(run, cfg)
        for line_y, members in clusters:
            if abs(line_y - y) < cfg.line_tolerance:
                members.append(run)
                break
        else:
            clusters.append((y, [run]))

    return [Line(y=y, kind="text", runs=tuple(members)) for y, members in clusters]


def image_lines(placements: Iterable[ImagePlacement]) -> list[Line]:
    return [Line(y=p.visual_top, kind="image", image_id=p.id) for p in placements]


def reading_order(lines: Iterable[Line]) -> list[Line]:
    """Sort by canonical y descending (page-space y grows upward).

    The sort is stable, so equal-y lines keep their incoming order.
    """
    return sorted(lines, key=lambda line: -line.y)


def build_lines(
    runs: Iterable[TextRun],
    placements: Iterable[ImagePlacement],
    cfg: ConverterConfig,
) -> list[Line]:
    """Cluster text, fold in image placements, return lines in reading order."""
    text = cluster_text_lines(runs, cfg)
    images = image_lines(placements)
    ordered = reading_order(text + images)
    logger.debug("%d text lines, %d image lines", len(text), len(images))
    return ordered


def sort_runs(line: Line) -> tuple[TextRun, ...]:
    """Runs of a text line left to right."""
    return tuple(sorted(line.runs, key=lambda r: r.x))
