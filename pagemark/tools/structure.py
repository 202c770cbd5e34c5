"""Assemble line strings and classify headings by relative font size.

Heading levels come purely from how much larger a line's biggest run is
than the page's base size:

    >= 1.8x  -> "# "
    >= 1.4x  -> "## "
    >= 1.15x -> "### "

and only when the difference from the base size exceeds one unit, so a line
at (almost) exactly body size never becomes a heading through float noise.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from pagemark.config import ConverterConfig
from pagemark.models.page import Line, ProcessedLine, TextRun
from pagemark.tools.lines import sort_runs

logger = logging.getLogger(__name__)


def assemble_text(runs: Sequence[TextRun], base_font_size: float, cfg: ConverterConfig) -> str:
    """Concatenate runs (already in x order), inserting one space at wide gaps.

    A gap counts as a word break when it exceeds ``space_gap_ratio`` times
    the font size of the run that follows it.
    """
    parts: list[str] = []
    last_x_end: float | None = None
    for run in runs:
        if last_x_end is not None:
            gap = run.x - last_x_end
            if gap > run.size_or(base_font_size) * cfg.space_gap_ratio:
                parts.append(" ")
        parts.append(run.content)
        last_x_end = run.x + run.advance
    return "".join(parts)


def line_extent(runs: Sequence[TextRun]) -> float:
    """Max x-extent minus min x-start over the runs."""
    if not runs:
        return 0.0
    start = min(r.x for r in runs)
    end = max(r.x + r.advance for r in runs)
    return end - start


def max_font_size(runs: Iterable[TextRun]) -> float:
    return max((r.size_or(0.0) for r in runs), default=0.0)


def heading_level(font_size: float, base_font_size: float, cfg: ConverterConfig) -> int | None:
    if abs(font_size - base_font_size) <= cfg.heading_min_delta:
        return None
    if font_size >= base_font_size * cfg.h1_ratio:
        return 1
    if font_size >= base_font_size * cfg.h2_ratio:
        return 2
    if font_size >= base_font_size * cfg.h3_ratio:
        return 3
    return None


def heading_prefix(level: int | None) -> str:
    return "#" * level + " " if level else ""


def process_line(line: Line, base_font_size: float, cfg: ConverterConfig) -> ProcessedLine:
    if line.is_image:
        return ProcessedLine(kind="image", y=line.y, image_id=line.image_id)

    runs = sort_runs(line)
    size = max_font_size(runs)
    return ProcessedLine(
        kind="text",
        y=line.y,
        text=assemble_text(runs, base_font_size, cfg),
        prefix=heading_prefix(heading_level(size, base_font_size, cfg)),
        line_width=line_extent(runs),
        font_size=size,
    )


def process_lines(
    lines: Iterable[Line],
    base_font_size: float,
    cfg: ConverterConfig,
) -> tuple[list[ProcessedLine], float]:
    """Process every line and return them with the page's max text line width."""
    processed = [process_line(line, base_font_size, cfg) for line in lines]
    max_width = max(
        (p.line_width for p in processed if p.kind == "text"),
        default=0.0,
    )
    headings = sum(1 for p in processed if p.is_heading)
    if headings:
        logger.debug("Classified %d heading lines", headings)
    return processed, max_width
