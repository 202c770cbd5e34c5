"""Merge consecutive body lines into paragraphs.

A plain line joins the open paragraph unless the line before it was short
(under ``paragraph_width_ratio`` of the page's widest line), which usually
marks a paragraph end. Headings and images always close the open paragraph.
"""

from __future__ import annotations

import logging
import re
from typing import Mapping, Sequence

from pagemark.config import ConverterConfig
from pagemark.models.page import ProcessedLine
from pagemark.tools.markdown import Block, image_reference

logger = logging.getLogger(__name__)

# CJK unified ideographs, CJK symbols/punctuation, fullwidth forms
_CJK_RE = re.compile("[\u4e00-\u9fa5\u3000-\u303f\uff00-\uffef]")


def is_cjk(char: str) -> bool:
    return bool(char) and bool(_CJK_RE.match(char))


def join_lines(paragraph: str, line: str) -> str:
    """Append ``line`` to ``paragraph`` with a script-aware separator.

    CJK meets CJK with no separator; otherwise a single space unless one
    side already ends/starts with whitespace.
    """
    if not paragraph:
        return line
    if not line:
        return paragraph
    last, first = paragraph[-1], line[0]
    if is_cjk(last) and is_cjk(first):
        return paragraph + line
    if last.isspace() or first.isspace():
        return paragraph + line
    return paragraph + " " + line


def assemble_blocks(
    lines: Sequence[ProcessedLine],
    max_line_width: float,
    image_handles: Mapping[str, str],
    cfg: ConverterConfig,
) -> list[Block]:
    """Turn ordered, classified lines into Markdown blocks.

    Args:
        lines: Processed lines in reading order.
        max_line_width: Widest text line on the page.
        image_handles: Image id -> resource handle. Image lines without a
            handle produce no block.
        cfg: Converter settings.

    Returns:
        Blocks in emission order.
    """
    blocks: list[Block] = []
    paragraph = ""

    def flush() -> None:
        nonlocal paragraph
        if paragraph:
            blocks.append(Block(kind="paragraph", text=paragraph))
            paragraph = ""

    for index, line in enumerate(lines):
        if line.kind == "image":
            flush()
            handle = image_handles.get(line.image_id)
            if handle:
                blocks.append(Block(kind="image", text=image_reference(handle)))
            continue

        if line.is_heading:
            flush()
            blocks.append(Block(kind="heading", text=line.prefix + line.text))
            continue

        if not paragraph:
            paragraph = line.text
            continue

        prev_width = lines[index - 1].line_width if index > 0 else 0.0
        if prev_width < max_line_width * cfg.paragraph_width_ratio:
            flush()
            paragraph = line.text
        else:
            paragraph = join_lines(paragraph, line.text)

    flush()
    logger.debug("Assembled %d blocks from %d lines", len(blocks), len(lines))
    return blocks
