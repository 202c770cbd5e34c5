"""Render Markdown blocks into page fragments and page fragments into a document."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal

BLOCK_SEPARATOR = "\n\n"
PAGE_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class Block:
    """One Markdown block: a paragraph, a heading (prefix included) or an image."""
    kind: Literal["paragraph", "heading", "image"]
    text: str


def image_reference(handle: str, alt: str = "Image") -> str:
    return f"![{alt}]({handle})"


def render_page(blocks: Iterable[Block]) -> str:
    """Each block followed by a blank line; whitespace-only pages render empty."""
    text = "".join(block.text + BLOCK_SEPARATOR for block in blocks)
    return text if text.strip() else ""


def render_document(fragments: Iterable[str]) -> str:
    """Join non-empty page fragments, in order, with a blank line between."""
    return PAGE_SEPARATOR.join(f for f in fragments if f.strip())
