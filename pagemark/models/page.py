"""Per-page data models for the layout reconstruction pipeline.

Everything a page source hands to the converter (text runs, the operator
stream, the image resolver) and every intermediate structure the pipeline
derives from it (placements, lines, processed lines, font statistics).

Coordinates are page-space: origin at the bottom-left, y increasing upward.
Pydantic models are frozen; operator and image-source variants are frozen
dataclasses because they carry raw bytes and Pillow images.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Literal, Sequence, Union

from PIL import Image
from pydantic import BaseModel, Field

Matrix = tuple[float, float, float, float, float, float]

IDENTITY: Matrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

DEFAULT_FONT_SIZE = 10.0


class TextRun(BaseModel, frozen=True):
    """A positioned piece of text as produced by the text-content source."""
    content: str
    transform: Matrix = IDENTITY  # a, b, c, d, e (x), f (baseline y)
    height: float | None = None
    width: float | None = None

    @property
    def x(self) -> float:
        return self.transform[4]

    @property
    def baseline_y(self) -> float:
        return self.transform[5]

    def size_or(self, fallback: float) -> float:
        """Run height, else the vertical scale of its transform, else fallback."""
        return self.height or self.transform[3] or fallback

    @property
    def font_size(self) -> float:
        return self.size_or(DEFAULT_FONT_SIZE)

    @property
    def advance(self) -> float:
        return self.width or 0.0


# ── Operator stream ─────────────────────────────────────────────


@dataclass(frozen=True)
class SaveState:
    """Push the current transform."""


@dataclass(frozen=True)
class RestoreState:
    """Pop the last saved transform."""


@dataclass(frozen=True)
class ConcatTransform:
    """Concatenate a 6-element affine matrix onto the current transform."""
    matrix: Matrix


@dataclass(frozen=True)
class PaintNamedImage:
    """Paint an external image resource looked up by name."""
    name: str


@dataclass(frozen=True)
class PaintInlineImage:
    """Paint an image whose payload travels inside the stream."""
    payload: ImageSource


Operator = Union[SaveState, RestoreState, ConcatTransform, PaintNamedImage, PaintInlineImage]


# ── Image sources ───────────────────────────────────────────────


class ColorKind(IntEnum):
    """Color-space tag attached to raw image samples."""
    GRAYSCALE = 1
    RGB = 2
    CMYK = 3


@dataclass(frozen=True)
class DecodedImage:
    """An image the decoder already turned into a drawable raster."""
    raster: Image.Image

    @property
    def width(self) -> int:
        return self.raster.width

    @property
    def height(self) -> int:
        return self.raster.height


@dataclass(frozen=True)
class RawImage:
    """Raw samples plus a color-space tag. ``kind`` may be any int; unknown
    values go through the best-effort path."""
    data: bytes
    width: int
    height: int
    kind: int = ColorKind.RGB


ImageSource = Union[DecodedImage, RawImage]

ImageResolver = Callable[[str], Union[ImageSource, None]]


def _no_images(name: str) -> ImageSource | None:
    raise LookupError(f"No image resolver configured (requested {name!r})")


@dataclass(frozen=True)
class PageContent:
    """One page as exposed by the upstream document container."""
    page_number: int  # 1-based
    width: float
    height: float
    text_runs: Sequence[TextRun] = ()
    operators: Sequence[Any] = ()
    resolve_image: ImageResolver = field(default=_no_images, repr=False)


# ── Derived structures ──────────────────────────────────────────


class ImagePlacement(BaseModel, frozen=True):
    """An image paint resolved to page space by the transform tracker."""
    id: str  # pdf_img_<page>_<op index>
    width_px: int
    height_px: int
    matrix: Matrix
    visual_top: float


class PageFontStats(BaseModel, frozen=True):
    """Character counts per rounded font size, in first-seen order."""
    counts: dict[int, int] = Field(default_factory=dict)
    base_size: float = DEFAULT_FONT_SIZE


@dataclass(frozen=True)
class Line:
    """A text line (runs sharing a y-cluster) or a single image placement."""
    y: float
    kind: Literal["text", "image"]
    runs: tuple[TextRun, ...] = ()
    image_id: str = ""

    @property
    def is_image(self) -> bool:
        return self.kind == "image"


class ProcessedLine(BaseModel, frozen=True):
    """A line after run ordering and string assembly.

    Image lines carry only ``image_id``; the text fields stay at defaults.
    """
    kind: Literal["text", "image"]
    y: float
    text: str = ""
    prefix: str = ""  # "# ", "## ", "### " or ""
    line_width: float = 0.0
    font_size: float = 0.0
    image_id: str = ""

    @property
    def is_heading(self) -> bool:
        return bool(self.prefix)
