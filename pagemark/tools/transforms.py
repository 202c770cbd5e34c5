"""Replay a page's operator stream to place painted images.

Maintains the current transformation matrix and a save/restore stack the
same way a content-stream interpreter does. Each image paint is resolved
(named resources through the page's resolver, inline payloads directly) and
positioned by projecting the unit square through the current matrix.

Matrices are ``(a, b, c, d, e, f)``, mapping ``(x, y)`` to
``(a*x + c*y + e, b*x + d*y + f)``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from pagemark.errors import ConversionError
from pagemark.models.page import (
    IDENTITY,
    ConcatTransform,
    ImagePlacement,
    ImageSource,
    Matrix,
    PageContent,
    PaintInlineImage,
    PaintNamedImage,
    RestoreState,
    SaveState,
)

logger = logging.getLogger(__name__)

UNIT_SQUARE = ((0.0, 0.0), (0.0, 1.0), (1.0, 0.0), (1.0, 1.0))


def compose(current: Matrix, incoming: Matrix) -> Matrix:
    """Return ``current ∘ incoming``: apply ``incoming`` first, then ``current``."""
    ca, cb, cc, cd, ce, cf = current
    ia, ib, ic, id_, ie, if_ = incoming
    return (
        ca * ia + cc * ib,
        cb * ia + cd * ib,
        ca * ic + cc * id_,
        cb * ic + cd * id_,
        ca * ie + cc * if_ + ce,
        cb * ie + cd * if_ + cf,
    )


def apply(matrix: Matrix, x: float, y: float) -> tuple[float, float]:
    a, b, c, d, e, f = matrix
    return a * x + c * y + e, b * x + d * y + f


def visual_top(matrix: Matrix) -> float:
    """Highest page-space y of the unit square under ``matrix``."""
    return max(apply(matrix, x, y)[1] for x, y in UNIT_SQUARE)


def as_matrix(values: Sequence[float], page_index: int | None = None) -> Matrix:
    """Validate a concatenate-transform argument list."""
    if len(values) != 6:
        raise ConversionError(
            f"Transform needs 6 values, got {len(values)}", page_index=page_index,
        )
    try:
        return tuple(float(v) for v in values)  # type: ignore[return-value]
    except (TypeError, ValueError) as e:
        raise ConversionError(f"Malformed transform {values!r}: {e}", page_index=page_index)


@dataclass(frozen=True)
class TrackedImage:
    """A resolved image together with where it lands on the page."""
    placement: ImagePlacement
    source: ImageSource


@dataclass
class TrackingResult:
    images: list[TrackedImage] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def image_id(page_number: int, op_index: int) -> str:
    return f"pdf_img_{page_number}_{op_index}"


def track_images(page: PageContent) -> TrackingResult:
    """Walk the operator stream and collect every paintable image.

    Unknown operators are ignored. A restore with an empty stack keeps the
    current matrix. An image that fails to resolve is logged, noted in
    ``warnings`` and skipped; the rest of the page continues.

    Args:
        page: The page whose ``operators`` and ``resolve_image`` are used.

    Returns:
        TrackingResult with images in paint order.
    """
    result = TrackingResult()
    ctm: Matrix = IDENTITY
    stack: list[Matrix] = []
    page_index = page.page_number - 1

    for i, op in enumerate(page.operators):
        if isinstance(op, SaveState):
            stack.append(ctm)
        elif isinstance(op, RestoreState):
            if stack:
                ctm = stack.pop()
        elif isinstance(op, ConcatTransform):
            ctm = compose(ctm, as_matrix(op.matrix, page_index))
        elif isinstance(op, (PaintNamedImage, PaintInlineImage)):
            img_id = image_id(page.page_number, i)
            try:
                if isinstance(op, PaintNamedImage):
                    source = page.resolve_image(op.name)
                else:
                    source = op.payload
                if source is None:
                    logger.debug("Image %s resolved to nothing, skipping", img_id)
                    continue
                placement = ImagePlacement(
                    id=img_id,
                    width_px=source.width,
                    height_px=source.height,
                    matrix=ctm,
                    visual_top=visual_top(ctm),
                )
            except Exception as e:
                msg = f"Failed to resolve image {img_id} ({_op_label(op)}): {e}"
                logger.warning(msg)
                result.warnings.append(msg)
                continue

            result.images.append(TrackedImage(placement=placement, source=source))

    logger.debug(
        "Page %d: %d operators, %d images placed",
        page.page_number, len(page.operators), len(result.images),
    )
    return result


def _op_label(op: PaintNamedImage | PaintInlineImage) -> str:
    if isinstance(op, PaintNamedImage):
        return op.name
    return "inline"
