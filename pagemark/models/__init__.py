from .page import (
    ColorKind,
    ConcatTransform,
    DecodedImage,
    ImagePlacement,
    Line,
    PageContent,
    PageFontStats,
    PaintInlineImage,
    PaintNamedImage,
    ProcessedLine,
    RawImage,
    RestoreState,
    SaveState,
    TextRun,
)
from .result import ConversionResult, ExtractedImage, PageResult

__all__ = [
    "TextRun",
    "SaveState",
    "RestoreState",
    "ConcatTransform",
    "PaintNamedImage",
    "PaintInlineImage",
    "ColorKind",
    "DecodedImage",
    "RawImage",
    "PageContent",
    "ImagePlacement",
    "PageFontStats",
    "Line",
    "ProcessedLine",
    "ExtractedImage",
    "PageResult",
    "ConversionResult",
]
