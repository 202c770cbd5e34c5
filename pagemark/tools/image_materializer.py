"""Turn resolved images into RGBA PNGs and register them as resources.

Handles the two shapes a raster decoder can hand back: an already-decoded
Pillow image, or raw samples tagged with a color space (grayscale, RGB,
CMYK). Each successfully materialized image is registered with the
ImageRegistry, which assigns its handle (a relative asset path or a data:
URI) and keeps the identifier -> handle table for the whole document.
"""

from __future__ import annotations

import base64
import io
import logging
import threading
from pathlib import Path

from PIL import Image, ImageChops, ImageOps

from pagemark.models.page import ColorKind, DecodedImage, ImageSource, RawImage
from pagemark.models.result import ExtractedImage
from pagemark.tools.transforms import TrackedImage

logger = logging.getLogger(__name__)


def _padded(data: bytes, length: int) -> bytes:
    """Trim or zero-pad ``data`` to exactly ``length`` bytes."""
    if len(data) >= length:
        return bytes(data[:length])
    return bytes(data) + b"\x00" * (length - len(data))


def _gray_to_rgba(data: bytes, size: tuple[int, int]) -> Image.Image:
    gray = Image.frombytes("L", size, _padded(data, size[0] * size[1]))
    return gray.convert("RGBA")


def _cmyk_to_rgba(data: bytes, size: tuple[int, int]) -> Image.Image:
    """R = 255 * (1 - C/255) * (1 - K/255), likewise G from M and B from Y."""
    cmyk = Image.frombytes("CMYK", size, _padded(data, size[0] * size[1] * 4))
    c, m, y, k = (ImageOps.invert(band) for band in cmyk.split())
    rgb = Image.merge("RGB", (
        ImageChops.multiply(c, k),
        ImageChops.multiply(m, k),
        ImageChops.multiply(y, k),
    ))
    return rgb.convert("RGBA")


def raw_to_rgba(raw: RawImage) -> Image.Image:
    """Expand raw samples to an opaque RGBA raster according to ``raw.kind``."""
    size = (raw.width, raw.height)
    pixels = raw.width * raw.height
    data = raw.data

    if raw.kind == ColorKind.GRAYSCALE:
        return _gray_to_rgba(data, size)

    if raw.kind == ColorKind.RGB:
        if len(data) == pixels * 4:
            return Image.frombytes("RGBA", size, bytes(data))
        if len(data) == pixels * 3:
            return Image.frombytes("RGB", size, bytes(data)).convert("RGBA")
        logger.debug(
            "RGB image with %d bytes for %d pixels, leaving it blank", len(data), pixels,
        )
        return Image.new("RGBA", size)

    if raw.kind == ColorKind.CMYK:
        return _cmyk_to_rgba(data, size)

    # Unknown tag
    if len(data) == pixels * 4:
        return Image.frombytes("RGBA", size, bytes(data))
    return _gray_to_rgba(data, size)


def to_rgba(source: ImageSource) -> Image.Image:
    """Produce a standalone RGBA raster from either image-source variant."""
    if source.width <= 0 or source.height <= 0:
        raise ValueError(f"Image has no pixels ({source.width}x{source.height})")
    if isinstance(source, DecodedImage):
        return source.raster.convert("RGBA")
    if isinstance(source, RawImage):
        return raw_to_rgba(source)
    raise TypeError(f"Unsupported image source: {type(source).__name__}")


def encode_png(raster: Image.Image) -> bytes:
    buf = io.BytesIO()
    raster.save(buf, format="PNG")
    return buf.getvalue()


class ImageRegistry:
    """Append-only table of registered image resources for one document.

    Ids are only unique within a document, so use a fresh registry per
    conversion. Re-registering an id with different PNG bytes raises.

    ``mode="file"`` hands out ``<assets_dirname>/<id>.png`` paths (written by
    :meth:`write_assets`); ``mode="data"`` embeds the PNG as a data: URI.
    """

    def __init__(self, mode: str = "file", assets_dirname: str = "assets"):
        if mode not in ("file", "data"):
            raise ValueError(f"Unknown image handle mode: {mode!r}")
        self.mode = mode
        self.assets_dirname = assets_dirname
        self._images: dict[str, ExtractedImage] = {}
        self._lock = threading.Lock()

    def handle_for(self, image_id: str, png_data: bytes) -> str:
        if self.mode == "data":
            return "data:image/png;base64," + base64.b64encode(png_data).decode("ascii")
        return f"{self.assets_dirname}/{image_id}.png"

    def register(
        self,
        image_id: str,
        png_data: bytes,
        width: int,
        height: int,
        page_number: int,
    ) -> ExtractedImage:
        """Record a PNG under ``image_id`` and return its inventory entry.

        Registering the same id again with identical bytes returns the
        existing entry.

        Raises:
            ValueError: ``image_id`` is already registered with other data.
        """
        with self._lock:
            existing = self._images.get(image_id)
            if existing is not None:
                if existing.png_data != png_data:
                    raise ValueError(f"Image id {image_id!r} already registered with different data")
                return existing
            entry = ExtractedImage(
                id=image_id,
                src=self.handle_for(image_id, png_data),
                alt=f"Image {image_id}",
                width_px=width,
                height_px=height,
                page_number=page_number,
                png_data=png_data,
            )
            self._images[image_id] = entry
            return entry

    def get(self, image_id: str) -> ExtractedImage | None:
        with self._lock:
            return self._images.get(image_id)

    @property
    def images(self) -> list[ExtractedImage]:
        with self._lock:
            return list(self._images.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._images)

    def write_assets(self, output_dir: str | Path) -> list[Path]:
        """Write file-mode images under ``output_dir/<assets_dirname>/``."""
        if self.mode != "file":
            return []
        assets_dir = Path(output_dir) / self.assets_dirname
        written: list[Path] = []
        for img in self.images:
            if img.png_data is None:
                continue
            assets_dir.mkdir(parents=True, exist_ok=True)
            path = assets_dir / f"{img.id}.png"
            path.write_bytes(img.png_data)
            written.append(path)
        logger.info("Wrote %d image assets to %s", len(written), assets_dir)
        return written


def materialize(
    tracked: TrackedImage,
    page_number: int,
    registry: ImageRegistry,
    warnings: list[str] | None = None,
) -> ExtractedImage | None:
    """Decode one tracked image and register it.

    Returns None (and registers nothing) when decoding fails; the failure is
    logged and appended to ``warnings``.
    """
    img_id = tracked.placement.id
    try:
        raster = to_rgba(tracked.source)
        png = encode_png(raster)
    except Exception as e:
        msg = f"Failed to extract image {img_id}: {e}"
        logger.warning(msg)
        if warnings is not None:
            warnings.append(msg)
        return None

    return registry.register(
        img_id,
        png,
        width=raster.width,
        height=raster.height,
        page_number=page_number,
    )
