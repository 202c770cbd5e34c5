"""Converter settings.

Defaults are the layout heuristics' fixed constants. Any of them can be
overridden from the environment (or a .env file) with a ``PAGEMARK_``
prefix, e.g. ``PAGEMARK_HEADER_HEIGHT=60``. One config object is shared by
every page of a document.
"""

from __future__ import annotations

import logging
import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

ENV_PREFIX = "PAGEMARK_"


class ConverterConfig(BaseModel, frozen=True):
    """Tuning constants for layout reconstruction."""
    # Header/footer bands, in page-space units
    header_height: float = 70.0
    footer_height: float = 70.0
    image_edge_margin: float = 20.0

    line_tolerance: float = 4.0  # y-clustering tolerance
    default_font_size: float = 10.0
    cap_height_ratio: float = 0.8  # visual top = baseline + ratio * size
    space_gap_ratio: float = 0.25
    small_font_ratio: float = 0.9  # edge runs below this * base are dropped
    paragraph_width_ratio: float = 0.85

    h1_ratio: float = 1.8
    h2_ratio: float = 1.4
    h3_ratio: float = 1.15
    heading_min_delta: float = 1.0

    image_handle_mode: Literal["file", "data"] = "file"
    assets_dirname: str = "assets"


def load_config(**overrides) -> ConverterConfig:
    """Build a ConverterConfig from PAGEMARK_* env vars plus explicit overrides."""
    load_dotenv()

    values: dict[str, object] = {}
    for name in ConverterConfig.model_fields:
        raw = os.environ.get(ENV_PREFIX + name.upper())
        if raw is not None and raw.strip():
            values[name] = raw.strip()

    if values:
        logger.debug("Config overrides from environment: %s", sorted(values))

    values.update({k: v for k, v in overrides.items() if v is not None})
    return ConverterConfig(**values)
