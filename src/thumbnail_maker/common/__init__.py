"""Common module - color, schemas and errors."""

from .color import Color
from .errors import (
    ColorParseError,
    DecodeError,
    FontUnavailableError,
    InvalidDimensionError,
    ThumbnailError,
    WatermarkConfigError,
)
from .schemas import (
    Anchor,
    OutputFormat,
    RasterMode,
    ResizeMode,
    ThumbnailConfig,
    WatermarkSpec,
)

__all__ = [
    "Anchor",
    "Color",
    "ColorParseError",
    "DecodeError",
    "FontUnavailableError",
    "InvalidDimensionError",
    "OutputFormat",
    "RasterMode",
    "ResizeMode",
    "ThumbnailConfig",
    "ThumbnailError",
    "WatermarkConfigError",
    "WatermarkSpec",
]
