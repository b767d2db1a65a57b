"""thumbnail_maker - Thumbnail geometry and preview image pipeline."""

from .algo.geometry import (
    Rect,
    ThumbnailLayout,
    compute_layout,
    compute_target_size,
    resolve_anchor_offset,
    resolve_raster_mode,
)
from .algo.watermark import compute_watermark_position
from .common.color import Color
from .common.errors import (
    ColorParseError,
    DecodeError,
    FontUnavailableError,
    InvalidDimensionError,
    ThumbnailError,
    WatermarkConfigError,
)
from .common.schemas import (
    Anchor,
    OutputFormat,
    RasterMode,
    ResizeMode,
    ThumbnailConfig,
    WatermarkSpec,
)
from .pipeline import (
    make_thumbnail,
    make_thumbnail_async,
    write_thumbnail,
    write_thumbnail_async,
)
from .utils.fonts import FontRegistry, SystemFontRegistry

__version__ = "0.1.0"

__all__ = [
    "Anchor",
    "Color",
    "ColorParseError",
    "DecodeError",
    "FontRegistry",
    "FontUnavailableError",
    "InvalidDimensionError",
    "OutputFormat",
    "RasterMode",
    "Rect",
    "ResizeMode",
    "SystemFontRegistry",
    "ThumbnailConfig",
    "ThumbnailError",
    "ThumbnailLayout",
    "WatermarkConfigError",
    "WatermarkSpec",
    "__version__",
    "compute_layout",
    "compute_target_size",
    "compute_watermark_position",
    "make_thumbnail",
    "make_thumbnail_async",
    "resolve_anchor_offset",
    "resolve_raster_mode",
    "write_thumbnail",
    "write_thumbnail_async",
]
