"""Geometry, raster primitives and watermark placement."""

from .geometry import (
    Alignment,
    Rect,
    ThumbnailLayout,
    anchor_alignment,
    compute_crop_rect,
    compute_layout,
    compute_pad_rect,
    compute_scale,
    compute_target_size,
    resolve_anchor_offset,
    resolve_raster_mode,
)
from .raster import SourceImage
from .watermark import apply_text_watermark, compute_watermark_position

__all__ = [
    "Alignment",
    "Rect",
    "SourceImage",
    "ThumbnailLayout",
    "anchor_alignment",
    "apply_text_watermark",
    "compute_crop_rect",
    "compute_layout",
    "compute_pad_rect",
    "compute_scale",
    "compute_target_size",
    "compute_watermark_position",
    "resolve_anchor_offset",
    "resolve_raster_mode",
]
