"""Utilities - font lookup and profiling."""

from .fonts import (
    FALLBACK_FAMILIES,
    FontRegistry,
    SystemFontRegistry,
    default_font_registry,
    resolve_font,
)
from .profiling import timed

__all__ = [
    "FALLBACK_FAMILIES",
    "FontRegistry",
    "SystemFontRegistry",
    "default_font_registry",
    "resolve_font",
    "timed",
]
