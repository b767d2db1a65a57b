"""Exception taxonomy for thumbnail generation.

None of these subclass ``ValueError``: pydantic only wraps ``ValueError`` and
``AssertionError`` raised inside validators, so these reach the caller as-is.
"""

from typing_extensions import override


class ThumbnailError(Exception):
    """Base class for every error raised by thumbnail_maker."""

    def __init__(self, message: str = "Thumbnail generation failed."):
        self.message: str = message
        super().__init__(self.message)

    @override
    def __str__(self):
        return self.message


class InvalidDimensionError(ThumbnailError):
    """Target or source width/height is not a positive integer."""


class DecodeError(ThumbnailError):
    """Input bytes are not a decodable raster image."""


class ColorParseError(ThumbnailError):
    """Hex color literal has the wrong length or a non-hex digit."""


class WatermarkConfigError(ThumbnailError):
    """Watermark opacity is outside [0, 1]."""


class FontUnavailableError(ThumbnailError):
    """No usable font family was found after every fallback."""
