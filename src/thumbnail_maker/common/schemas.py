"""Pydantic schemas for thumbnail requests."""

from collections.abc import Sequence
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .color import Color
from .errors import InvalidDimensionError, WatermarkConfigError

# ─────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────


class ResizeMode(StrEnum):
    """How the source aspect ratio relates to the target box."""

    FIT = "fit"  # fit within WxH, preserve aspect
    COVER = "cover"  # fill WxH, crop the overflow
    CONTAIN = "contain"  # like fit, but never enlarge
    PAD = "pad"  # fit, then pad to exactly WxH
    CROP = "crop"  # fit, crop-to-fill raster strategy


class Anchor(StrEnum):
    """Nine reference points used to place one rectangle inside another."""

    CENTER = "center"
    TOP_LEFT = "top_left"
    TOP = "top"
    TOP_RIGHT = "top_right"
    LEFT = "left"
    RIGHT = "right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM = "bottom"
    BOTTOM_RIGHT = "bottom_right"


class RasterMode(StrEnum):
    """Mechanical resize strategy the resize modes collapse into."""

    MAX = "max"
    CROP = "crop"


# ─────────────────────────────────────────────────────────────
# Output format
# ─────────────────────────────────────────────────────────────


class OutputFormat(BaseModel):
    """Encoder selection.

    ``kind`` is matched case-insensitively; ``"png"`` selects the lossless
    encoder and anything else falls back to JPEG.
    """

    kind: str = Field(default="jpeg", description="jpeg | png")
    quality: int = Field(default=85, ge=1, le=100, description="JPEG quality")
    compression_level: int = Field(default=6, ge=0, le=9, description="PNG zlib level")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def jpeg(cls, quality: int = 85) -> "OutputFormat":
        return cls(kind="jpeg", quality=quality)

    @classmethod
    def png(cls, level: int = 6) -> "OutputFormat":
        return cls(kind="png", compression_level=level)

    @property
    def is_png(self) -> bool:
        return self.kind.lower() == "png"

    @property
    def pil_format(self) -> str:
        """Pillow format name for this output."""
        return "PNG" if self.is_png else "JPEG"


# ─────────────────────────────────────────────────────────────
# Watermark
# ─────────────────────────────────────────────────────────────


class WatermarkSpec(BaseModel):
    """Text watermark drawn onto the thumbnail.

    A watermark with blank text or ``opacity <= 0`` is inert and never drawn.
    Opacity is expected to be baked into ``color.a`` (see :meth:`text_mark`);
    it is kept on the model so a draw-time blend can use it later.
    """

    text: str = ""
    font_size: float = Field(default=16.0, gt=0)
    opacity: float = 0.35
    anchor: Anchor = Anchor.BOTTOM_RIGHT
    margin: int = 8
    font_family: str = "Arial"
    color: Color = Color.WHITE

    model_config = ConfigDict(frozen=True)

    @field_validator("opacity")
    @classmethod
    def validate_opacity(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise WatermarkConfigError(f"Opacity must be between 0 and 1, got {v}")
        return v

    @field_validator("color", mode="before")
    @classmethod
    def coerce_color(cls, v: object) -> object:
        return _coerce_color(v)

    @classmethod
    def none(cls) -> "WatermarkSpec":
        return cls(text="", opacity=0.0)

    @classmethod
    def text_mark(
        cls,
        text: str,
        size: float = 16.0,
        opacity: float = 0.35,
        anchor: Anchor = Anchor.BOTTOM_RIGHT,
        margin: int = 8,
        font_family: str = "Arial",
        color: Color | None = None,
    ) -> "WatermarkSpec":
        """Create a text watermark.

        When no color is given the opacity is baked into white's alpha.

        Raises:
            WatermarkConfigError: opacity outside [0, 1]
        """
        if not 0.0 <= opacity <= 1.0:
            raise WatermarkConfigError(f"Opacity must be between 0 and 1, got {opacity}")
        return cls(
            text=text,
            font_size=size,
            opacity=opacity,
            anchor=anchor,
            margin=margin,
            font_family=font_family,
            color=color or Color(r=255, g=255, b=255, a=int(opacity * 255)),
        )

    @property
    def is_active(self) -> bool:
        return bool(self.text.strip()) and self.opacity > 0


# ─────────────────────────────────────────────────────────────
# Thumbnail request
# ─────────────────────────────────────────────────────────────


class ThumbnailConfig(BaseModel):
    """Parameters for one thumbnail request.

    Attributes:
        width: Target box width in pixels (must be > 0 when processed)
        height: Target box height in pixels (must be > 0 when processed)
        mode: Resize policy
        anchor: Crop/pad anchor
        auto_orient: Apply and clear the EXIF orientation tag
        strip_metadata: Drop EXIF/ICC/XMP from the in-memory image
        background: Canvas color; setting it forces a canvas in any mode
        output: Encoder selection
        watermark: Text watermark (inert by default)
        prevent_upscale: Clamp the scale factor to 1.0 for every mode
        watermark_padded: Also draw the watermark when a canvas is used,
            after compositing. Off by default: canvas output carries no
            watermark.
    """

    width: int
    height: int
    mode: ResizeMode = ResizeMode.FIT
    anchor: Anchor = Anchor.CENTER
    auto_orient: bool = True
    strip_metadata: bool = True
    background: Color | None = None
    output: OutputFormat = Field(default_factory=OutputFormat)
    watermark: WatermarkSpec = Field(default_factory=WatermarkSpec.none)
    prevent_upscale: bool = False
    watermark_padded: bool = False

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("background", mode="before")
    @classmethod
    def coerce_background(cls, v: object) -> object:
        return _coerce_color(v)

    @property
    def uses_canvas(self) -> bool:
        """Whether the result is composited onto a WxH background canvas."""
        return self.mode is ResizeMode.PAD or self.background is not None

    def ensure_valid_dimensions(self) -> None:
        """Raise InvalidDimensionError unless width and height are positive."""
        if self.width <= 0 or self.height <= 0:
            raise InvalidDimensionError(
                f"Width/Height must be > 0, got {self.width}x{self.height}"
            )


def _coerce_color(v: object) -> object:
    if isinstance(v, str):
        return Color.from_hex(v)
    if isinstance(v, Sequence) and not isinstance(v, (bytes, bytearray)):
        return Color.from_rgba(list(v))
    return v
