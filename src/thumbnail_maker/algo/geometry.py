"""Pure resize-policy geometry.

Every sizing and placement decision of the thumbnail pipeline is made here,
without touching pixels:

- the scale factor and destination size for each resize mode
- the mechanical raster strategy (fit within vs crop to fill)
- anchor-relative offsets between two rectangles
- the crop window, pad canvas placement and the combined layout

Rounding uses the built-in ``round()``, which is round-half-to-even
(``round(2.5) == 2``, ``round(3.5) == 4``). Pixel-exact fixtures depend on it.
"""

from enum import Enum
from typing import NamedTuple, assert_never, overload

from loguru import logger

from ..common.errors import InvalidDimensionError
from ..common.schemas import Anchor, RasterMode, ResizeMode, ThumbnailConfig


class Alignment(Enum):
    START = "start"
    CENTER = "center"
    END = "end"


class Rect(NamedTuple):
    x: int
    y: int
    width: int
    height: int

    @property
    def box(self) -> tuple[int, int, int, int]:
        """(left, top, right, bottom) as Pillow expects."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)


class ThumbnailLayout(NamedTuple):
    """All geometric decisions for one request.

    Attributes:
        resize: Size the source is resampled to
        raster_mode: Mechanical strategy selected by the resize mode
        crop: Window kept from the resized image (crop raster mode only)
        canvas: Canvas size when a background canvas is used
        placement: Where the resized (and cropped) image lands on the canvas
        output_size: Final encoded dimensions
    """

    resize: tuple[int, int]
    raster_mode: RasterMode
    crop: Rect | None
    canvas: tuple[int, int] | None
    placement: Rect | None
    output_size: tuple[int, int]


# ─────────────────────────────────────────────────────────────
# Scale and target size
# ─────────────────────────────────────────────────────────────


def compute_scale(src_w: int, src_h: int, config: ThumbnailConfig) -> float:
    """Scale factor applied to both source axes."""
    if src_w <= 0 or src_h <= 0:
        raise InvalidDimensionError(f"Source dimensions must be > 0, got {src_w}x{src_h}")

    rw = config.width / src_w
    rh = config.height / src_h

    match config.mode:
        case ResizeMode.FIT | ResizeMode.PAD | ResizeMode.CROP:
            scale = min(rw, rh)
        case ResizeMode.COVER:
            scale = max(rw, rh)
        case ResizeMode.CONTAIN:
            scale = min(1.0, min(rw, rh))
        case _:
            assert_never(config.mode)

    if config.prevent_upscale:
        scale = min(1.0, scale)
    return scale


def compute_target_size(src_w: int, src_h: int, config: ThumbnailConfig) -> tuple[int, int]:
    """Destination size for the resize step.

    Each axis is ``max(1, round(src * scale))``, so a degenerate scale never
    yields an empty image.
    """
    scale = compute_scale(src_w, src_h, config)
    return max(1, round(src_w * scale)), max(1, round(src_h * scale))


def resolve_raster_mode(mode: ResizeMode) -> RasterMode:
    match mode:
        case ResizeMode.FIT | ResizeMode.CONTAIN | ResizeMode.PAD:
            return RasterMode.MAX
        case ResizeMode.COVER | ResizeMode.CROP:
            return RasterMode.CROP
        case _:
            assert_never(mode)


# ─────────────────────────────────────────────────────────────
# Anchors
# ─────────────────────────────────────────────────────────────


def anchor_alignment(anchor: Anchor) -> tuple[Alignment, Alignment]:
    """(horizontal, vertical) alignment of an anchor."""
    match anchor:
        case Anchor.TOP_LEFT:
            return Alignment.START, Alignment.START
        case Anchor.TOP:
            return Alignment.CENTER, Alignment.START
        case Anchor.TOP_RIGHT:
            return Alignment.END, Alignment.START
        case Anchor.LEFT:
            return Alignment.START, Alignment.CENTER
        case Anchor.CENTER:
            return Alignment.CENTER, Alignment.CENTER
        case Anchor.RIGHT:
            return Alignment.END, Alignment.CENTER
        case Anchor.BOTTOM_LEFT:
            return Alignment.START, Alignment.END
        case Anchor.BOTTOM:
            return Alignment.CENTER, Alignment.END
        case Anchor.BOTTOM_RIGHT:
            return Alignment.END, Alignment.END
        case _:
            assert_never(anchor)


def _align(alignment: Alignment, outer: float, inner: float, fractional: bool) -> float:
    match alignment:
        case Alignment.START:
            return 0
        case Alignment.END:
            return outer - inner
        case Alignment.CENTER:
            half = (outer - inner) / 2
            # int() truncates toward zero, also for overflowing content
            return half if fractional else int(half)
        case _:
            assert_never(alignment)


@overload
def resolve_anchor_offset(
    anchor: Anchor, outer_w: int, outer_h: int, inner_w: int, inner_h: int
) -> tuple[int, int]: ...


@overload
def resolve_anchor_offset(
    anchor: Anchor,
    outer_w: float,
    outer_h: float,
    inner_w: float,
    inner_h: float,
    *,
    fractional: bool,
) -> tuple[float, float]: ...


def resolve_anchor_offset(
    anchor: Anchor,
    outer_w: float,
    outer_h: float,
    inner_w: float,
    inner_h: float,
    *,
    fractional: bool = False,
) -> tuple[float, float]:
    """Offset of an inner rectangle placed inside an outer one at ``anchor``.

    Used for pad placement, crop windows and watermark text alike. Centered
    axes use integer halving (truncated toward zero) unless ``fractional``.
    An inner rectangle larger than the outer one yields a negative offset;
    it is not clamped.

    Example:
        >>> resolve_anchor_offset(Anchor.CENTER, 100, 100, 40, 40)
        (30, 30)
    """
    h_align, v_align = anchor_alignment(anchor)
    return (
        _align(h_align, outer_w, inner_w, fractional),
        _align(v_align, outer_h, inner_h, fractional),
    )


# ─────────────────────────────────────────────────────────────
# Rectangles
# ─────────────────────────────────────────────────────────────


def compute_crop_rect(anchor: Anchor, image_w: int, image_h: int, box_w: int, box_h: int) -> Rect:
    """Window of the resized image kept by the crop-to-fill strategy.

    Axes larger than the box are cut down to it at the anchor; smaller axes
    are kept whole.
    """
    crop_w = min(image_w, box_w)
    crop_h = min(image_h, box_h)
    x, y = resolve_anchor_offset(anchor, image_w, image_h, crop_w, crop_h)
    return Rect(x, y, crop_w, crop_h)


def compute_pad_rect(
    anchor: Anchor, canvas_w: int, canvas_h: int, image_w: int, image_h: int
) -> Rect:
    """Where an image lands on a background canvas."""
    x, y = resolve_anchor_offset(anchor, canvas_w, canvas_h, image_w, image_h)
    return Rect(x, y, image_w, image_h)


def compute_layout(src_w: int, src_h: int, config: ThumbnailConfig) -> ThumbnailLayout:
    resize = compute_target_size(src_w, src_h, config)
    raster_mode = resolve_raster_mode(config.mode)

    crop: Rect | None = None
    content = resize
    if raster_mode is RasterMode.CROP:
        crop = compute_crop_rect(config.anchor, *resize, config.width, config.height)
        content = crop.size

    canvas: tuple[int, int] | None = None
    placement: Rect | None = None
    output_size = content
    if config.uses_canvas:
        canvas = (config.width, config.height)
        placement = compute_pad_rect(config.anchor, *canvas, *content)
        output_size = canvas

    layout = ThumbnailLayout(
        resize=resize,
        raster_mode=raster_mode,
        crop=crop,
        canvas=canvas,
        placement=placement,
        output_size=output_size,
    )
    logger.debug(f"Layout for {src_w}x{src_h} ({config.mode}): {layout}")
    return layout
