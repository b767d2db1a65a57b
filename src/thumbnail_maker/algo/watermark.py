"""Text watermark placement and drawing."""

from PIL import Image

from ..common.schemas import Anchor, WatermarkSpec
from ..utils.fonts import FontRegistry, default_font_registry, resolve_font
from . import raster
from .geometry import Alignment, anchor_alignment, resolve_anchor_offset


def _inset(alignment: Alignment, margin: int) -> int:
    if alignment is Alignment.START:
        return margin
    if alignment is Alignment.END:
        return -margin
    return 0


def compute_watermark_position(
    anchor: Anchor,
    image_w: int,
    image_h: int,
    text_w: float,
    text_h: float,
    margin: int,
) -> tuple[float, float]:
    """Top-left point of the text box.

    The text box is anchored like any other rectangle, then pushed ``margin``
    pixels inward from every edge it touches. Centered axes are not moved.
    """
    x, y = resolve_anchor_offset(anchor, image_w, image_h, text_w, text_h, fractional=True)
    h_align, v_align = anchor_alignment(anchor)
    return x + _inset(h_align, margin), y + _inset(v_align, margin)


def apply_text_watermark(
    image: Image.Image,
    watermark: WatermarkSpec,
    fonts: FontRegistry | None = None,
) -> Image.Image:
    """Draw ``watermark`` onto ``image`` and return the result.

    Inert watermarks return ``image`` unchanged without any draw call. The
    text is drawn with the color's own alpha; opacity is not applied again.

    Raises:
        FontUnavailableError: no font family could be resolved
    """
    if not watermark.is_active:
        return image

    registry = fonts if fonts is not None else default_font_registry()
    font = resolve_font(registry, watermark.font_family, watermark.font_size)

    text_w, text_h = raster.measure_text(watermark.text, font)
    x, y = compute_watermark_position(
        watermark.anchor, image.width, image.height, text_w, text_h, watermark.margin
    )
    return raster.draw_text(image, watermark.text, font, watermark.color, x, y)
