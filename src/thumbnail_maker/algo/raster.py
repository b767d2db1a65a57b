"""Pillow-backed codec and raster primitives.

Framework-agnostic, single-responsibility functions. The pipeline only talks
to pixels through this module, which keeps geometry and orchestration
testable with spies on these functions.
"""

import math
from dataclasses import dataclass, field
from io import BytesIO

from loguru import logger
from PIL import ExifTags, Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError
from pillow_heif import register_heif_opener

from ..common.color import Color
from ..common.errors import DecodeError
from ..common.schemas import OutputFormat
from .geometry import Rect

register_heif_opener()

FontType = ImageFont.FreeTypeFont | ImageFont.ImageFont

_METADATA_KEYS = ("exif", "icc_profile", "xmp", "XML:com.adobe.xmp")


@dataclass
class SourceImage:
    """Decoded image plus the metadata profiles read from the input.

    Owned by a single pipeline run and closed at its end.
    """

    image: Image.Image
    exif: Image.Exif = field(default_factory=Image.Exif)
    icc_profile: bytes | None = None
    xmp: bytes | None = None
    format: str | None = None

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def orientation(self) -> int | None:
        value = self.exif.get(ExifTags.Base.Orientation)
        return int(value) if value is not None else None

    def clear_orientation(self) -> None:
        _ = self.exif.pop(ExifTags.Base.Orientation, None)

    def replace_image(self, image: Image.Image) -> None:
        """Swap in a transformed buffer, releasing the previous one."""
        if image is not self.image:
            self.image.close()
            self.image = image

    def strip_metadata(self) -> None:
        _drop_metadata(self.image)
        self.exif = Image.Exif()
        self.icc_profile = None
        self.xmp = None

    def close(self) -> None:
        self.image.close()


def _drop_metadata(image: Image.Image) -> None:
    for key in _METADATA_KEYS:
        _ = image.info.pop(key, None)


def decode(data: bytes) -> SourceImage:
    """Decode encoded image bytes; the format is sniffed by Pillow.

    Raises:
        DecodeError: unrecognized, truncated or corrupt input
    """
    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            exif = img.getexif()
            icc_profile = img.info.get("icc_profile")
            xmp = img.info.get("xmp") or img.info.get("XML:com.adobe.xmp")
            fmt = img.format
            image = _normalize_mode(img)
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
    ) as exc:
        logger.warning(f"Failed to decode image ({len(data)} bytes): {exc}")
        raise DecodeError(f"Unable to decode image: {exc}") from exc

    if isinstance(xmp, str):
        xmp = xmp.encode("utf-8")

    return SourceImage(
        image=image,
        exif=exif,
        icc_profile=icc_profile,
        xmp=xmp,
        format=fmt,
    )


def _normalize_mode(img: Image.Image) -> Image.Image:
    """Detached copy in a mode Lanczos resampling supports."""
    if img.mode in ("RGB", "RGBA", "L", "LA"):
        return img.copy()
    if img.mode == "I" or img.mode.startswith("I;16"):
        # 16-bit samples, scaled down to 8 bits instead of clipped
        with img.convert("I") as wide:
            return wide.point(lambda v: v * (1 / 256)).convert("L")
    has_alpha = "A" in img.getbands() or "transparency" in img.info
    return img.convert("RGBA" if has_alpha else "RGB")


def apply_exif_orientation(image: Image.Image, orientation: int | None = None) -> Image.Image:
    """Rotate/flip pixels to the upright orientation, via ``ImageOps.exif_transpose``.

    ``orientation`` overrides the tag carried by the image itself; when None,
    the image's own EXIF or XMP orientation is used. The returned image is a
    new buffer without the orientation tag.
    """
    if orientation is not None:
        image.getexif()[ExifTags.Base.Orientation] = orientation
    return ImageOps.exif_transpose(image)


def resize(
    image: Image.Image,
    width: int,
    height: int,
    resample: Image.Resampling = Image.Resampling.LANCZOS,
) -> Image.Image:
    if image.size == (width, height):
        return image.copy()
    return image.resize((width, height), resample)


def crop(image: Image.Image, rect: Rect) -> Image.Image:
    return image.crop(rect.box)


def new_canvas(width: int, height: int, color: Color) -> Image.Image:
    return Image.new("RGBA", (width, height), color.as_tuple())


def draw_onto(
    canvas: Image.Image, source: Image.Image, x: int, y: int, alpha: float = 1.0
) -> None:
    """Composite ``source`` onto ``canvas`` in place at (x, y).

    Negative offsets are allowed; the overflow is clipped by the canvas.
    """
    layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    with source.convert("RGBA") as rgba:
        layer.paste(rgba, (x, y))
    if alpha < 1.0:
        mask = layer.getchannel("A").point(lambda v: round(v * alpha))
        layer.putalpha(mask)
    canvas.alpha_composite(layer)
    layer.close()


def measure_text(text: str, font: FontType) -> tuple[int, int]:
    """Extent of ``text`` from the draw origin, in whole pixels."""
    _, _, right, bottom = font.getbbox(text)
    return math.ceil(right), math.ceil(bottom)


def draw_text(
    image: Image.Image,
    text: str,
    font: FontType,
    color: Color,
    x: float,
    y: float,
) -> Image.Image:
    """Draw text through a transparent layer so the color's alpha is honoured."""
    base = image if image.mode == "RGBA" else image.convert("RGBA")
    layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
    ImageDraw.Draw(layer).text((x, y), text, font=font, fill=color.as_tuple())
    return Image.alpha_composite(base, layer)


def encode(image: Image.Image, output: OutputFormat) -> bytes:
    """Encode as PNG or JPEG; metadata is never written."""
    _drop_metadata(image)

    buffer = BytesIO()
    if output.is_png:
        image.save(buffer, format=output.pil_format, compress_level=output.compression_level)
    else:
        # JPEG does not support alpha channel
        rgb = image if image.mode in ("RGB", "L") else image.convert("RGB")
        rgb.save(buffer, format=output.pil_format, quality=output.quality)
        if rgb is not image:
            rgb.close()
    return buffer.getvalue()
