"""Thumbnail pipeline: decode, orient, strip, resize, compose, watermark, encode.

Each call is independent. Buffers created along the way are released on every
exit path, and no output is produced unless every step succeeded.
"""

import asyncio
from collections.abc import Callable
from typing import BinaryIO

from loguru import logger
from PIL import Image

from .algo import raster
from .algo.geometry import ThumbnailLayout, compute_layout
from .algo.raster import SourceImage
from .algo.watermark import apply_text_watermark
from .common.color import Color
from .common.schemas import RasterMode, ThumbnailConfig
from .utils.fonts import FontRegistry
from .utils.profiling import timed

ImageInput = bytes | bytearray | memoryview | BinaryIO

Step = tuple[str, Callable[[], None]]


def _read_input(data: ImageInput) -> bytes:
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    return data.read()


class _PipelineRun:
    """State of one thumbnail request, advanced one step at a time."""

    def __init__(self, data: ImageInput, config: ThumbnailConfig, fonts: FontRegistry | None):
        self.data: ImageInput = data
        self.config: ThumbnailConfig = config
        self.fonts: FontRegistry | None = fonts
        self.source: SourceImage | None = None
        self.image: Image.Image | None = None
        self.layout: ThumbnailLayout | None = None
        self.output: bytes | None = None

    def steps(self) -> list[Step]:
        return [
            ("decode", self._decode),
            ("orient", self._orient),
            ("strip_metadata", self._strip_metadata),
            ("resize", self._resize),
            ("compose", self._compose),
            ("encode", self._encode),
        ]

    def _decode(self) -> None:
        self.source = raster.decode(_read_input(self.data))
        logger.debug(
            f"Decoded {self.source.format} image {self.source.width}x{self.source.height}"
        )

    def _orient(self) -> None:
        assert self.source is not None
        if not self.config.auto_orient:
            return
        orientation = self.source.orientation
        if orientation is None and self.source.xmp is None:
            return
        self.source.replace_image(raster.apply_exif_orientation(self.source.image, orientation))
        self.source.clear_orientation()
        logger.debug(f"Applied orientation {orientation if orientation is not None else '(XMP)'}")

    def _strip_metadata(self) -> None:
        assert self.source is not None
        if self.config.strip_metadata:
            self.source.strip_metadata()

    def _resize(self) -> None:
        assert self.source is not None
        self.layout = compute_layout(self.source.width, self.source.height, self.config)

        self.image = raster.resize(self.source.image, *self.layout.resize)
        self.source.close()
        self.source = None

        crop = self.layout.crop
        if self.layout.raster_mode is RasterMode.CROP and crop is not None:
            if crop.size != self.image.size:
                self._replace_image(raster.crop(self.image, crop))

    def _compose(self) -> None:
        assert self.image is not None and self.layout is not None
        config = self.config

        if self.layout.canvas is not None and self.layout.placement is not None:
            canvas = raster.new_canvas(*self.layout.canvas, config.background or Color.WHITE)
            try:
                raster.draw_onto(canvas, self.image, self.layout.placement.x, self.layout.placement.y)
            except BaseException:
                canvas.close()
                raise
            self._replace_image(canvas)
            if not config.watermark_padded:
                return

        if config.watermark.is_active:
            self._replace_image(apply_text_watermark(self.image, config.watermark, self.fonts))

    def _encode(self) -> None:
        assert self.image is not None
        self.output = raster.encode(self.image, self.config.output)
        logger.debug(
            f"Encoded {self.image.width}x{self.image.height} "
            f"{self.config.output.pil_format} ({len(self.output)} bytes)"
        )

    def _replace_image(self, image: Image.Image) -> None:
        if self.image is not None and self.image is not image:
            self.image.close()
        self.image = image

    def release(self) -> None:
        if self.source is not None:
            self.source.close()
            self.source = None
        if self.image is not None:
            self.image.close()
            self.image = None

    def result(self) -> bytes:
        assert self.output is not None
        return self.output


# ─────────────────────────────────────────────────────────────
# Synchronous entry points
# ─────────────────────────────────────────────────────────────


@timed
def make_thumbnail(
    data: ImageInput,
    config: ThumbnailConfig,
    *,
    fonts: FontRegistry | None = None,
) -> bytes:
    """Create a thumbnail from encoded image bytes.

    Args:
        data: Encoded image (bytes or a readable binary stream)
        config: Thumbnail parameters
        fonts: Font registry for watermarks (host fonts by default)

    Returns:
        Encoded JPEG or PNG bytes

    Raises:
        InvalidDimensionError: target width/height not positive (before decode)
        DecodeError: input is not a decodable image
        FontUnavailableError: watermark requested but no font is available
    """
    config.ensure_valid_dimensions()

    run = _PipelineRun(data, config, fonts)
    try:
        for name, step in run.steps():
            logger.debug(f"Thumbnail step: {name}")
            step()
        return run.result()
    finally:
        run.release()


def write_thumbnail(
    data: ImageInput,
    sink: BinaryIO,
    config: ThumbnailConfig,
    *,
    fonts: FontRegistry | None = None,
) -> None:
    """Create a thumbnail and write it to ``sink``; nothing is written on failure."""
    _ = sink.write(make_thumbnail(data, config, fonts=fonts))


# ─────────────────────────────────────────────────────────────
# Asynchronous entry points
# ─────────────────────────────────────────────────────────────


async def _run_step(step: Callable[[], None]) -> None:
    future = asyncio.ensure_future(asyncio.to_thread(step))
    try:
        await asyncio.shield(future)
    except asyncio.CancelledError:
        # buffers are released only after the in-flight step returns
        _ = await asyncio.wait([future])
        raise


@timed
async def make_thumbnail_async(
    data: ImageInput,
    config: ThumbnailConfig,
    *,
    fonts: FontRegistry | None = None,
) -> bytes:
    """Async variant of :func:`make_thumbnail`.

    Every step runs in a worker thread. Cancellation is observed between
    steps: the remaining steps are skipped, buffers are released and
    ``asyncio.CancelledError`` propagates without producing output.
    """
    config.ensure_valid_dimensions()

    run = _PipelineRun(data, config, fonts)
    try:
        for name, step in run.steps():
            logger.debug(f"Thumbnail step: {name}")
            await _run_step(step)
        return run.result()
    finally:
        run.release()


async def write_thumbnail_async(
    data: ImageInput,
    sink: BinaryIO,
    config: ThumbnailConfig,
    *,
    fonts: FontRegistry | None = None,
) -> None:
    """Async variant of :func:`write_thumbnail`."""
    output = await make_thumbnail_async(data, config, fonts=fonts)
    _ = sink.write(output)
