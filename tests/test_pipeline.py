"""End-to-end tests for the thumbnail pipeline."""

import asyncio
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from io import BytesIO
from unittest.mock import patch

import pytest
from PIL import Image

from thumbnail_maker import (
    Anchor,
    DecodeError,
    InvalidDimensionError,
    OutputFormat,
    ResizeMode,
    ThumbnailConfig,
    WatermarkSpec,
    make_thumbnail,
    make_thumbnail_async,
    write_thumbnail,
    write_thumbnail_async,
)
from thumbnail_maker.algo import raster


def _open(data: bytes) -> Image.Image:
    img = Image.open(BytesIO(data))
    img.load()
    return img


def _is_red(pixel: tuple[int, ...]) -> bool:
    return pixel[0] > 240 and pixel[1] < 15 and pixel[2] < 15


def _is_white(pixel: tuple[int, ...]) -> bool:
    return all(channel > 240 for channel in pixel[:3])


# ============================================================================
# VALIDATION & ERRORS
# ============================================================================


@pytest.mark.parametrize(("width", "height"), [(0, 100), (100, 0), (-5, 10)])
def test_invalid_dimensions_fail_before_decode(width: int, height: int, landscape_png: bytes):
    config = ThumbnailConfig(width=width, height=height)

    with patch("thumbnail_maker.algo.raster.decode") as decode:
        with pytest.raises(InvalidDimensionError):
            _ = make_thumbnail(landscape_png, config)

    decode.assert_not_called()


@pytest.mark.parametrize("data", [b"", b"definitely not an image"])
def test_undecodable_input(data: bytes):
    with pytest.raises(DecodeError):
        _ = make_thumbnail(data, ThumbnailConfig(width=100, height=100))


# ============================================================================
# RESIZE MODES
# ============================================================================


@pytest.mark.parametrize(
    ("mode", "size"),
    [
        (ResizeMode.FIT, (100, 75)),
        (ResizeMode.COVER, (100, 100)),
        (ResizeMode.CONTAIN, (100, 75)),
        (ResizeMode.PAD, (100, 100)),
        (ResizeMode.CROP, (100, 75)),
    ],
)
def test_output_size_per_mode(mode: ResizeMode, size: tuple[int, int], landscape_jpeg: bytes):
    output = make_thumbnail(landscape_jpeg, ThumbnailConfig(width=100, height=100, mode=mode))

    with _open(output) as img:
        assert img.format == "JPEG"
        assert img.size == size


def test_pad_center_letterboxes(landscape_png: bytes):
    config = ThumbnailConfig(
        width=100, height=100, mode=ResizeMode.PAD, output=OutputFormat.png()
    )

    with _open(make_thumbnail(landscape_png, config)) as img:
        assert img.size == (100, 100)
        assert _is_white(img.getpixel((50, 5)))
        assert _is_red(img.getpixel((50, 50)))
        assert _is_white(img.getpixel((50, 95)))


def test_pad_top_left_anchors_image(landscape_png: bytes):
    config = ThumbnailConfig(
        width=100,
        height=100,
        mode=ResizeMode.PAD,
        anchor=Anchor.TOP_LEFT,
        output=OutputFormat.png(),
    )

    with _open(make_thumbnail(landscape_png, config)) as img:
        assert _is_red(img.getpixel((50, 5)))
        assert _is_white(img.getpixel((50, 95)))


def test_pad_translucent_source_on_opaque_canvas(make_image_bytes: Callable[..., bytes]):
    """Test a semi-transparent source is blended over the background, not cut into it."""
    data = make_image_bytes(80, 40, color=(255, 0, 0, 128), mode="RGBA")
    config = ThumbnailConfig(width=40, height=40, mode=ResizeMode.PAD, output=OutputFormat.png())

    with _open(make_thumbnail(data, config)) as img:
        r, g, b, a = img.getpixel((20, 20))
        assert a == 255
        assert r >= 254
        assert 120 <= g <= 135
        assert g == b
        assert img.getpixel((20, 2)) == (255, 255, 255, 255)


def test_background_forces_canvas_in_fit_mode(landscape_png: bytes):
    config = ThumbnailConfig(
        width=100, height=100, background="#000000", output=OutputFormat.png()
    )

    with _open(make_thumbnail(landscape_png, config)) as img:
        assert img.size == (100, 100)
        assert img.getpixel((50, 2))[:3] == (0, 0, 0)
        assert _is_red(img.getpixel((50, 50)))


def test_contain_keeps_small_source(make_image_bytes: Callable[..., bytes]):
    config = ThumbnailConfig(width=100, height=100, mode=ResizeMode.CONTAIN)
    with _open(make_thumbnail(make_image_bytes(50, 40), config)) as img:
        assert img.size == (50, 40)


def test_prevent_upscale(make_image_bytes: Callable[..., bytes]):
    data = make_image_bytes(50, 40)

    with _open(make_thumbnail(data, ThumbnailConfig(width=100, height=100))) as img:
        assert img.size == (100, 80)

    config = ThumbnailConfig(width=100, height=100, prevent_upscale=True)
    with _open(make_thumbnail(data, config)) as img:
        assert img.size == (50, 40)


# ============================================================================
# ORIENTATION & METADATA
# ============================================================================


def test_auto_orient_swaps_axes(exif_rotated_jpeg: bytes):
    with _open(make_thumbnail(exif_rotated_jpeg, ThumbnailConfig(width=100, height=100))) as img:
        assert img.size == (50, 100)


def test_auto_orient_disabled(exif_rotated_jpeg: bytes):
    config = ThumbnailConfig(width=100, height=100, auto_orient=False)
    with _open(make_thumbnail(exif_rotated_jpeg, config)) as img:
        assert img.size == (100, 50)


@pytest.mark.parametrize("strip", [True, False])
def test_output_carries_no_exif(strip: bool, exif_rotated_jpeg: bytes):
    config = ThumbnailConfig(width=100, height=100, strip_metadata=strip)
    with _open(make_thumbnail(exif_rotated_jpeg, config)) as img:
        assert "exif" not in img.info
        assert len(img.getexif()) == 0


# ============================================================================
# WATERMARK
# ============================================================================


def test_inert_watermark_never_draws(landscape_png: bytes):
    with patch("thumbnail_maker.algo.raster.draw_text") as draw_text:
        _ = make_thumbnail(landscape_png, ThumbnailConfig(width=100, height=100))

    draw_text.assert_not_called()


def test_watermark_drawn_in_fit_mode(landscape_png: bytes, font_registry):
    config = ThumbnailConfig(
        width=100,
        height=100,
        watermark=WatermarkSpec.text_mark("WM", opacity=1.0, font_family="TestSans"),
    )

    with patch("thumbnail_maker.algo.raster.draw_text", wraps=raster.draw_text) as draw_text:
        output = make_thumbnail(landscape_png, config, fonts=font_registry)

    draw_text.assert_called_once()
    with _open(output) as img:
        assert img.size == (100, 75)


def test_padded_output_not_watermarked_by_default(landscape_png: bytes, font_registry):
    config = ThumbnailConfig(
        width=100,
        height=100,
        mode=ResizeMode.PAD,
        watermark=WatermarkSpec.text_mark("WM", opacity=1.0, font_family="TestSans"),
    )

    with patch("thumbnail_maker.algo.raster.draw_text") as draw_text:
        _ = make_thumbnail(landscape_png, config, fonts=font_registry)

    draw_text.assert_not_called()


def test_padded_output_watermarked_when_enabled(landscape_png: bytes, font_registry):
    config = ThumbnailConfig(
        width=100,
        height=100,
        mode=ResizeMode.PAD,
        watermark=WatermarkSpec.text_mark("WM", opacity=1.0, font_family="TestSans"),
        watermark_padded=True,
    )

    with patch("thumbnail_maker.algo.raster.draw_text", wraps=raster.draw_text) as draw_text:
        output = make_thumbnail(landscape_png, config, fonts=font_registry)

    draw_text.assert_called_once()
    assert draw_text.call_args.args[0].size == (100, 100)
    with _open(output) as img:
        assert img.size == (100, 100)


# ============================================================================
# OUTPUT
# ============================================================================


@pytest.mark.parametrize(
    ("output", "fmt"),
    [
        (OutputFormat.png(), "PNG"),
        (OutputFormat(kind="PNG"), "PNG"),
        (OutputFormat.jpeg(70), "JPEG"),
        (OutputFormat(kind="webp"), "JPEG"),
    ],
)
def test_output_format(output: OutputFormat, fmt: str, landscape_png: bytes):
    config = ThumbnailConfig(width=64, height=64, output=output)
    with _open(make_thumbnail(landscape_png, config)) as img:
        assert img.format == fmt


def test_stream_input(landscape_png: bytes):
    output = make_thumbnail(BytesIO(landscape_png), ThumbnailConfig(width=100, height=100))
    with _open(output) as img:
        assert img.size == (100, 75)


def test_write_thumbnail_to_sink(landscape_png: bytes):
    sink = BytesIO()
    write_thumbnail(landscape_png, sink, ThumbnailConfig(width=100, height=100))

    with _open(sink.getvalue()) as img:
        assert img.size == (100, 75)


def test_write_thumbnail_failure_leaves_sink_empty():
    sink = BytesIO()
    with pytest.raises(DecodeError):
        write_thumbnail(b"junk", sink, ThumbnailConfig(width=100, height=100))
    assert sink.getvalue() == b""


def test_concurrent_requests(make_image_bytes: Callable[..., bytes]):
    """Test independent calls can run on a worker pool without sharing state."""
    jobs = [(make_image_bytes(40 + i * 10, 30 + i * 5), 20 + i) for i in range(8)]

    def run(job: tuple[bytes, int]) -> tuple[int, int]:
        data, box = job
        with _open(make_thumbnail(data, ThumbnailConfig(width=box, height=box, mode=ResizeMode.PAD))) as img:
            return img.size

    with ThreadPoolExecutor(max_workers=4) as pool:
        sizes = list(pool.map(run, jobs))

    assert sizes == [(box, box) for _, box in jobs]


# ============================================================================
# ASYNC
# ============================================================================


@pytest.mark.asyncio
async def test_async_thumbnail(landscape_jpeg: bytes):
    output = await make_thumbnail_async(
        landscape_jpeg, ThumbnailConfig(width=100, height=100, mode=ResizeMode.COVER)
    )
    with _open(output) as img:
        assert img.size == (100, 100)


@pytest.mark.asyncio
async def test_async_write_thumbnail(landscape_png: bytes):
    sink = BytesIO()
    await write_thumbnail_async(landscape_png, sink, ThumbnailConfig(width=50, height=50))
    with _open(sink.getvalue()) as img:
        assert img.size == (50, 38)


@pytest.mark.asyncio
async def test_async_invalid_dimensions(landscape_png: bytes):
    with patch("thumbnail_maker.algo.raster.decode") as decode:
        with pytest.raises(InvalidDimensionError):
            _ = await make_thumbnail_async(landscape_png, ThumbnailConfig(width=0, height=0))
    decode.assert_not_called()


@pytest.mark.asyncio
async def test_async_cancellation_skips_remaining_steps(landscape_png: bytes):
    started = threading.Event()
    release = threading.Event()
    real_decode = raster.decode

    def slow_decode(data: bytes) -> raster.SourceImage:
        started.set()
        _ = release.wait(5)
        return real_decode(data)

    real_close = raster.SourceImage.close

    with (
        patch("thumbnail_maker.algo.raster.decode", side_effect=slow_decode),
        patch("thumbnail_maker.algo.raster.encode") as encode,
        patch.object(raster.SourceImage, "close", autospec=True, side_effect=real_close) as close,
    ):
        task = asyncio.create_task(
            make_thumbnail_async(landscape_png, ThumbnailConfig(width=100, height=100))
        )
        while not started.is_set():
            await asyncio.sleep(0.01)

        _ = task.cancel()
        await asyncio.sleep(0.05)
        # the in-flight decode is waited for before the task finishes
        assert not task.done()

        release.set()
        with pytest.raises(asyncio.CancelledError):
            await task

    encode.assert_not_called()
    # the decoded buffer produced by the interrupted step is released
    close.assert_called_once()
