"""Test configuration and fixtures for thumbnail_maker.

This module provides:
- Synthetic image fixtures (encoded bytes generated with PIL)
- Font registry fixtures (in-memory, no host fonts required)
"""

from collections.abc import Callable, Sequence
from io import BytesIO

import pytest
from PIL import Image, ImageDraw, ImageFont

from thumbnail_maker.common.errors import FontUnavailableError

# ============================================================================
# Image Helpers
# ============================================================================


def encode_image(
    img: Image.Image,
    fmt: str = "PNG",
    **save_kwargs: object,
) -> bytes:
    buffer = BytesIO()
    img.save(buffer, fmt, **save_kwargs)
    return buffer.getvalue()


# ============================================================================
# Function-Scoped Fixtures (Run Per Test)
# ============================================================================


@pytest.fixture
def make_image_bytes() -> Callable[..., bytes]:
    """Factory producing an encoded solid-color image."""

    def factory(
        width: int,
        height: int,
        color: tuple[int, ...] = (255, 0, 0),
        fmt: str = "PNG",
        mode: str = "RGB",
        **save_kwargs: object,
    ) -> bytes:
        img = Image.new(mode, (width, height), color=color)
        return encode_image(img, fmt, **save_kwargs)

    return factory


@pytest.fixture
def landscape_png(make_image_bytes: Callable[..., bytes]) -> bytes:
    """400x300 solid red PNG."""
    return make_image_bytes(400, 300)


@pytest.fixture
def landscape_jpeg() -> bytes:
    """400x300 JPEG with a grid and a circle, like a real photo thumbnail source."""
    img = Image.new("RGB", (400, 300), color=(73, 109, 137))
    draw = ImageDraw.Draw(img)
    for i in range(0, 400, 50):
        draw.line([(i, 0), (i, 300)], fill=(255, 255, 255), width=2)
    for i in range(0, 300, 50):
        draw.line([(0, i), (400, i)], fill=(255, 255, 255), width=2)
    draw.ellipse([150, 100, 250, 200], fill=(200, 100, 100))
    return encode_image(img, "JPEG", quality=90)


@pytest.fixture
def exif_rotated_jpeg() -> bytes:
    """40x20 JPEG whose EXIF orientation (6) asks for a 90° clockwise turn."""
    img = Image.new("RGB", (40, 20), color=(0, 128, 255))
    exif = Image.Exif()
    exif[0x0112] = 6
    exif[0x010F] = "TestCam"
    return encode_image(img, "JPEG", quality=95, exif=exif.tobytes())


# ============================================================================
# Font Fixtures
# ============================================================================


class InMemoryFontRegistry:
    """FontRegistry serving Pillow's bundled font under configurable names."""

    def __init__(self, families: Sequence[str]):
        self._families: list[str] = list(families)
        self.loaded: list[str] = []

    def families(self) -> list[str]:
        return list(self._families)

    def has_family(self, family: str) -> bool:
        return family in self._families

    def load(self, family: str, size: float) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        if family not in self._families:
            raise FontUnavailableError(f"Font family not available: {family!r}")
        self.loaded.append(family)
        return ImageFont.load_default(size=size)


@pytest.fixture
def font_registry() -> InMemoryFontRegistry:
    """Registry offering a single non-fallback family."""
    return InMemoryFontRegistry(["TestSans"])


@pytest.fixture
def empty_font_registry() -> InMemoryFontRegistry:
    """Registry of a host with no fonts at all."""
    return InMemoryFontRegistry([])


@pytest.fixture
def make_font_registry() -> Callable[[Sequence[str]], InMemoryFontRegistry]:
    """Factory for registries offering the given families, in order."""
    return InMemoryFontRegistry
