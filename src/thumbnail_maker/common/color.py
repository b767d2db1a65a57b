"""Immutable RGBA color value with hex parse/serialize."""

import string
from collections.abc import Sequence
from typing import ClassVar

from typing_extensions import override

from pydantic import BaseModel, ConfigDict, Field

from .errors import ColorParseError

_HEX_DIGITS = frozenset(string.hexdigits)


class Color(BaseModel):
    """RGBA color with 8-bit channels.

    Equality is structural: two colors are equal when all four channels match.
    Hex literals are ``RRGGBB`` (alpha defaults to 255) or ``AARRGGBB``
    (alpha first), with an optional leading ``#``.
    """

    r: int = Field(ge=0, le=255)
    g: int = Field(ge=0, le=255)
    b: int = Field(ge=0, le=255)
    a: int = Field(default=255, ge=0, le=255)

    model_config = ConfigDict(frozen=True)

    WHITE: ClassVar["Color"]
    BLACK: ClassVar["Color"]
    TRANSPARENT: ClassVar["Color"]
    RED: ClassVar["Color"]
    GREEN: ClassVar["Color"]
    BLUE: ClassVar["Color"]

    @classmethod
    def from_hex(cls, value: str) -> "Color":
        """Parse ``RRGGBB`` or ``AARRGGBB`` (case-insensitive, leading ``#`` ignored).

        Raises:
            ColorParseError: empty input, wrong length or non-hex characters
        """
        if not value or not value.strip():
            raise ColorParseError("Hex color can not be empty.")

        digits = value.lstrip("#")
        if len(digits) not in (6, 8):
            raise ColorParseError(
                f"Invalid hex color {value!r}. Expected formats: RRGGBB or AARRGGBB."
            )
        if not _HEX_DIGITS.issuperset(digits):
            raise ColorParseError(f"Invalid hex color {value!r}: non-hex characters.")

        channels = [int(digits[i : i + 2], 16) for i in range(0, len(digits), 2)]
        if len(channels) == 4:
            a, r, g, b = channels
            return cls(r=r, g=g, b=b, a=a)
        r, g, b = channels
        return cls(r=r, g=g, b=b)

    @classmethod
    def try_parse(cls, value: str | None) -> "Color | None":
        """Like :meth:`from_hex` but returns None instead of raising."""
        if value is None:
            return None
        try:
            return cls.from_hex(value)
        except ColorParseError:
            return None

    @classmethod
    def from_rgba(cls, rgba: Sequence[int]) -> "Color":
        """Build from an ``(r, g, b)`` or ``(r, g, b, a)`` sequence."""
        if len(rgba) not in (3, 4):
            raise ColorParseError(f"Expected 3 or 4 channels, got {len(rgba)}")
        return cls(r=rgba[0], g=rgba[1], b=rgba[2], a=rgba[3] if len(rgba) == 4 else 255)

    def to_hex(self, *, include_alpha: bool | None = None) -> str:
        """Serialize as ``#RRGGBB`` or ``#AARRGGBB``.

        By default alpha is only written when the color is not fully opaque.
        """
        if include_alpha is None:
            include_alpha = self.a != 255
        rgb = f"{self.r:02X}{self.g:02X}{self.b:02X}"
        return f"#{self.a:02X}{rgb}" if include_alpha else f"#{rgb}"

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)

    @override
    def __str__(self) -> str:
        return f"RGBA({self.r}, {self.g}, {self.b}, {self.a})"


Color.WHITE = Color(r=255, g=255, b=255)
Color.BLACK = Color(r=0, g=0, b=0)
Color.TRANSPARENT = Color(r=0, g=0, b=0, a=0)
Color.RED = Color(r=255, g=0, b=0)
Color.GREEN = Color(r=0, g=255, b=0)
Color.BLUE = Color(r=0, g=0, b=255)
