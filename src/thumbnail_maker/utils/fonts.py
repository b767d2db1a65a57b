"""Font lookup for text watermarks.

The font registry is passed into the watermark code as a read-only
capability instead of being queried as ambient global state, so geometry and
pipeline tests can run against an in-memory registry.
"""

import os
import threading
from collections.abc import Iterable, Sequence
from functools import lru_cache
from pathlib import Path
from typing import Protocol, runtime_checkable

from loguru import logger
from PIL import ImageFont

from ..common.errors import FontUnavailableError

FontType = ImageFont.FreeTypeFont | ImageFont.ImageFont

FALLBACK_FAMILIES: tuple[str, ...] = ("Arial", "Segoe UI")

BUILTIN_FAMILY = "Pillow Default"

FONT_EXTENSIONS = frozenset({".ttf", ".otf", ".ttc"})

DEFAULT_FONT_DIRS: tuple[str, ...] = (
    "/usr/share/fonts",
    "/usr/local/share/fonts",
    "~/.fonts",
    "~/.local/share/fonts",
    "/Library/Fonts",
    "/System/Library/Fonts",
    "~/Library/Fonts",
    os.path.join(os.environ.get("WINDIR", "C:/Windows"), "Fonts"),
)


def normalize_family(name: str) -> str:
    """Lookup key for a family name: lowercase alphanumerics only.

    ``"Segoe UI"``, ``"segoeui"`` and ``"Segoe-UI"`` share one key.
    """
    return "".join(ch for ch in name.lower() if ch.isalnum())


@runtime_checkable
class FontRegistry(Protocol):
    """Read-only font lookup service.

    Implementations must be safe for concurrent lookups.
    """

    def families(self) -> Sequence[str]:
        """Available family names, in preference order."""
        ...

    def has_family(self, family: str) -> bool: ...

    def load(self, family: str, size: float) -> FontType:
        """Load ``family`` at ``size``.

        Raises:
            FontUnavailableError: family is not available
        """
        ...


class SystemFontRegistry:
    """Font files found on the host, keyed by file stem.

    Directories are scanned once, on first lookup. When ``include_builtin``
    is set, Pillow's bundled default font is offered as the last family.
    """

    def __init__(
        self,
        font_dirs: Iterable[str | Path] | None = None,
        include_builtin: bool = True,
    ):
        dirs = DEFAULT_FONT_DIRS if font_dirs is None else font_dirs
        self._font_dirs: list[Path] = [Path(d).expanduser() for d in dirs]
        self._include_builtin: bool = include_builtin
        self._index: dict[str, tuple[str, Path]] | None = None
        self._lock: threading.Lock = threading.Lock()

    def _scan(self) -> dict[str, tuple[str, Path]]:
        index: dict[str, tuple[str, Path]] = {}
        for directory in self._font_dirs:
            if not directory.is_dir():
                continue
            for path in sorted(directory.rglob("*")):
                if path.suffix.lower() not in FONT_EXTENSIONS:
                    continue
                _ = index.setdefault(normalize_family(path.stem), (path.stem, path))
        logger.debug(f"Indexed {len(index)} font files from {len(self._font_dirs)} directories")
        return index

    def _fonts(self) -> dict[str, tuple[str, Path]]:
        if self._index is None:
            with self._lock:
                if self._index is None:
                    self._index = self._scan()
        return self._index

    def families(self) -> list[str]:
        names = sorted(name for name, _ in self._fonts().values())
        if self._include_builtin:
            names.append(BUILTIN_FAMILY)
        return names

    def has_family(self, family: str) -> bool:
        key = normalize_family(family)
        if self._include_builtin and key == normalize_family(BUILTIN_FAMILY):
            return True
        return key in self._fonts()

    def load(self, family: str, size: float) -> FontType:
        key = normalize_family(family)
        if self._include_builtin and key == normalize_family(BUILTIN_FAMILY):
            return ImageFont.load_default(size=size)

        entry = self._fonts().get(key)
        if entry is None:
            raise FontUnavailableError(f"Font family not available: {family!r}")
        return ImageFont.truetype(str(entry[1]), size=size)


@lru_cache(maxsize=1)
def default_font_registry() -> SystemFontRegistry:
    """Process-wide registry of the host's fonts."""
    return SystemFontRegistry()


def resolve_font(registry: FontRegistry, family: str | None, size: float) -> FontType:
    """Load the requested family, falling back in a fixed order.

    Order: ``family``, then each of :data:`FALLBACK_FAMILIES`, then the first
    family the registry offers.

    Raises:
        FontUnavailableError: the registry has no family at all
    """
    candidates = [family] if family and family.strip() else []
    candidates.extend(FALLBACK_FAMILIES)

    for candidate in candidates:
        if registry.has_family(candidate):
            if candidate != family:
                logger.warning(f"Font family {family!r} unavailable, using {candidate!r}")
            return registry.load(candidate, size)

    available = registry.families()
    if not available:
        raise FontUnavailableError(
            f"No usable font found for {family!r} "
            f"(fallbacks: {', '.join(FALLBACK_FAMILIES)})"
        )

    logger.warning(f"Font family {family!r} unavailable, using {available[0]!r}")
    return registry.load(available[0], size)
