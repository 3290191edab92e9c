"""Overlay font loading.

The font is loaded lazily on first use and kept for the life of the process,
one instance per size.  Set ``HEIMDEX_CONTACT_SHEET_FONT`` to a TrueType file
to override the monospaced system fonts tried by default.
"""

from __future__ import annotations

import functools
import logging
import os
from typing import Optional, Union

from PIL import ImageFont

from heimdex_contact_sheet.errors import FontLoadError

logger = logging.getLogger(__name__)

FONT_ENV = "HEIMDEX_CONTACT_SHEET_FONT"

FALLBACK_FONTS = [
    "/usr/share/fonts/truetype/roboto/mono/RobotoMono-Medium.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/TTF/DejaVuSansMono.ttf",
    "/usr/share/fonts/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf",
    "/System/Library/Fonts/Menlo.ttc",
    "/Library/Fonts/Courier New.ttf",
    "C:\\Windows\\Fonts\\consola.ttf",
]

Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


@functools.lru_cache(maxsize=None)
def _load_truetype(path: str, size_pt: float) -> ImageFont.FreeTypeFont:
    logger.debug("loading overlay font path=%s size=%s", path, size_pt)
    return ImageFont.truetype(path, size_pt)


@functools.lru_cache(maxsize=None)
def _load_default(size_pt: float) -> Font:
    logger.info("no monospaced system font found, using Pillow's default font")
    return ImageFont.load_default(size=size_pt)


def load_font(size_pt: float = 12.0, font_path: Optional[str] = None) -> Font:
    """Return the overlay font at ``size_pt``.

    An explicit ``font_path`` (or ``$HEIMDEX_CONTACT_SHEET_FONT``) must load;
    otherwise the first readable entry of ``FALLBACK_FONTS`` is used, and
    Pillow's bundled font as a last resort.

    Raises:
        FontLoadError: If the requested font cannot be loaded.
    """
    requested = font_path or os.getenv(FONT_ENV)
    if requested:
        try:
            return _load_truetype(requested, size_pt)
        except (OSError, ValueError) as exc:
            raise FontLoadError(f"cannot load font {requested}: {exc}") from exc

    for candidate in FALLBACK_FONTS:
        if not os.path.exists(candidate):
            continue
        try:
            return _load_truetype(candidate, size_pt)
        except (OSError, ValueError):
            logger.debug("skipping unreadable font %s", candidate)

    try:
        return _load_default(size_pt)
    except (OSError, ValueError) as exc:
        raise FontLoadError(f"cannot load default font: {exc}") from exc


def clear_font_cache() -> None:
    """Drop every loaded font so the next call reloads from disk."""
    _load_truetype.cache_clear()
    _load_default.cache_clear()
