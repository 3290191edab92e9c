"""Timestamp label rendering for contact sheet tiles."""

from __future__ import annotations

import logging
import math
from typing import Optional, Protocol

from PIL import Image, ImageDraw

from heimdex_contact_sheet.errors import RenderFailed
from heimdex_contact_sheet.options import TRANSPARENT, WHITE, Color
from heimdex_contact_sheet.sheet.fonts import Font, load_font

logger = logging.getLogger(__name__)

# Total padding around the text; half of it on each side.
LABEL_PADDING_PX = 4


def format_timestamp(seconds: float) -> str:
    """Format an offset as ``HH:MM:SS``, dropping fractional seconds."""
    total = max(int(seconds), 0)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class TimestampRenderer(Protocol):
    def render(self, label: str) -> Image.Image: ...


class PillowTimestampRenderer:
    """Draws a label on a small RGBA image sized to the text.

    The font is resolved on first render when none is passed in.
    """

    def __init__(
        self,
        font: Optional[Font] = None,
        font_size_pt: float = 12.0,
        background: Color = TRANSPARENT,
        foreground: Color = WHITE,
    ):
        self.font_size_pt = font_size_pt
        self.background = Color(*background)
        self.foreground = Color(*foreground)
        self._font = font

    def _get_font(self) -> Font:
        if self._font is None:
            self._font = load_font(self.font_size_pt)
        return self._font

    def render(self, label: str) -> Image.Image:
        font = self._get_font()
        font_px = float(getattr(font, "size", self.font_size_pt))
        try:
            text_w = int(math.ceil(font.getlength(label)))
            text_h = int(math.ceil(font_px))

            img = Image.new(
                "RGBA",
                (text_w + LABEL_PADDING_PX, text_h + LABEL_PADDING_PX),
                tuple(self.background),
            )
            draw = ImageDraw.Draw(img)

            x = LABEL_PADDING_PX // 2
            # baseline sits ~5% above the full pixel size for visual centering
            y = int(math.ceil(font_px) * 0.95) + LABEL_PADDING_PX // 2
            draw.text((x, y), label, font=font, fill=tuple(self.foreground), anchor="ls")
        except (OSError, ValueError, TypeError) as exc:
            raise RenderFailed(f"failed to render timestamp {label!r}: {exc}") from exc

        return img
