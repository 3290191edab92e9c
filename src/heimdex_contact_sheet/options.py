"""Option model and user-input parsing for contact sheet generation.

Public API:
    ThumbOptions, Color, TRANSPARENT, WHITE, BLACK,
    parse_color(text), parse_duration(text)
"""

from __future__ import annotations

import re
from typing import NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field

from heimdex_contact_sheet.errors import (
    InvalidColor,
    InvalidDuration,
    InvalidOptions,
    InvalidRange,
)


class Color(NamedTuple):
    r: int
    g: int
    b: int
    a: int = 255

    @property
    def is_transparent(self) -> bool:
        return self == TRANSPARENT


TRANSPARENT = Color(0, 0, 0, 0)
WHITE = Color(255, 255, 255, 255)
BLACK = Color(0, 0, 0, 255)

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


def parse_color(text: str) -> Color:
    """Parse ``transparent``, ``RRGGBB`` or ``RRGGBBAA`` (``#`` optional).

    Raises:
        InvalidColor: For any other form.
    """
    value = (text or "").strip()
    if value.lower() == "transparent":
        return TRANSPARENT

    match = _HEX_RE.match(value)
    if not match:
        raise InvalidColor(
            f"invalid color {text!r}: expected 'transparent' or a 6/8 digit hex value"
        )

    digits = match.group(1)
    channels = [int(digits[i:i + 2], 16) for i in range(0, len(digits), 2)]
    return Color(*channels)


# Go-style unit durations: "90s", "1h2m3s", "1.5m", "250ms".
_UNIT_SECONDS = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
    "ms": 1e-3,
    "us": 1e-6,
    "µs": 1e-6,
    "ns": 1e-9,
}
_UNIT_TOKEN_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_UNIT_DURATION_RE = re.compile(r"^(?:(?:\d+(?:\.\d*)?|\.\d+)(?:ns|us|µs|ms|s|m|h))+$")
_INT_SEGMENT_RE = re.compile(r"^\d+$")
_SECONDS_SEGMENT_RE = re.compile(r"^\d+(?:\.\d+)?$")


def parse_duration(text: str) -> float:
    """Parse a time offset into seconds.

    Accepts an empty string (unset, ``0``), a unit duration such as ``90s`` or
    ``1h2m3s``, or a colon-separated ``ss`` / ``mm:ss`` / ``hh:mm:ss`` value.
    Colon segments are read right-to-left: seconds, then minutes, then hours.

    Raises:
        InvalidDuration: If a segment is not numeric or there are more than
            three segments.
    """
    value = (text or "").strip()
    if not value:
        return 0.0

    if _UNIT_DURATION_RE.match(value):
        return sum(
            float(number) * _UNIT_SECONDS[unit]
            for number, unit in _UNIT_TOKEN_RE.findall(value)
        )

    parts = list(reversed(value.split(":")))
    if len(parts) > 3:
        raise InvalidDuration(value, f"invalid duration {value!r}: too many ':' segments")

    seconds_part = parts[0].strip()
    if not _SECONDS_SEGMENT_RE.match(seconds_part):
        raise InvalidDuration(seconds_part, f"invalid duration: {seconds_part!r} as second")
    total = float(seconds_part)

    for unit_name, multiplier, segment in zip(("minute", "hour"), (60, 3600), parts[1:]):
        segment = segment.strip()
        if not _INT_SEGMENT_RE.match(segment):
            raise InvalidDuration(segment, f"invalid duration: {segment!r} as {unit_name}")
        total += int(segment) * multiplier

    return total


class ThumbOptions(BaseModel):
    """Everything that controls sampling and layout for one contact sheet.

    ``from_s`` / ``to_s`` of ``0`` mean unset.  At most one of ``tile_count``
    and ``interval_s`` may be given; with neither, the caller's default
    interval applies.
    """

    model_config = ConfigDict(frozen=True)

    from_s: float = Field(0.0, ge=0)
    to_s: float = Field(0.0, ge=0)
    tile_columns: int = Field(3, gt=0)
    tile_count: Optional[int] = None
    interval_s: Optional[float] = Field(None, gt=0)
    tile_width: int = Field(0, ge=0)
    tile_height: int = Field(0, ge=0)
    padding: int = Field(0, ge=0)
    overlay_timestamps: bool = False
    timestamp_background: Color = TRANSPARENT
    timestamp_foreground: Color = WHITE
    font_size_pt: float = Field(12.0, gt=0)
    jpeg_quality: int = Field(80, ge=1, le=100)
    max_workers: int = Field(4, gt=0)

    def check(self) -> None:
        """Validate cross-field invariants.

        Raises:
            InvalidRange: If both ends are set and ``from_s > to_s``.
            InvalidOptions: If both ``interval_s`` and ``tile_count`` are set.
        """
        if self.from_s and self.to_s and self.from_s > self.to_s:
            raise InvalidRange(
                f"starting point {self.from_s:.3f}s cannot be after "
                f"ending point {self.to_s:.3f}s"
            )
        if self.interval_s is not None and self.tile_count is not None:
            raise InvalidOptions("interval and tile count cannot be set together")
