"""Exception types raised by the contact sheet pipeline.

Validation errors derive from :class:`InvalidOptions` (and ``ValueError``) and
are raised before any subprocess is started.  Everything else describes a
failure of ffmpeg, Pillow, or a cancelled run.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple


class ContactSheetError(RuntimeError):
    """Base class for every error raised by this package."""


class InvalidOptions(ContactSheetError, ValueError):
    """Options are inconsistent with each other or with the video."""


class InvalidRange(InvalidOptions):
    """The sampling window is empty or inverted."""


class InvalidTileCount(InvalidOptions):
    """The resolved number of tiles is not positive."""


class IntervalTooLarge(InvalidOptions):
    """The sampling interval does not fit inside the sampling window."""


class InvalidColor(InvalidOptions):
    """A color string is neither ``transparent`` nor 6/8 hex digits."""


class InvalidDuration(InvalidOptions):
    def __init__(self, segment: str, message: str = "") -> None:
        self.segment = segment
        super().__init__(message or f"invalid duration segment: {segment!r}")


class ProbeFailed(ContactSheetError):
    """ffprobe is missing, failed, or printed something unparsable."""


class ExtractionFailed(ContactSheetError):
    def __init__(self, timestamp_s: float, cause: str) -> None:
        self.timestamp_s = timestamp_s
        self.cause = cause
        super().__init__(f"frame extraction failed at {timestamp_s:.3f}s: {cause}")


class PartialExtractionFailure(ContactSheetError):
    """One or more samples failed; no thumbnails are returned."""

    def __init__(self, failures: Sequence[Tuple[float, str]], total: int) -> None:
        self.failures: List[Tuple[float, str]] = sorted(failures)
        self.total = total
        lines = [f"  {ts:.3f}s: {cause}" for ts, cause in self.failures]
        super().__init__(
            f"{len(self.failures)} of {total} frame extractions failed:\n"
            + "\n".join(lines)
        )


class RenderFailed(ContactSheetError):
    """A timestamp label could not be measured or rasterized."""


class FontLoadError(RenderFailed):
    """The overlay font asset could not be loaded."""


class EmptyInput(ContactSheetError):
    """The compositor was given no thumbnails."""


class Cancelled(ContactSheetError):
    """The run was cancelled before it completed."""
