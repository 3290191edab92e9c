"""Sample timestamp planning for contact sheets.

Timestamps are spread evenly over the exact sampling window: an interval is
only used to decide how many tiles fit, after which the spacing is recomputed
as ``window / tile_count`` so no rounding drift accumulates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Tuple

from heimdex_contact_sheet.errors import IntervalTooLarge, InvalidRange, InvalidTileCount
from heimdex_contact_sheet.options import ThumbOptions

logger = logging.getLogger(__name__)

# Spacing below this still works but usually means an unreadable sheet.
SMALL_SPACING_WARNING_S = 10.0


@dataclass(frozen=True)
class SamplePlan:
    timestamps: Tuple[float, ...]
    start_s: float
    end_s: float
    spacing_s: float

    def __len__(self) -> int:
        return len(self.timestamps)

    def __iter__(self) -> Iterator[float]:
        return iter(self.timestamps)

    def __getitem__(self, index: int) -> float:
        return self.timestamps[index]


def plan_samples(
    options: ThumbOptions,
    total_duration_s: float,
    default_interval_s: Optional[float] = None,
    on_warning: Optional[Callable[[float], None]] = None,
) -> SamplePlan:
    """Compute the ordered sample timestamps for one contact sheet.

    Args:
        options: Sampling options; ``from_s`` / ``to_s`` of 0 mean unset.
        total_duration_s: Probed video duration, used when ``to_s`` is unset.
        default_interval_s: Interval used when neither ``tile_count`` nor
            ``interval_s`` is set.
        on_warning: Called with the spacing when it falls below
            ``SMALL_SPACING_WARNING_S``.

    Raises:
        InvalidRange: If the window is empty or negative.
        IntervalTooLarge: If the interval is longer than the window.
        InvalidTileCount: If no positive tile count can be resolved.
    """
    start = options.from_s
    end = options.to_s if options.to_s else total_duration_s
    window = end - start
    if window <= 0:
        raise InvalidRange(
            f"empty sampling window: start={start:.3f}s end={end:.3f}s"
        )

    if options.tile_count is not None:
        tile_count = options.tile_count
        if tile_count <= 0:
            raise InvalidTileCount(f"tile count must be positive, got {tile_count}")
    else:
        interval = options.interval_s if options.interval_s is not None else default_interval_s
        if interval is None:
            raise InvalidTileCount("neither tile count nor interval given")
        if interval <= 0:
            raise InvalidTileCount(f"interval must be positive, got {interval:.3f}s")
        # Count on whole milliseconds (the seek granularity) so float error
        # never drops a tile: 60.3 / 20.1 is 2.999... in floating point.
        window_ms = int(round(window * 1000))
        interval_ms = int(round(interval * 1000))
        if interval_ms > window_ms:
            raise IntervalTooLarge(
                f"interval {interval:.3f}s is larger than available "
                f"video duration {window:.3f}s"
            )
        if interval_ms <= 0:
            raise InvalidTileCount(f"interval {interval}s is below millisecond precision")
        tile_count = window_ms // interval_ms

    spacing = window / tile_count

    if spacing < SMALL_SPACING_WARNING_S:
        logger.warning("interval is very small interval_s=%.3f tiles=%d", spacing, tile_count)
        if on_warning is not None:
            on_warning(spacing)

    timestamps = tuple(start + i * spacing for i in range(tile_count))
    logger.debug(
        "sample_plan start_s=%.3f end_s=%.3f tiles=%d spacing_s=%.3f",
        start, end, tile_count, spacing,
    )
    return SamplePlan(timestamps=timestamps, start_s=start, end_s=end, spacing_s=spacing)
