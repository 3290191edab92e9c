"""Bounded-concurrency frame extraction with ordered, all-or-nothing results.

Every sample is submitted as an index-tagged unit of work.  Results are written
into a pre-sized slot list at their original index, so the returned order
always matches the sample order no matter which ffmpeg finishes first.

A failed sample does not stop its siblings.  Once all work has drained, any
failure turns the whole call into a ``PartialExtractionFailure``: a contact
sheet with silently missing tiles is never produced.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Sequence, Tuple

from heimdex_contact_sheet.errors import Cancelled, ExtractionFailed, PartialExtractionFailure
from heimdex_contact_sheet.frames.extract import Thumbnail, extract_frame

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4

# How often the waiting thread checks the caller's cancellation event.
_CANCEL_POLL_S = 0.1

# (video_path, timestamp_s, width, height, cancel_event) -> Thumbnail
Extractor = Callable[[str, float, int, int, Optional[threading.Event]], Thumbnail]


def extract_frames(
    video_path: str,
    samples: Sequence[float],
    width: int = 0,
    height: int = 0,
    max_workers: int = DEFAULT_MAX_WORKERS,
    cancel_event: Optional[threading.Event] = None,
    extractor: Optional[Extractor] = None,
) -> List[Thumbnail]:
    """Extract one thumbnail per sample, at most ``max_workers`` at a time.

    Args:
        video_path: Path to video file.
        samples: Timestamps in seconds, in the order tiles should appear.
        width: Target tile width, ``0`` to derive from aspect ratio.
        height: Target tile height, ``0`` to derive from aspect ratio.
        max_workers: Ceiling on simultaneously running extractions.
        cancel_event: Set it to stop the run; running ffmpeg processes are
            killed and queued samples are never started. The pool only
            reads this event; it never sets it.
        extractor: Override the per-frame extractor (defaults to
            :func:`extract_frame`).

    Returns:
        Thumbnails in sample order.

    Raises:
        PartialExtractionFailure: If any sample failed.
        Cancelled: If the run was cancelled or interrupted.
    """
    if max_workers <= 0:
        raise ValueError(f"max_workers must be > 0, got {max_workers}")

    samples = list(samples)
    if not samples:
        return []

    extract = extractor or extract_frame
    # Pool-local event: set on any cancellation, never written back to the
    # caller's event.
    cancel = threading.Event()
    total = len(samples)

    def external_cancelled() -> bool:
        return cancel_event is not None and cancel_event.is_set()

    slots: List[Optional[Thumbnail]] = [None] * total
    failures: List[Optional[Tuple[float, str]]] = [None] * total
    limiter = threading.BoundedSemaphore(max_workers)

    def work(index: int, timestamp_s: float) -> None:
        with limiter:
            if external_cancelled():
                cancel.set()
            if cancel.is_set():
                return
            logger.debug(
                "extracting thumbnail current=%d total=%d timestamp_s=%.3f",
                index + 1, total, timestamp_s,
            )
            try:
                slots[index] = extract(video_path, timestamp_s, width, height, cancel)
            except Cancelled:
                cancel.set()
            except ExtractionFailed as exc:
                logger.error("failed to extract thumbnail timestamp_s=%.3f error=%s", timestamp_s, exc)
                failures[index] = (timestamp_s, exc.cause)
            except Exception as exc:
                logger.error(
                    "failed to extract thumbnail timestamp_s=%.3f error=%s",
                    timestamp_s, exc, exc_info=True,
                )
                failures[index] = (timestamp_s, f"{type(exc).__name__}: {exc}")

    t0 = time.monotonic()
    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="frame-extract")
    try:
        futures = [executor.submit(work, i, ts) for i, ts in enumerate(samples)]
        pending = set(futures)
        while pending:
            _, pending = wait(pending, timeout=_CANCEL_POLL_S)
            if external_cancelled():
                cancel.set()
    except KeyboardInterrupt as exc:
        cancel.set()
        executor.shutdown(wait=True, cancel_futures=True)
        raise Cancelled("frame extraction interrupted") from exc
    finally:
        executor.shutdown(wait=True, cancel_futures=cancel.is_set())

    elapsed = time.monotonic() - t0

    if cancel.is_set() or external_cancelled():
        logger.info("frame_extraction cancelled samples=%d elapsed_s=%.3f", total, elapsed)
        raise Cancelled(f"frame extraction cancelled after {elapsed:.1f}s")

    failed = [f for f in failures if f is not None]
    if failed:
        raise PartialExtractionFailure(failed, total)

    logger.info(
        "frame_extraction samples=%d workers=%d elapsed_s=%.3f",
        total, max_workers, elapsed,
    )
    return [thumb for thumb in slots if thumb is not None]
