"""End-to-end contact sheet generation: probe, plan, extract, compose, save."""

from __future__ import annotations

import functools
import logging
import os
import sys
import threading
import time
from typing import List, Optional

from PIL import Image

from heimdex_contact_sheet.fileio import atomic_write
from heimdex_contact_sheet.frames.extract import Thumbnail, extract_frame
from heimdex_contact_sheet.frames.planner import plan_samples
from heimdex_contact_sheet.frames.pool import extract_frames
from heimdex_contact_sheet.frames.probe import check_tools_installed, probe_duration_s
from heimdex_contact_sheet.options import ThumbOptions
from heimdex_contact_sheet.sheet.compositor import compose_contact_sheet
from heimdex_contact_sheet.sheet.timestamp import PillowTimestampRenderer, TimestampRenderer

logger = logging.getLogger(__name__)


def make_thumbnails(
    video_path: str,
    options: ThumbOptions,
    default_interval_s: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
    ffmpeg_bin: Optional[str] = None,
    ffprobe_bin: Optional[str] = None,
) -> List[Thumbnail]:
    """Validate options, probe the video and extract every planned frame."""
    options.check()
    check_tools_installed(ffmpeg_bin, ffprobe_bin)

    duration_s = probe_duration_s(video_path, ffprobe_bin=ffprobe_bin)
    plan = plan_samples(options, duration_s, default_interval_s=default_interval_s)
    logger.info(
        "sampling video=%s duration_s=%.3f tiles=%d spacing_s=%.3f",
        video_path, duration_s, len(plan), plan.spacing_s,
    )

    return extract_frames(
        video_path,
        plan.timestamps,
        width=options.tile_width,
        height=options.tile_height,
        max_workers=options.max_workers,
        cancel_event=cancel_event,
        extractor=functools.partial(extract_frame, ffmpeg_bin=ffmpeg_bin),
    )


def generate_contact_sheet(
    video_path: str,
    options: ThumbOptions,
    default_interval_s: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
    renderer: Optional[TimestampRenderer] = None,
    ffmpeg_bin: Optional[str] = None,
    ffprobe_bin: Optional[str] = None,
) -> Image.Image:
    """Build the contact sheet image for ``video_path``.

    Raises:
        InvalidOptions: For bad options, before any subprocess runs.
        ProbeFailed: If ffmpeg/ffprobe are missing or the probe fails.
        PartialExtractionFailure: If any frame could not be extracted.
        Cancelled: If ``cancel_event`` was set or the run was interrupted.
    """
    t0 = time.monotonic()
    thumbnails = make_thumbnails(
        video_path,
        options,
        default_interval_s=default_interval_s,
        cancel_event=cancel_event,
        ffmpeg_bin=ffmpeg_bin,
        ffprobe_bin=ffprobe_bin,
    )

    if options.overlay_timestamps and renderer is None:
        renderer = PillowTimestampRenderer(
            font_size_pt=options.font_size_pt,
            background=options.timestamp_background,
            foreground=options.timestamp_foreground,
        )

    sheet = compose_contact_sheet(
        thumbnails,
        options.tile_columns,
        padding=options.padding,
        overlay_timestamps=options.overlay_timestamps,
        renderer=renderer,
    )
    logger.info(
        "contact_sheet_complete video=%s tiles=%d size=%dx%d elapsed_s=%.3f",
        video_path, len(thumbnails), sheet.width, sheet.height, time.monotonic() - t0,
    )
    return sheet


def default_output_path(video_path: str) -> str:
    """``/videos/clip.mp4`` -> ``/videos/clip.thumbs.jpg``."""
    directory = os.path.dirname(video_path)
    stem = os.path.splitext(os.path.basename(video_path))[0]
    return os.path.join(directory, f"{stem}.thumbs.jpg")


def save_contact_sheet(image: Image.Image, out_path: str, quality: int = 80) -> str:
    """Encode ``image`` as JPEG to ``out_path``, or stdout when it is ``-``.

    A failed encode never leaves a partial image behind.
    """
    if out_path == "-":
        image.save(sys.stdout.buffer, format="JPEG", quality=quality)
        sys.stdout.buffer.flush()
        return out_path

    return atomic_write(out_path, lambda tmp: image.save(tmp, format="JPEG", quality=quality))
