"""Single frame extraction using ffmpeg seek + capture to stdout."""

from __future__ import annotations

import io
import logging
import subprocess
import threading
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image

from heimdex_contact_sheet.errors import Cancelled, ExtractionFailed

logger = logging.getLogger(__name__)

# How often a running ffmpeg checks the cancellation event.
_CANCEL_POLL_S = 0.1


@dataclass(frozen=True)
class Thumbnail:
    image: Image.Image
    timestamp_s: float

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size


def _scale_filter(width: int, height: int) -> str:
    # -1 lets ffmpeg keep the aspect ratio from the other dimension.
    return f"scale={width if width > 0 else -1}:{height if height > 0 else -1}"


def build_extract_command(
    video_path: str,
    timestamp_s: float,
    width: int,
    height: int,
    ffmpeg_bin: Optional[str] = None,
) -> list[str]:
    timestamp_ms = int(round(timestamp_s * 1000))
    return [
        ffmpeg_bin or "ffmpeg",
        "-v", "error",
        "-ss", f"{timestamp_ms}ms",
        "-i", video_path,
        "-vf", _scale_filter(width, height),
        "-vframes", "1",
        "-q:v", "1",
        "-f", "image2",
        "pipe:1",
    ]


def _communicate(
    proc: subprocess.Popen,
    timestamp_s: float,
    cancel_event: Optional[threading.Event],
) -> Tuple[bytes, bytes]:
    if cancel_event is None:
        return proc.communicate()

    while True:
        if cancel_event.is_set():
            proc.kill()
            proc.communicate()
            raise Cancelled(f"frame extraction at {timestamp_s:.3f}s cancelled")
        try:
            return proc.communicate(timeout=_CANCEL_POLL_S)
        except subprocess.TimeoutExpired:
            continue


def extract_frame(
    video_path: str,
    timestamp_s: float,
    width: int = 0,
    height: int = 0,
    cancel_event: Optional[threading.Event] = None,
    ffmpeg_bin: Optional[str] = None,
) -> Thumbnail:
    """Decode one frame at ``timestamp_s`` scaled to ``width`` x ``height``.

    Either dimension may be ``0`` to derive it from the aspect ratio. The
    encoded frame is read from ffmpeg's stdout; nothing touches the disk.

    Raises:
        ExtractionFailed: If ffmpeg cannot start, exits non-zero, or writes
            bytes Pillow cannot decode. ``cause`` carries ffmpeg's stderr.
        Cancelled: If ``cancel_event`` is set while ffmpeg is running.
    """
    if cancel_event is not None and cancel_event.is_set():
        raise Cancelled(f"frame extraction at {timestamp_s:.3f}s cancelled")

    cmd = build_extract_command(video_path, timestamp_s, width, height, ffmpeg_bin)
    try:
        proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except OSError as exc:
        raise ExtractionFailed(timestamp_s, f"failed to run ffmpeg: {exc}") from exc

    stdout, stderr = _communicate(proc, timestamp_s, cancel_event)
    stderr_text = (stderr or b"").decode("utf-8", errors="replace").strip()

    if proc.returncode != 0:
        raise ExtractionFailed(
            timestamp_s,
            f"ffmpeg exited with code {proc.returncode}: {stderr_text}",
        )
    if not stdout:
        raise ExtractionFailed(timestamp_s, f"ffmpeg produced no image data: {stderr_text}")

    try:
        with Image.open(io.BytesIO(stdout)) as decoded:
            image = decoded.convert("RGB")
    except (OSError, ValueError) as exc:
        raise ExtractionFailed(timestamp_s, f"failed to decode image: {exc}") from exc

    logger.debug(
        "frame_extracted timestamp_s=%.3f size=%dx%d",
        timestamp_s, image.width, image.height,
    )
    return Thumbnail(image=image, timestamp_s=timestamp_s)
