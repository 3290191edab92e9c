import logging
import math
import shutil
import subprocess
from typing import Optional

from heimdex_contact_sheet.errors import ProbeFailed

logger = logging.getLogger(__name__)


def check_tools_installed(
    ffmpeg_bin: Optional[str] = None,
    ffprobe_bin: Optional[str] = None,
) -> None:
    """Raise ``ProbeFailed`` unless both ffmpeg and ffprobe are executable."""
    for name in (ffmpeg_bin or "ffmpeg", ffprobe_bin or "ffprobe"):
        if shutil.which(name) is None:
            raise ProbeFailed(f"{name} not installed or not in PATH")


def probe_duration_s(video_path: str, ffprobe_bin: Optional[str] = None) -> float:
    """Return the container duration of ``video_path`` in seconds.

    Raises:
        ProbeFailed: If ffprobe cannot be run, exits non-zero, or prints
            something that is not a number.
    """
    cmd = [
        ffprobe_bin or "ffprobe", "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        video_path,
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as exc:
        raise ProbeFailed(f"failed to run ffprobe: {exc}") from exc

    if result.returncode != 0:
        raise ProbeFailed(
            f"ffprobe failed with exit code {result.returncode}: "
            f"{(result.stderr or '').strip()}"
        )

    raw = (result.stdout or "").strip()
    try:
        duration_s = float(raw)
    except ValueError as exc:
        raise ProbeFailed(
            f"failed to parse ffprobe duration {raw!r}: {(result.stderr or '').strip()}"
        ) from exc
    if not math.isfinite(duration_s) or duration_s < 0:
        raise ProbeFailed(f"ffprobe reported an unusable duration: {raw!r}")

    logger.debug("probe_duration video=%s duration_s=%.3f", video_path, duration_s)
    return duration_s
