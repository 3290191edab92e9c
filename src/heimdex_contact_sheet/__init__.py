"""Contact sheet generation for Heimdex media processing.

Samples evenly-spaced frames from a video with ffmpeg and lays them out on a
single grid image, optionally stamping each tile with its ``HH:MM:SS`` offset.
Requires ``ffmpeg`` and ``ffprobe`` on PATH and Pillow for compositing.
"""

__version__ = "0.1.0"
