"""Grid layout of thumbnails onto a single contact sheet image.

The first thumbnail's size is the tile size for the whole sheet.  Tiles are
laid out row-major with ``padding`` pixels around and between them:

    width  = columns * tile_w + (columns + 1) * padding
    height = rows    * tile_h + (rows    + 1) * padding
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence, Tuple

from PIL import Image

from heimdex_contact_sheet.errors import EmptyInput, RenderFailed
from heimdex_contact_sheet.frames.extract import Thumbnail
from heimdex_contact_sheet.sheet.timestamp import (
    PillowTimestampRenderer,
    TimestampRenderer,
    format_timestamp,
)

logger = logging.getLogger(__name__)

# Distance of the timestamp label from the tile's right and bottom edges.
LABEL_INSET_PX = 10

SHEET_BACKGROUND = (0, 0, 0)


def grid_rows(count: int, columns: int) -> int:
    return math.ceil(count / columns)


def sheet_size(
    count: int,
    columns: int,
    tile_size: Tuple[int, int],
    padding: int = 0,
) -> Tuple[int, int]:
    tile_w, tile_h = tile_size
    rows = grid_rows(count, columns)
    width = columns * tile_w + (columns + 1) * padding
    height = rows * tile_h + (rows + 1) * padding
    return width, height


def grid_position(
    index: int,
    columns: int,
    tile_size: Tuple[int, int],
    padding: int = 0,
) -> Tuple[int, int]:
    """Top-left pixel of tile ``index`` (0-based, row-major)."""
    tile_w, tile_h = tile_size
    row, col = divmod(index, columns)
    return padding + col * (tile_w + padding), padding + row * (tile_h + padding)


def overlay_label(tile: Image.Image, label: Image.Image) -> Image.Image:
    """Return a copy of ``tile`` with ``label`` in its bottom-right corner."""
    annotated = tile.copy()
    x = annotated.width - label.width - LABEL_INSET_PX
    y = annotated.height - label.height - LABEL_INSET_PX
    mask = label if label.mode == "RGBA" else None
    annotated.paste(label, (x, y), mask)
    return annotated


def compose_contact_sheet(
    thumbnails: Sequence[Thumbnail],
    tile_columns: int,
    padding: int = 0,
    overlay_timestamps: bool = False,
    renderer: Optional[TimestampRenderer] = None,
) -> Image.Image:
    """Lay ``thumbnails`` out on a grid, optionally stamping timestamps.

    Args:
        thumbnails: Tiles in display order, all the size of the first one.
        tile_columns: Number of grid columns.
        padding: Pixels around and between tiles.
        overlay_timestamps: Draw each tile's ``HH:MM:SS`` offset in its
            bottom-right corner.
        renderer: Label renderer; defaults to :class:`PillowTimestampRenderer`.

    A label that fails to render is logged and its tile is placed unlabelled.

    Raises:
        EmptyInput: If ``thumbnails`` is empty.
    """
    if not thumbnails:
        raise EmptyInput("cannot build a contact sheet from 0 thumbnails")
    if tile_columns <= 0:
        raise ValueError(f"tile_columns must be > 0, got {tile_columns}")

    tile_size = thumbnails[0].image.size
    canvas = Image.new(
        "RGB",
        sheet_size(len(thumbnails), tile_columns, tile_size, padding),
        SHEET_BACKGROUND,
    )

    if overlay_timestamps and renderer is None:
        renderer = PillowTimestampRenderer()

    for i, thumb in enumerate(thumbnails):
        tile = thumb.image
        if overlay_timestamps:
            try:
                label = renderer.render(format_timestamp(thumb.timestamp_s))
                tile = overlay_label(tile, label)
            except RenderFailed as exc:
                logger.error(
                    "failed to overlay timestamp text timestamp_s=%.3f error=%s",
                    thumb.timestamp_s, exc,
                )
        if tile.mode != "RGB":
            tile = tile.convert("RGB")
        canvas.paste(tile, grid_position(i, tile_columns, tile_size, padding))

    logger.debug(
        "contact_sheet tiles=%d columns=%d size=%dx%d",
        len(thumbnails), tile_columns, canvas.width, canvas.height,
    )
    return canvas
