from heimdex_contact_sheet.sheet.compositor import (
    compose_contact_sheet,
    grid_position,
    grid_rows,
    overlay_label,
    sheet_size,
)
from heimdex_contact_sheet.sheet.fonts import clear_font_cache, load_font
from heimdex_contact_sheet.sheet.timestamp import (
    PillowTimestampRenderer,
    TimestampRenderer,
    format_timestamp,
)

__all__ = [
    "PillowTimestampRenderer",
    "TimestampRenderer",
    "clear_font_cache",
    "compose_contact_sheet",
    "format_timestamp",
    "grid_position",
    "grid_rows",
    "load_font",
    "overlay_label",
    "sheet_size",
]
