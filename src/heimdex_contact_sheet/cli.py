"""Unified CLI entrypoint for heimdex-contact-sheet.

Usage:
    python -m heimdex_contact_sheet generate video.mp4 --columns 4 --overlay-timestamps
    python -m heimdex_contact_sheet generate video.mp4 --count 12 -o - > sheet.jpg
    python -m heimdex_contact_sheet doctor --json --out doctor.json
"""

import importlib
import importlib.metadata
import json
import logging
import os
import shutil
import sys
import threading
from typing import Any, Optional

import typer
from pydantic import ValidationError

import heimdex_contact_sheet as _pkg
from heimdex_contact_sheet.errors import Cancelled, ContactSheetError
from heimdex_contact_sheet.fileio import write_text
from heimdex_contact_sheet.options import ThumbOptions, parse_color, parse_duration

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="heimdex-contact-sheet",
    help="Heimdex contact sheet (thumbnail grid) CLI.",
)

# CLI policy; the library itself takes fully explicit options.
DEFAULT_FROM = "10"
DEFAULT_INTERVAL_S = 60

EXIT_FAILURE = 1
EXIT_CANCELLED = 130


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _cause_chain(exc: BaseException) -> str:
    """Render ``exc`` and its ``__cause__`` chain, outermost first."""
    parts = []
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        parts.append(str(current) or type(current).__name__)
        current = current.__cause__ or current.__context__
    return "\ncaused by: ".join(parts)


@app.command()
def generate(
    video: str = typer.Argument(..., help="Path to input video file"),
    out: Optional[str] = typer.Option(
        None, "--out", "-o",
        help="Output JPEG path, use - for stdout. Defaults to <video>.thumbs.jpg",
    ),
    from_: str = typer.Option(
        DEFAULT_FROM, "--from",
        help="Starting point: seconds, 11h22m33s, mm:ss or hh:mm:ss",
    ),
    to: str = typer.Option("", "--to", help="Stopping point, same formats as --from"),
    tile_width: int = typer.Option(540, help="Tile width in px (0 = derive from height)"),
    tile_height: int = typer.Option(0, help="Tile height in px (0 = derive from width)"),
    columns: int = typer.Option(3, help="Columns of tile grid"),
    interval: Optional[float] = typer.Option(
        None, help=f"Interval between tiles in seconds [default: {DEFAULT_INTERVAL_S}]",
    ),
    count: Optional[int] = typer.Option(None, help="Number of tiles (excludes --interval)"),
    quality: int = typer.Option(80, help="JPEG quality"),
    padding: int = typer.Option(0, help="Padding around tiles in px"),
    overlay_timestamps: bool = typer.Option(False, help="Overlay timestamp on each tile"),
    overlay_background: str = typer.Option(
        "transparent",
        help='Timestamp background as RGB or RGBA hex color or "transparent", e.g. #FFF59D',
    ),
    overlay_foreground: str = typer.Option("FFFFFF", help="Timestamp text color as RGB or RGBA hex"),
    font_size: float = typer.Option(12.0, help="Timestamp font size in points"),
    workers: int = typer.Option(4, help="Concurrent ffmpeg extractions"),
    ffmpeg_bin: Optional[str] = typer.Option(None, envvar="HEIMDEX_FFMPEG_BIN", help="Override ffmpeg binary"),
    ffprobe_bin: Optional[str] = typer.Option(None, envvar="HEIMDEX_FFPROBE_BIN", help="Override ffprobe binary"),
    debug: bool = typer.Option(False, help="Enable verbose logging"),
) -> None:
    """Extract evenly-spaced frames from VIDEO and save them as one grid image."""
    from heimdex_contact_sheet.pipeline import (
        default_output_path,
        generate_contact_sheet,
        save_contact_sheet,
    )

    _configure_logging(debug)
    cancel_event = threading.Event()

    try:
        options = ThumbOptions(
            from_s=parse_duration(from_),
            to_s=parse_duration(to),
            tile_columns=columns,
            tile_count=count,
            interval_s=interval,
            tile_width=tile_width,
            tile_height=tile_height,
            padding=padding,
            overlay_timestamps=overlay_timestamps,
            timestamp_background=parse_color(overlay_background),
            timestamp_foreground=parse_color(overlay_foreground),
            font_size_pt=font_size,
            jpeg_quality=quality,
            max_workers=workers,
        )
        logger.debug("parsed options %s", options.model_dump())

        image = generate_contact_sheet(
            video,
            options,
            default_interval_s=DEFAULT_INTERVAL_S,
            cancel_event=cancel_event,
            ffmpeg_bin=ffmpeg_bin,
            ffprobe_bin=ffprobe_bin,
        )
        out_path = out or default_output_path(video)
        save_contact_sheet(image, out_path, quality=options.jpeg_quality)
    except (Cancelled, KeyboardInterrupt) as exc:
        cancel_event.set()
        typer.echo(f"cancelled: {_cause_chain(exc)}", err=True)
        raise typer.Exit(code=EXIT_CANCELLED)
    except ValidationError as exc:
        typer.echo(f"invalid options: {exc}", err=True)
        raise typer.Exit(code=EXIT_FAILURE)
    except (ContactSheetError, OSError) as exc:
        typer.echo(f"failed to generate contact sheet: {_cause_chain(exc)}", err=True)
        raise typer.Exit(code=EXIT_FAILURE)

    if out_path != "-":
        typer.echo(f"Wrote {out_path} ({image.width}x{image.height})", err=True)


# import name -> distribution name on the package index
_LIBRARIES = {"PIL": "Pillow", "pydantic": "pydantic", "typer": "typer"}
_TOOLS = {"ffmpeg": "HEIMDEX_FFMPEG_BIN", "ffprobe": "HEIMDEX_FFPROBE_BIN"}


def _check_library(import_name: str, dist_name: str) -> dict[str, object]:
    """Import ``import_name`` and report the installed ``dist_name`` version."""
    try:
        importlib.import_module(import_name)
    except ImportError as e:
        return {"available": False, "error": str(e)}
    try:
        version = importlib.metadata.version(dist_name)
    except importlib.metadata.PackageNotFoundError:
        version = "unknown"
    return {"available": True, "version": version}


def _check_tool(name: str, env_var: str) -> dict[str, object]:
    """Resolve ``name`` the way extraction does: ``env_var`` first, then PATH."""
    override = os.getenv(env_var)
    path = shutil.which(override or name)
    source = env_var if override else "PATH"
    if path:
        return {"available": True, "path": path, "source": source}
    return {"available": False, "error": f"{override or name} not found (from {source})"}


def _check_font() -> dict[str, object]:
    from heimdex_contact_sheet.errors import FontLoadError
    from heimdex_contact_sheet.sheet.fonts import load_font

    try:
        font = load_font()
    except FontLoadError as e:
        return {"available": False, "error": str(e)}
    return {"available": True, "path": str(getattr(font, "path", "<pillow default>"))}


@app.command()
def doctor(
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
    out: Optional[str] = typer.Option(None, help="Write result to file path"),
) -> None:
    """Check system dependencies for contact sheet generation."""
    checks: dict[str, Any] = {
        "package_version": _pkg.__version__,
        "python": {
            "version": sys.version,
            "executable": sys.executable,
        },
        "dependencies": {
            name: _check_library(name, dist) for name, dist in _LIBRARIES.items()
        },
        "executables": {
            name: _check_tool(name, env_var) for name, env_var in _TOOLS.items()
        },
        "font": _check_font(),
    }

    all_deps = {**checks["dependencies"], **checks["executables"]}
    available_count = sum(1 for v in all_deps.values() if v.get("available"))
    total_count = len(all_deps)
    checks["summary"] = {
        "available": available_count,
        "total": total_count,
        "all_ok": available_count == total_count,
    }

    if as_json or out:
        text = json.dumps(checks, indent=2, ensure_ascii=False)
        if out:
            write_text(out, text)
            typer.echo(f"Wrote {out}")
        else:
            typer.echo(text)
    else:
        typer.echo(f"heimdex-contact-sheet v{_pkg.__version__}")
        typer.echo(f"Python {sys.version}")
        typer.echo()
        for category_name, category in [("Dependencies", checks["dependencies"]), ("Executables", checks["executables"])]:
            typer.echo(f"  {category_name}:")
            for name, info in category.items():
                status = "OK" if info.get("available") else "MISSING"
                detail = info.get("version", info.get("path", info.get("error", "")))
                typer.echo(f"    {name:15s} [{status:7s}] {detail}")
        typer.echo()
        font_info = checks["font"]
        font_detail = font_info.get("path", font_info.get("error", ""))
        typer.echo(f"  Font: {font_detail}")
        typer.echo()
        summary = checks["summary"]
        typer.echo(f"  {summary['available']}/{summary['total']} dependencies available")
        if not summary["all_ok"]:
            raise typer.Exit(code=1)


@app.command()
def version() -> None:
    """Show version and exit."""
    typer.echo(_pkg.__version__)


# Support `python -m heimdex_contact_sheet`
def main() -> None:
    app()


if __name__ == "__main__":
    main()
