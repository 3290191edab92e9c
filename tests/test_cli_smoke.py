"""Smoke tests for CLI module.

These tests verify the CLI can be imported and the typer app is wired correctly.
They do NOT require ffmpeg.
"""

import importlib
import json
import subprocess
import sys

from typer.testing import CliRunner

from heimdex_contact_sheet.cli import app

runner = CliRunner()


def test_package_importable():
    """Package root imports without error."""
    mod = importlib.import_module("heimdex_contact_sheet")
    assert hasattr(mod, "__version__")
    assert mod.__version__ == "0.1.0"


def test_cli_module_importable():
    """CLI module imports without error."""
    mod = importlib.import_module("heimdex_contact_sheet.cli")
    assert hasattr(mod, "app")
    assert hasattr(mod, "doctor")
    assert hasattr(mod, "generate")


def test_main_module_runnable():
    """python -m heimdex_contact_sheet --help works."""
    result = subprocess.run(
        [sys.executable, "-m", "heimdex_contact_sheet", "--help"],
        capture_output=True,
        text=True,
        timeout=30,
    )
    assert result.returncode == 0
    assert "generate" in result.stdout


def test_generate_help():
    # rich truncates option names at the default 80 columns
    result = runner.invoke(
        app, ["generate", "--help"], env={"COLUMNS": "200", "TERMINAL_WIDTH": "200"},
    )
    assert result.exit_code == 0
    assert "--columns" in result.output
    assert "--overlay-timestamps" in result.output


def test_version_command():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_doctor_json_to_file(tmp_path):
    out = tmp_path / "doctor" / "doctor.json"
    result = runner.invoke(app, ["doctor", "--json", "--out", str(out)])

    assert result.exit_code == 0
    data = json.loads(out.read_text())
    assert data["package_version"] == "0.1.0"
    assert set(data["executables"]) == {"ffmpeg", "ffprobe"}
    assert data["dependencies"]["PIL"]["available"] is True
    assert "font" in data


def test_doctor_reports_binary_override(tmp_path, monkeypatch):
    monkeypatch.setenv("HEIMDEX_FFMPEG_BIN", str(tmp_path / "no-such-ffmpeg"))
    out = tmp_path / "doctor.json"

    result = runner.invoke(app, ["doctor", "--json", "--out", str(out)])

    assert result.exit_code == 0
    ffmpeg = json.loads(out.read_text())["executables"]["ffmpeg"]
    assert ffmpeg["available"] is False
    assert "HEIMDEX_FFMPEG_BIN" in ffmpeg["error"]
    assert not (tmp_path / "doctor.json.tmp").exists()
