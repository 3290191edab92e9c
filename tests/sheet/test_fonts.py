"""Tests for lazy overlay font loading."""

from unittest.mock import patch

import pytest

from heimdex_contact_sheet.errors import FontLoadError, RenderFailed
from heimdex_contact_sheet.sheet import fonts


@pytest.fixture(autouse=True)
def _clean_cache(monkeypatch):
    monkeypatch.delenv(fonts.FONT_ENV, raising=False)
    fonts.clear_font_cache()
    yield
    fonts.clear_font_cache()


def test_explicit_missing_font_raises(tmp_path):
    with pytest.raises(FontLoadError, match="cannot load font"):
        fonts.load_font(12, font_path=str(tmp_path / "missing.ttf"))


def test_env_font_is_used(monkeypatch, tmp_path):
    bogus = tmp_path / "bogus.ttf"
    bogus.write_bytes(b"not a font")
    monkeypatch.setenv(fonts.FONT_ENV, str(bogus))

    with pytest.raises(FontLoadError, match="bogus.ttf"):
        fonts.load_font(12)


def test_font_load_error_is_render_failure():
    assert issubclass(FontLoadError, RenderFailed)


def test_falls_back_to_pillow_default(monkeypatch):
    monkeypatch.setattr(fonts, "FALLBACK_FONTS", [])

    font = fonts.load_font(14)

    assert font.getlength("00:00:00") > 0


def test_loaded_once_per_size(monkeypatch):
    monkeypatch.setattr(fonts, "FALLBACK_FONTS", [])

    with patch.object(fonts.ImageFont, "load_default", wraps=fonts.ImageFont.load_default) as mock_load:
        first = fonts.load_font(12)
        second = fonts.load_font(12)
        fonts.load_font(20)

    assert first is second
    assert mock_load.call_count == 2


def test_unreadable_fallback_skipped(monkeypatch, tmp_path):
    bogus = tmp_path / "bogus.ttf"
    bogus.write_bytes(b"not a font")
    monkeypatch.setattr(fonts, "FALLBACK_FONTS", [str(bogus)])

    font = fonts.load_font(12)

    assert font is not None


def test_clear_cache_forces_reload(monkeypatch):
    monkeypatch.setattr(fonts, "FALLBACK_FONTS", [])
    first = fonts.load_font(12)
    fonts.clear_font_cache()
    assert fonts.load_font(12) is not first
