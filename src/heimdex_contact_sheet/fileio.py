"""Atomic file writes shared by the sheet encoder and ``doctor --out``."""

from __future__ import annotations

import os
from typing import Callable


def atomic_write(out_path: str, write: Callable[[str], None]) -> str:
    """Call ``write`` with a ``.tmp`` sibling of ``out_path``, then move it into place.

    Parent directories are created as needed. If ``write`` raises, the tmp
    file is removed and ``out_path`` is left untouched.
    """
    abs_out = os.path.abspath(out_path)
    os.makedirs(os.path.dirname(abs_out) or ".", exist_ok=True)
    tmp_path = abs_out + ".tmp"
    try:
        write(tmp_path)
        os.replace(tmp_path, abs_out)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
    return out_path


def write_text(out_path: str, text: str) -> str:
    """Atomically write ``text`` as UTF-8 to ``out_path``."""
    def write(tmp_path: str) -> None:
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(text)

    return atomic_write(out_path, write)
