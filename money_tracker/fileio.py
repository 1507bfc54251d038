"""Atomic file writes shared by the local store and the disk cache."""

import contextlib
import os
from pathlib import Path


def atomic_write_text(path: Path, text: str) -> None:
    """
    Replace ``path`` with ``text`` in one step.

    Writes target ``<name>.tmp`` first and are then ``os.replace``d into
    place, so readers never observe a half-written file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)
    except Exception:
        with contextlib.suppress(FileNotFoundError):
            tmp.unlink()
        raise
