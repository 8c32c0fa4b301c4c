"""Scratch directory holding every artifact of a run."""

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def prepare_work_dir(path: Path) -> Path:
    """Create ``path`` fresh, removing any tree left by a previous run."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.exists():
        logger.info(f"Removing stale working directory {path}")
        shutil.rmtree(path)
    path.mkdir(parents=True)
    return path


def write_note(work_dir: Path, name: str, text: str) -> Path:
    """Write a short text note artifact into the working directory."""
    note = work_dir / name
    note.parent.mkdir(parents=True, exist_ok=True)
    note.write_text(text if text.endswith("\n") else text + "\n")
    return note
