"""Filesystem helpers used by the bundle writer.

All helpers overwrite existing files and create missing parent directories.
Errors from the underlying calls propagate unchanged.
"""

import json
import shutil
from pathlib import Path
from typing import Any, Union

PathLike = Union[str, Path]


def ensure_dir(path: PathLike) -> Path:
    """Create a directory and any missing ancestors. No-op if it exists."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_text(path: PathLike, content: str) -> Path:
    """Write UTF-8 text to a file, creating its parent directory first."""
    path = Path(path)
    ensure_dir(path.parent)
    path.write_text(content, encoding="utf-8")
    return path


def write_json(path: PathLike, data: Any) -> Path:
    """Serialize ``data`` as indented JSON with a trailing newline."""
    return write_text(path, json.dumps(data, indent=2) + "\n")


def copy_dir(source: PathLike, target: PathLike) -> Path:
    """Recursively copy ``source`` into ``target``.

    Existing files under ``target`` are overwritten, other files there are
    left alone. Nothing is created when ``source`` is not a directory.
    """
    source = Path(source)
    target = Path(target)
    if not source.is_dir():
        raise FileNotFoundError(f"Skill source directory not found: {source}")
    ensure_dir(target.parent)
    shutil.copytree(source, target, dirs_exist_ok=True)
    return target
