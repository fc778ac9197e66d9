"""File system utilities for gini.

Provides atomic writes, directory copies and working-directory cleanup.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Iterable


def atomic_write(file_path: Path | str, content: str | bytes, mode: str = "w") -> None:
    """Write content atomically using tempfile + rename pattern.

    The data is flushed and fsynced before the rename, so a crash leaves
    either the old file or the complete new one under the final name.

    Args:
        file_path: Target file path
        content: Content to write
        mode: Write mode ('w' for text, 'wb' for binary)
    """
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    # Create temp file in same directory for atomic rename
    fd, tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp"
    )

    try:
        with os.fdopen(fd, mode) as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except Exception:
        # Clean up temp file on failure
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def ensure_dir(dir_path: Path | str) -> Path:
    """Ensure directory exists, creating it if necessary.

    Args:
        dir_path: Directory path to create

    Returns:
        Path object for the directory
    """
    path = Path(dir_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def safe_json_load(file_path: Path | str, default: Any = None) -> Any:
    """Safely load JSON file with fallback.

    Args:
        file_path: Path to JSON file
        default: Default value if file doesn't exist or is invalid

    Returns:
        Parsed JSON or default value
    """
    try:
        with open(file_path) as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError):
        return default if default is not None else {}


def copy_tree_excluding(src: Path, dst: Path, exclude: Iterable[str]) -> None:
    """Copy the contents of src into dst, skipping top-level names in exclude.

    Symlinks are copied as links. dst may already exist.

    Args:
        src: Source directory
        dst: Destination directory
        exclude: Entry names to skip directly under src
    """
    src = Path(src)
    excluded = set(exclude)

    def _ignore(directory: str, names: list[str]) -> list[str]:
        if Path(directory) == src:
            return [n for n in names if n in excluded]
        return []

    shutil.copytree(src, dst, symlinks=True, ignore=_ignore, dirs_exist_ok=True)


def clean_working_directory(root: Path, protected: Iterable[str]) -> list[str]:
    """Remove every entry directly under root except protected names.

    Args:
        root: Working directory
        protected: Names to keep (repository metadata)

    Returns:
        Names that were removed
    """
    keep = set(protected)
    removed: list[str] = []
    for entry in sorted(Path(root).iterdir()):
        if entry.name in keep:
            continue
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
        removed.append(entry.name)
    return removed
