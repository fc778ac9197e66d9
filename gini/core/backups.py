"""Pre-restore backups of the working directory.

Each backup is a plain directory copy at ``.gini/backups/backup_<unix-ts>/``
with a JSON sidecar ``backup_<unix-ts>.json`` next to it. Backups are never
deleted by gini.
"""

from __future__ import annotations

import json
import re
import shutil
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from ..utils.fs import atomic_write, clean_working_directory, copy_tree_excluding, ensure_dir, safe_json_load
from ..utils.log import log_debug
from .errors import BackupFailed, BackupNotFound


BACKUP_PREFIX = "backup_"
_BACKUP_NAME_RE = re.compile(r"^backup_(?P<ts>\d+)(?:_(?P<seq>\d+))?$")


@dataclass
class BackupInfo:
    """Metadata for a backup."""
    name: str
    created_at: datetime
    head: str | None = None
    target: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "createdAt": self.created_at.isoformat(),
            "head": self.head,
            "target": self.target,
        }

    @classmethod
    def from_dict(cls, name: str, data: dict) -> BackupInfo:
        """Create from sidecar dictionary, falling back to the name's timestamp."""
        created_at = _timestamp_from_name(name)
        raw = data.get("createdAt")
        if isinstance(raw, str):
            try:
                created_at = datetime.fromisoformat(raw)
            except ValueError:
                pass
        head = data.get("head")
        target = data.get("target")
        return cls(
            name=name,
            created_at=created_at,
            head=head if isinstance(head, str) else None,
            target=target if isinstance(target, str) else None,
        )


def _timestamp_from_name(name: str) -> datetime:
    match = _BACKUP_NAME_RE.match(name)
    ts = int(match.group("ts")) if match else 0
    return datetime.fromtimestamp(ts)


def _sort_key(name: str) -> tuple[int, int]:
    match = _BACKUP_NAME_RE.match(name)
    if not match:
        return (0, 0)
    return (int(match.group("ts")), int(match.group("seq") or 0))


class BackupStore:
    """Creates, lists and restores working-directory backups."""

    def __init__(self, backups_dir: Path, project_root: Path, protected: Iterable[str]):
        """Initialize backup store.

        Args:
            backups_dir: Directory holding the backups
            project_root: Working directory being backed up
            protected: Top-level names never copied nor wiped
        """
        self.backups_dir = Path(backups_dir)
        self.project_root = Path(project_root)
        self.protected = list(protected)

    def _fresh_name(self, timestamp: int) -> str:
        name = f"{BACKUP_PREFIX}{timestamp}"
        seq = 0
        while (self.backups_dir / name).exists() or (self.backups_dir / f"{name}.json").exists():
            seq += 1
            name = f"{BACKUP_PREFIX}{timestamp}_{seq}"
        return name

    def create(self, head: str | None = None, target: str | None = None) -> BackupInfo:
        """Copy the working directory into a new backup.

        The copy is made under a hidden partial name and renamed into place
        once complete, so a listed backup is always a finished one.

        Args:
            head: Commit HEAD pointed at when the backup was taken
            target: Commit about to be restored

        Raises:
            BackupFailed: If the copy could not complete
        """
        timestamp = int(time.time())
        partial: Path | None = None
        try:
            ensure_dir(self.backups_dir)
            name = self._fresh_name(timestamp)
            partial = self.backups_dir / f".{name}.partial"
            if partial.exists():
                shutil.rmtree(partial)

            copy_tree_excluding(self.project_root, partial, self.protected)
            partial.rename(self.backups_dir / name)
            partial = None

            info = BackupInfo(
                name=name,
                created_at=datetime.fromtimestamp(timestamp),
                head=head,
                target=target,
            )
            atomic_write(self.backups_dir / f"{name}.json", json.dumps(info.to_dict(), indent=2))
        except (OSError, shutil.Error) as e:
            if partial is not None and partial.exists():
                shutil.rmtree(partial, ignore_errors=True)
            raise BackupFailed(f"Failed to create backup: {e}") from e

        log_debug(f"Created backup at {self.backups_dir / name}")
        return info

    def list(self) -> list[BackupInfo]:
        """List all backups, newest first."""
        if not self.backups_dir.exists():
            return []

        names = [
            entry.name
            for entry in self.backups_dir.iterdir()
            if entry.is_dir() and _BACKUP_NAME_RE.match(entry.name)
        ]
        names.sort(key=_sort_key, reverse=True)
        return [self._load_info(name) for name in names]

    def get(self, name: str) -> BackupInfo:
        """Get metadata for a specific backup.

        Raises:
            BackupNotFound: If name is not an existing backup
        """
        if not _BACKUP_NAME_RE.match(name) or not (self.backups_dir / name).is_dir():
            raise BackupNotFound(f"Backup not found: {name}")
        return self._load_info(name)

    def _load_info(self, name: str) -> BackupInfo:
        data: Any = safe_json_load(self.backups_dir / f"{name}.json", {})
        return BackupInfo.from_dict(name, data if isinstance(data, dict) else {})

    def restore(self, name: str) -> None:
        """Replace the working directory with a backup's contents.

        Raises:
            BackupNotFound: If name is not an existing backup
        """
        self.get(name)
        backup_path = self.backups_dir / name

        removed = clean_working_directory(self.project_root, self.protected)
        log_debug(f"Removed {len(removed)} entries from {self.project_root}")
        copy_tree_excluding(backup_path, self.project_root, self.protected)
        log_debug(f"Restored backup {name}")
