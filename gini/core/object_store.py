"""Content-addressed object store.

Objects live flat under ``.gini/objects/<digest>``. The store is write-once:
putting the same bytes twice is a no-op that returns the same digest.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

from ..utils.fs import atomic_write
from ..utils.log import log_debug
from .errors import ObjectNotFound, ObjectTooLarge
from .objects import digest, is_valid_digest, validate_digest


DEFAULT_MAX_OBJECT_SIZE = 100 * 1024 * 1024  # 100MB


class ObjectStore:
    """Maps digests to immutable byte content on disk."""

    def __init__(self, objects_dir: Path, max_object_size: int = DEFAULT_MAX_OBJECT_SIZE):
        """Initialize object store.

        Args:
            objects_dir: Directory holding one file per object
            max_object_size: Size ceiling in bytes for a single object
        """
        self.objects_dir = Path(objects_dir)
        self.max_object_size = max_object_size

    def path_for(self, object_id: str) -> Path:
        """Return the on-disk path for a digest (validated first)."""
        return self.objects_dir / validate_digest(object_id)

    def put(self, data: bytes) -> str:
        """Store data and return its digest.

        Raises:
            ObjectTooLarge: If data exceeds the size ceiling
        """
        if len(data) > self.max_object_size:
            raise ObjectTooLarge(
                f"Object too large: {len(data)} bytes (max {self.max_object_size} bytes)"
            )

        object_id = digest(data)
        path = self.objects_dir / object_id
        if path.exists():
            return object_id

        atomic_write(path, data, mode="wb")
        log_debug(f"Stored object {object_id[:7]} ({len(data)} bytes)")
        return object_id

    def get(self, object_id: str) -> bytes:
        """Read an object's bytes.

        Raises:
            InvalidDigest: If object_id fails the shape check
            ObjectNotFound: If no such object exists
        """
        path = self.path_for(object_id)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise ObjectNotFound(f"Object not found: {object_id}") from None

    def exists(self, object_id: str) -> bool:
        return self.path_for(object_id).is_file()

    def iter_digests(self) -> Iterator[str]:
        """Yield the digest of every stored object (temp files skipped)."""
        if not self.objects_dir.exists():
            return
        for entry in sorted(self.objects_dir.iterdir()):
            if entry.is_file() and is_valid_digest(entry.name):
                yield entry.name

    def verify_object(self, object_id: str) -> bool:
        """Rehash a stored object and compare against its name."""
        return digest(self.get(object_id)) == object_id
