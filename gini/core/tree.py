"""Tree building and walking.

TreeBuilder turns a directory into a graph of tree and blob objects.
TreeWalker turns a tree digest back into files on disk. Restores are planned
in full (every tree decoded, every blob located) before the first write, so a
structurally broken snapshot is rejected without touching the target.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from ..config.types import META_DIR_NAME, IgnoreConfig
from ..utils.log import log_debug
from .errors import FileTooLarge, MalformedObject, ObjectNotFound
from .object_store import ObjectStore
from .objects import TreeEntry, decode_tree, encode_tree, validate_digest


DEFAULT_MAX_TREE_DEPTH = 256


class TreeBuilder:
    """Builds tree objects from a working directory."""

    def __init__(
        self,
        store: ObjectStore,
        ignore_config: IgnoreConfig | None = None,
        max_file_size: int | None = None,
        protected: Iterable[str] = (),
    ):
        """Initialize tree builder.

        Args:
            store: Object store receiving blobs and trees
            ignore_config: Patterns for paths left out of the snapshot
            max_file_size: Size ceiling for a single file (defaults to the
                store's object ceiling)
            protected: Top-level names never snapshotted
        """
        self.store = store
        self.ignore_config = ignore_config or IgnoreConfig()
        self.max_file_size = store.max_object_size if max_file_size is None else max_file_size
        self.protected = frozenset(protected)

    def build(self, directory: Path) -> str:
        """Snapshot directory and return the root tree digest.

        Raises:
            FileTooLarge: If a file exceeds the size ceiling
        """
        root = Path(directory)
        return self._build(root, "")

    def _build(self, directory: Path, rel_dir: str) -> str:
        entries: list[TreeEntry] = []

        with os.scandir(directory) as it:
            children = sorted(it, key=lambda e: e.name)

        for child in children:
            rel_path = f"{rel_dir}/{child.name}" if rel_dir else child.name
            if self.ignore_config.should_ignore(rel_path) or (not rel_dir and child.name in self.protected):
                continue

            if child.is_dir(follow_symlinks=False):
                sub_tree = self._build(Path(child.path), rel_path)
                entries.append(TreeEntry(kind="tree", digest=sub_tree, name=child.name))
            elif child.is_file():
                blob = self._store_file(Path(child.path), rel_path)
                entries.append(TreeEntry(kind="blob", digest=blob, name=child.name))
            else:
                log_debug(f"Skipping {rel_path}: not a regular file or directory")

        return self.store.put(encode_tree(entries))

    def _store_file(self, path: Path, rel_path: str) -> str:
        # Check file size before reading
        size = path.stat().st_size
        if size > self.max_file_size:
            raise FileTooLarge(f"File too large: {rel_path} ({size} bytes, max {self.max_file_size} bytes)")
        return self.store.put(path.read_bytes())


@dataclass(frozen=True, slots=True)
class PlannedEntry:
    """One filesystem write of a restore plan, parents before children."""

    path: str  # '/'-separated, relative to the restore target
    kind: str
    digest: str


class TreeWalker:
    """Restores tree objects into a directory."""

    def __init__(
        self,
        store: ObjectStore,
        max_depth: int = DEFAULT_MAX_TREE_DEPTH,
        protected: Iterable[str] = (META_DIR_NAME,),
    ):
        """Initialize tree walker.

        Args:
            store: Object store holding the snapshot
            max_depth: Deepest tree nesting accepted
            protected: Top-level names a snapshot may not write to
        """
        self.store = store
        self.max_depth = max_depth
        self.protected = frozenset(protected) | {META_DIR_NAME}

    def plan(self, tree_digest: str) -> list[PlannedEntry]:
        """Validate the whole tree graph and list the writes needed.

        Raises:
            InvalidDigest: If tree_digest is malformed
            MalformedObject: If any tree is unparsable or nested too deeply,
                or names a protected entry at the top level
            ObjectNotFound: If any referenced object is missing
        """
        validate_digest(tree_digest)
        planned: list[PlannedEntry] = []
        self._plan(tree_digest, "", 0, planned)
        return planned

    def _plan(self, tree_digest: str, rel_dir: str, depth: int, planned: list[PlannedEntry]) -> None:
        if depth > self.max_depth:
            raise MalformedObject(f"Tree nesting exceeds {self.max_depth} levels at {rel_dir!r}")

        for entry in decode_tree(self.store.get(tree_digest)):
            if not rel_dir and entry.name in self.protected:
                raise MalformedObject(f"Snapshot contains protected entry {entry.name!r}")
            rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
            planned.append(PlannedEntry(path=rel_path, kind=entry.kind, digest=entry.digest))
            if entry.kind == "tree":
                self._plan(entry.digest, rel_path, depth + 1, planned)
            elif not self.store.exists(entry.digest):
                raise ObjectNotFound(f"Object not found: {entry.digest} (blob {rel_path})")

    def apply(self, target: Path, planned: list[PlannedEntry]) -> int:
        """Write a plan into target, overwriting existing files.

        Returns:
            Number of files written
        """
        target = Path(target)
        file_count = 0
        for entry in planned:
            path = target.joinpath(*entry.path.split("/"))
            if entry.kind == "tree":
                path.mkdir(parents=True, exist_ok=True)
            else:
                path.write_bytes(self.store.get(entry.digest))
                file_count += 1
        log_debug(f"Restored {file_count} files into {target}")
        return file_count

    def restore(self, target: Path, tree_digest: str) -> int:
        """Reconstruct tree_digest under target.

        Returns:
            Number of files written
        """
        return self.apply(target, self.plan(tree_digest))
