"""Commit chain: creating commits and walking their parent links."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Iterator

from .errors import CorruptRepository
from .object_store import ObjectStore
from .objects import CommitRecord, decode_commit, encode_commit, validate_digest


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """One step of a history walk."""

    digest: str
    author: str
    message: str
    timestamp: int

    @property
    def summary(self) -> str:
        return self.message.split("\n", 1)[0]


def local_tz_offset(timestamp: int) -> str:
    """Format the local UTC offset at timestamp as +HHMM / -HHMM."""
    offset = time.localtime(timestamp).tm_gmtoff or 0
    sign = "+" if offset >= 0 else "-"
    minutes = abs(offset) // 60
    return f"{sign}{minutes // 60:02d}{minutes % 60:02d}"


class CommitChain:
    """Creates and reads commit objects."""

    def __init__(self, store: ObjectStore):
        self.store = store

    def create_commit(
        self,
        tree: str,
        parent: str | None,
        author_name: str,
        author_email: str,
        message: str,
        timestamp: int | None = None,
        tz_offset: str | None = None,
    ) -> str:
        """Store a commit object and return its digest. HEAD is not touched."""
        validate_digest(tree)
        if parent is not None:
            validate_digest(parent)
        ts = int(time.time()) if timestamp is None else int(timestamp)
        record = CommitRecord(
            tree=tree,
            parent=parent,
            author_name=author_name,
            author_email=author_email,
            timestamp=ts,
            tz_offset=tz_offset or local_tz_offset(ts),
            message=message,
        )
        return self.store.put(encode_commit(record))

    def read_commit(self, commit_digest: str) -> CommitRecord:
        return decode_commit(self.store.get(commit_digest))

    def resolve_tree(self, commit_digest: str) -> str:
        """Return the tree digest a commit references."""
        return self.read_commit(commit_digest).tree

    def walk_history(self, head: str) -> Iterator[HistoryEntry]:
        """Yield commits from head back to the root commit, newest first.

        A missing or unparsable commit anywhere in the chain fails the walk
        instead of truncating it.

        Raises:
            ObjectNotFound: If a referenced commit is missing
            MalformedObject: If a commit cannot be parsed
            CorruptRepository: If the parent chain loops
        """
        seen: set[str] = set()
        current: str | None = head
        while current is not None:
            if current in seen:
                raise CorruptRepository(f"Commit history loops at {current}")
            seen.add(current)

            record = self.read_commit(current)
            yield HistoryEntry(
                digest=current,
                author=record.author,
                message=record.message,
                timestamp=record.timestamp,
            )
            current = record.parent
