"""Hashing and object codec.

Three object kinds are stored: blobs (raw file bytes), trees (one directory
level) and commits. Digests are SHA-1 over the exact bytes stored.

Tree format, one line per entry, sorted by name, no trailing newline::

    <kind> <digest>  <name>

A line is not split on every run of whitespace: the kind ends at the first
space and the digest at the following double space, and the name is the
rest of the line. Names may therefore contain spaces and tabs, so files with
such names survive a checkpoint and restore. Names holding ``/``, ``\\``,
NUL, CR or LF, and the names ``.`` and ``..``, are rejected.

Commit format::

    tree <digest>
    parent <digest>                      (optional)
    author <name> <<email>> <ts> <tz>

    <message>
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from typing import Iterable, Literal

from .errors import InvalidDigest, MalformedObject


HASH_LENGTH = 40
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"

EntryKind = Literal["blob", "tree"]
ENTRY_KINDS: tuple[str, ...] = ("blob", "tree")

_HEX_DIGITS = frozenset("0123456789abcdef")
_FORBIDDEN_NAME_CHARS = ("/", "\\", "\0", "\n", "\r")
_AUTHOR_RE = re.compile(r"^(?P<name>.*) <(?P<email>[^<>]*)> (?P<ts>\d+) (?P<tz>[+-]\d{4})$")
_TZ_RE = re.compile(r"^[+-]\d{4}$")


def digest(data: bytes) -> str:
    """Return the hex SHA-1 digest of data."""
    return hashlib.sha1(data).hexdigest()


def is_valid_digest(value: object) -> bool:
    """Check the digest shape: exact length, lowercase hex only."""
    return (
        isinstance(value, str)
        and len(value) == HASH_LENGTH
        and all(c in _HEX_DIGITS for c in value)
    )


def validate_digest(value: object) -> str:
    """Return value unchanged if it is a well-formed digest.

    Raises:
        InvalidDigest: If the shape check fails
    """
    if not is_valid_digest(value):
        raise InvalidDigest(f"Invalid digest: {value!r}")
    return value  # type: ignore[return-value]


def is_valid_name(name: str) -> bool:
    """Check that a tree entry name is a single path component."""
    if not name or name in (".", ".."):
        return False
    return not any(c in name for c in _FORBIDDEN_NAME_CHARS)


@dataclass(frozen=True, slots=True)
class TreeEntry:
    """One entry of a tree object."""

    kind: EntryKind
    digest: str
    name: str


def _check_entry(kind: str, entry_digest: str, name: str, line: str) -> None:
    if kind not in ENTRY_KINDS:
        raise MalformedObject(f"Invalid object kind in tree entry: {line!r}")
    if not is_valid_digest(entry_digest):
        raise MalformedObject(f"Invalid digest in tree entry: {line!r}")
    if not is_valid_name(name):
        raise MalformedObject(f"Invalid name in tree entry: {line!r}")


def encode_tree(entries: Iterable[TreeEntry]) -> bytes:
    """Serialize tree entries deterministically.

    Raises:
        MalformedObject: If an entry is invalid or a name repeats
    """
    ordered = sorted(entries, key=lambda e: e.name)
    lines: list[str] = []
    previous: str | None = None
    for entry in ordered:
        line = f"{entry.kind} {entry.digest}  {entry.name}"
        _check_entry(entry.kind, entry.digest, entry.name, line)
        if entry.name == previous:
            raise MalformedObject(f"Duplicate tree entry name: {entry.name!r}")
        previous = entry.name
        lines.append(line)
    return "\n".join(lines).encode(TEXT_ENCODING, TEXT_ERRORS)


def decode_tree(data: bytes) -> list[TreeEntry]:
    """Parse a tree object. Exact inverse of encode_tree.

    Raises:
        MalformedObject: If any line is not a valid entry
    """
    text = data.decode(TEXT_ENCODING, TEXT_ERRORS)
    if not text:
        return []

    entries: list[TreeEntry] = []
    seen: set[str] = set()
    for line in text.split("\n"):
        kind, sep1, rest = line.partition(" ")
        entry_digest, sep2, name = rest.partition("  ")
        if not sep1 or not sep2:
            raise MalformedObject(f"Invalid tree entry format: {line!r}")
        _check_entry(kind, entry_digest, name, line)
        if name in seen:
            raise MalformedObject(f"Duplicate tree entry name: {name!r}")
        seen.add(name)
        entries.append(TreeEntry(kind=kind, digest=entry_digest, name=name))  # type: ignore[arg-type]
    return entries


@dataclass(frozen=True, slots=True)
class CommitRecord:
    """Parsed contents of a commit object."""

    tree: str
    parent: str | None
    author_name: str
    author_email: str
    timestamp: int
    tz_offset: str
    message: str

    @property
    def author(self) -> str:
        return f"{self.author_name} <{self.author_email}>"

    @property
    def summary(self) -> str:
        """First line of the message."""
        return self.message.split("\n", 1)[0]


def encode_commit(record: CommitRecord) -> bytes:
    """Serialize a commit record.

    Raises:
        InvalidDigest: If the tree or parent digest is malformed
        MalformedObject: If an author field cannot be represented
    """
    validate_digest(record.tree)
    if record.parent is not None:
        validate_digest(record.parent)
    for value in (record.author_name, record.author_email):
        if any(c in value for c in "<>\n\r"):
            raise MalformedObject(f"Invalid author field: {value!r}")
    if not _TZ_RE.match(record.tz_offset):
        raise MalformedObject(f"Invalid timezone offset: {record.tz_offset!r}")

    header = f"tree {record.tree}\n"
    if record.parent is not None:
        header += f"parent {record.parent}\n"
    header += (
        f"author {record.author_name} <{record.author_email}> "
        f"{int(record.timestamp)} {record.tz_offset}\n\n"
    )
    return (header + record.message).encode(TEXT_ENCODING, TEXT_ERRORS)


def decode_commit(data: bytes) -> CommitRecord:
    """Parse a commit object.

    Raises:
        MalformedObject: If the tree line is absent or malformed, a parent
            line is invalid, the author line is unparsable, or the header
            is not terminated by a blank line
    """
    text = data.decode(TEXT_ENCODING, TEXT_ERRORS)
    header, sep, message = text.partition("\n\n")
    if not sep:
        raise MalformedObject("Commit object has no message separator")

    tree: str | None = None
    parent: str | None = None
    author: re.Match[str] | None = None

    for line in header.split("\n"):
        field, _, value = line.partition(" ")
        if field == "tree":
            if tree is not None or not is_valid_digest(value):
                raise MalformedObject(f"Invalid tree line: {line!r}")
            tree = value
        elif field == "parent":
            if parent is not None or not is_valid_digest(value):
                raise MalformedObject(f"Invalid parent line: {line!r}")
            parent = value
        elif field == "author":
            author = _AUTHOR_RE.match(value)
            if author is None:
                raise MalformedObject(f"Invalid author line: {line!r}")
        else:
            raise MalformedObject(f"Unknown commit header: {line!r}")

    if tree is None:
        raise MalformedObject("Could not find tree in commit object")
    if author is None:
        raise MalformedObject("Could not find author in commit object")

    return CommitRecord(
        tree=tree,
        parent=parent,
        author_name=author.group("name"),
        author_email=author.group("email"),
        timestamp=int(author.group("ts")),
        tz_offset=author.group("tz"),
        message=message,
    )
