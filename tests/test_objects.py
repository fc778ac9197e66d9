"""Tests for the object codec."""

import hashlib

import pytest

from gini.core.errors import InvalidDigest, MalformedObject
from gini.core.objects import (
    CommitRecord,
    TreeEntry,
    decode_commit,
    decode_tree,
    digest,
    encode_commit,
    encode_tree,
    is_valid_digest,
    validate_digest,
)


A = "a" * 40
B = "b" * 40
C = "0123456789abcdef0123456789abcdef01234567"


class TestDigest:
    def test_digest_is_sha1_hex(self):
        assert digest(b"hello") == hashlib.sha1(b"hello").hexdigest()
        assert len(digest(b"")) == 40

    def test_valid_digest_shape(self):
        assert is_valid_digest(C)
        assert not is_valid_digest(C[:-1])
        assert not is_valid_digest(C + "0")
        assert not is_valid_digest("g" * 40)
        assert not is_valid_digest(C.upper())
        assert not is_valid_digest("../" + "a" * 37)
        assert not is_valid_digest(None)

    def test_validate_digest_raises(self):
        assert validate_digest(C) == C
        with pytest.raises(InvalidDigest):
            validate_digest("not-a-digest")


class TestTreeCodec:
    def test_encode_sorts_and_formats(self):
        data = encode_tree([
            TreeEntry(kind="tree", digest=B, name="src"),
            TreeEntry(kind="blob", digest=A, name="README.md"),
        ])

        assert data == f"blob {A}  README.md\ntree {B}  src".encode()

    def test_round_trip(self):
        entries = [
            TreeEntry(kind="blob", digest=A, name="a.txt"),
            TreeEntry(kind="tree", digest=B, name="lib"),
            TreeEntry(kind="blob", digest=C, name="my notes.txt"),
        ]

        assert decode_tree(encode_tree(entries)) == entries

    def test_empty_tree(self):
        assert encode_tree([]) == b""
        assert decode_tree(b"") == []

    def test_name_is_rest_of_line(self):
        entries = decode_tree(f"blob {A}  two  spaces\nblob {B}  tab\there".encode())

        assert [e.name for e in entries] == ["two  spaces", "tab\there"]

    def test_non_utf8_name_round_trips(self):
        name = b"caf\xe9.txt".decode("utf-8", "surrogateescape")
        entries = [TreeEntry(kind="blob", digest=A, name=name)]

        assert decode_tree(encode_tree(entries)) == entries

    @pytest.mark.parametrize(
        "line",
        [
            f"blob {A}",
            f"blob {A} name",
            f"link {A}  name",
            f"blob {A[:-1]}  name",
            f"blob {A}  ",
            f"blob {A}  ../etc",
            f"blob {A}  ..",
            f"tree {A}  a\\b",
            "",
        ],
    )
    def test_decode_rejects_bad_lines(self, line):
        data = f"blob {B}  ok\n{line}".encode()

        with pytest.raises(MalformedObject):
            decode_tree(data)

    def test_decode_rejects_duplicate_names(self):
        with pytest.raises(MalformedObject):
            decode_tree(f"blob {A}  x\nblob {B}  x".encode())

    def test_encode_rejects_bad_names(self):
        with pytest.raises(MalformedObject):
            encode_tree([TreeEntry(kind="blob", digest=A, name="a/b")])
        with pytest.raises(MalformedObject):
            encode_tree([TreeEntry(kind="blob", digest=A, name="line\nbreak")])


class TestCommitCodec:
    def _record(self, **overrides):
        fields = dict(
            tree=A,
            parent=B,
            author_name="Ada Lovelace",
            author_email="ada@example.com",
            timestamp=1700000000,
            tz_offset="+0530",
            message="first\n\nbody line",
        )
        fields.update(overrides)
        return CommitRecord(**fields)

    def test_encode_format(self):
        data = encode_commit(self._record())

        assert data == (
            f"tree {A}\nparent {B}\n"
            "author Ada Lovelace <ada@example.com> 1700000000 +0530\n\n"
            "first\n\nbody line"
        ).encode()

    def test_round_trip_with_and_without_parent(self):
        for record in (self._record(), self._record(parent=None)):
            assert decode_commit(encode_commit(record)) == record

    def test_summary_is_first_line(self):
        assert self._record().summary == "first"

    def test_missing_tree_line(self):
        data = b"author A <a@b> 1 +0000\n\nmsg"
        with pytest.raises(MalformedObject):
            decode_commit(data)

    def test_malformed_tree_line(self):
        data = b"tree xyz\nauthor A <a@b> 1 +0000\n\nmsg"
        with pytest.raises(MalformedObject):
            decode_commit(data)

    def test_invalid_parent_digest(self):
        data = f"tree {A}\nparent nope\nauthor A <a@b> 1 +0000\n\nmsg".encode()
        with pytest.raises(MalformedObject):
            decode_commit(data)

    def test_missing_separator(self):
        data = f"tree {A}\nauthor A <a@b> 1 +0000".encode()
        with pytest.raises(MalformedObject):
            decode_commit(data)

    def test_encode_rejects_bad_digest(self):
        with pytest.raises(InvalidDigest):
            encode_commit(self._record(parent="short"))

    def test_encode_rejects_angle_brackets_in_author(self):
        with pytest.raises(MalformedObject):
            encode_commit(self._record(author_email="<evil>"))
