"""Tests for GiniController."""

import os
import re

import pytest

from gini.config.types import GiniConfig, LimitsConfig
from gini.core import controller as controller_module
from gini.core.controller import ControllerState, GiniController
from gini.core.errors import (
    AlreadyInitialized,
    BackupFailed,
    CommitNotFound,
    DetachedHeadUnsupported,
    FileTooLarge,
    InvalidCommit,
    InvalidMessage,
    MalformedObject,
    NotARepository,
    RestoreIncomplete,
)
from gini.core.objects import TreeEntry, decode_tree, encode_tree
from gini.core.project_root import resolve_root


@pytest.fixture
def temp_project(tmp_path):
    """Create a temporary project directory."""
    project = tmp_path / "project"
    project.mkdir()

    (project / "app.py").write_text("print('hello')")
    (project / "README.md").write_text("# Test")

    return project


@pytest.fixture
def controller(temp_project):
    """Create an initialized GiniController."""
    ctl = GiniController(project_root=temp_project)
    ctl.init()
    return ctl


def _files(root):
    result = {}
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d != ".gini"]
        for f in filenames:
            path = os.path.join(dirpath, f)
            with open(path, "rb") as fh:
                result[os.path.relpath(path, root)] = fh.read()
    return result


class TestInit:
    def test_init_creates_layout(self, temp_project):
        ctl = GiniController(project_root=temp_project)

        meta = ctl.init()

        assert meta == temp_project / ".gini"
        assert (meta / "objects").is_dir()
        assert (meta / "refs" / "heads").is_dir()
        assert (meta / "HEAD").read_text() == "ref: refs/heads/main"
        assert not (meta / "refs" / "heads" / "main").exists()
        assert ctl.refs.read_head() is None

    def test_init_twice(self, controller):
        with pytest.raises(AlreadyInitialized):
            controller.init()

    def test_init_nested_project_allowed(self, controller, temp_project):
        nested = temp_project / "sub"
        nested.mkdir()

        GiniController(project_root=nested).init()

        assert resolve_root(nested) == nested.resolve()

    def test_operations_require_init(self, temp_project):
        ctl = GiniController(project_root=temp_project)

        with pytest.raises(NotARepository):
            ctl.checkpoint("first")
        with pytest.raises(NotARepository):
            ctl.log()

    def test_configured_branch(self, temp_project):
        ctl = GiniController(project_root=temp_project, config=GiniConfig(branch="trunk"))
        ctl.init()
        ctl.checkpoint("first")

        assert (temp_project / ".gini" / "refs" / "heads" / "trunk").exists()


class TestCheckpoint:
    def test_first_checkpoint_scenario(self, controller, temp_project):
        result = controller.checkpoint("first")

        ref = (temp_project / ".gini" / "refs" / "heads" / "main").read_text()
        assert re.fullmatch(r"[0-9a-f]{40}", ref)
        assert ref == result.commit
        assert result.parent is None

        log = controller.log()
        assert len(log) == 1
        assert log[0].digest == result.commit
        assert log[0].summary == "first"

    def test_second_checkpoint_reuses_blobs_and_tree(self, controller, temp_project):
        (temp_project / "README.md").unlink()
        (temp_project / "app.py").unlink()
        (temp_project / "a.txt").write_text("hello")

        first = controller.checkpoint("one", timestamp=1000)
        objects_after_first = set(controller.store.iter_digests())
        second = controller.checkpoint("two", timestamp=1000)

        assert second.commit != first.commit
        assert second.tree == first.tree
        assert second.parent == first.commit
        # Only the new commit object was added.
        assert set(controller.store.iter_digests()) - objects_after_first == {second.commit}

        blob = decode_tree(controller.store.get(first.tree))[0].digest
        assert controller.store.get(blob) == b"hello"

    def test_author_recorded(self, controller):
        controller.checkpoint("msg", author_name="Ada", author_email="ada@example.com")

        assert controller.log()[0].author == "Ada <ada@example.com>"

    def test_default_author_from_config(self, controller):
        controller.checkpoint("msg")

        assert controller.log()[0].author == "Unknown <unknown@example.com>"

    @pytest.mark.parametrize("message", ["", "   ", "x" * 1001])
    def test_invalid_message(self, controller, message):
        with pytest.raises(InvalidMessage):
            controller.checkpoint(message)

        assert controller.refs.read_head() is None

    def test_failed_checkpoint_leaves_head(self, temp_project):
        ctl = GiniController(
            project_root=temp_project,
            config=GiniConfig(limits=LimitsConfig(max_object_size=5)),
        )
        ctl.init()

        with pytest.raises(FileTooLarge):
            ctl.checkpoint("too big")

        assert ctl.refs.read_head() is None
        assert ctl.state == ControllerState.IDLE

    def test_checkpoint_on_detached_head(self, controller):
        first = controller.checkpoint("first")
        controller.refs.head_path.write_text(first.commit)

        with pytest.raises(DetachedHeadUnsupported):
            controller.checkpoint("second")

        assert controller.refs.head_path.read_text() == first.commit


class TestRestore:
    def test_restore_round_trip(self, controller, temp_project):
        (temp_project / "src").mkdir()
        (temp_project / "src" / "main.py").write_text("def main(): pass")
        expected = _files(temp_project)
        first = controller.checkpoint("original")

        (temp_project / "app.py").write_text("print('changed')")
        (temp_project / "src" / "main.py").unlink()
        (temp_project / "extra.txt").write_text("new file")
        controller.checkpoint("changed")

        result = controller.restore(first.commit)

        assert _files(temp_project) == expected
        assert controller.refs.read_head() == first.commit
        assert result.backup.startswith("backup_")
        assert controller.state == ControllerState.IDLE

    def test_restore_takes_backup_of_current_state(self, controller, temp_project):
        first = controller.checkpoint("original")
        (temp_project / "app.py").write_text("unsaved work")
        before = _files(temp_project)

        result = controller.restore(first.commit)

        backup_dir = temp_project / ".gini" / "backups" / result.backup
        assert _files(backup_dir) == before
        info = controller.list_backups()[0]
        assert info.name == result.backup
        assert info.head == first.commit
        assert info.target == first.commit

    def test_restore_empty_tree_empties_project(self, controller, temp_project):
        (temp_project / "app.py").unlink()
        (temp_project / "README.md").unlink()
        empty = controller.checkpoint("empty")
        (temp_project / "file.txt").write_text("x")
        (temp_project / "dir").mkdir()
        (temp_project / "dir" / "nested.txt").write_text("y")

        controller.restore(empty.commit)

        assert [p.name for p in temp_project.iterdir()] == [".gini"]

    def test_restore_preserves_git_directory(self, controller, temp_project):
        first = controller.checkpoint("original")
        (temp_project / ".git").mkdir()
        (temp_project / ".git" / "config").write_text("keep me")

        controller.restore(first.commit)

        assert (temp_project / ".git" / "config").read_text() == "keep me"

    @pytest.mark.parametrize("target", ["abc", "z" * 40, "A" * 40])
    def test_restore_invalid_commit(self, controller, temp_project, target):
        with pytest.raises(InvalidCommit):
            controller.restore(target)

        assert not (temp_project / ".gini" / "backups").exists() or controller.list_backups() == []

    def test_restore_missing_commit(self, controller):
        with pytest.raises(CommitNotFound):
            controller.restore("0" * 40)

        assert controller.list_backups() == []

    def test_restore_malformed_snapshot_touches_nothing(self, controller, temp_project):
        blob = controller.store.put(b"data")
        bad_tree = controller.store.put(f"blob {blob}  ..".encode())
        commit = controller.commits.create_commit(bad_tree, None, "A", "a@b", "bad")
        before = _files(temp_project)

        with pytest.raises(MalformedObject):
            controller.restore(commit)

        assert _files(temp_project) == before
        assert controller.list_backups() == []

    def test_restore_snapshot_writing_into_metadata_is_rejected(self, controller, temp_project):
        first = controller.checkpoint("original")
        head_blob = controller.store.put(b"garbage")
        meta_tree = controller.store.put(encode_tree([TreeEntry(kind="blob", digest=head_blob, name="HEAD")]))
        root = controller.store.put(encode_tree([TreeEntry(kind="tree", digest=meta_tree, name=".gini")]))
        bad = controller.commits.create_commit(root, first.commit, "A", "a@b", "bad")
        before = _files(temp_project)

        with pytest.raises(MalformedObject):
            controller.restore(bad)

        assert controller.refs.head_path.read_text() == "ref: refs/heads/main"
        assert controller.refs.read_head() == first.commit
        assert _files(temp_project) == before
        assert controller.list_backups() == []

    def test_backup_failure_aborts_without_mutation(self, controller, temp_project, monkeypatch):
        first = controller.checkpoint("original")
        (temp_project / "app.py").write_text("unsaved")
        before = _files(temp_project)

        def fail(*args, **kwargs):
            raise BackupFailed("no space")

        monkeypatch.setattr(controller.backups, "create", fail)

        with pytest.raises(BackupFailed):
            controller.restore(first.commit)

        assert _files(temp_project) == before
        assert controller.state == ControllerState.IDLE

    def test_failure_after_backup_is_recoverable(self, controller, temp_project, monkeypatch):
        first = controller.checkpoint("original")
        (temp_project / "app.py").write_text("unsaved")
        before = _files(temp_project)

        def fail(*args, **kwargs):
            raise OSError("disk error")

        monkeypatch.setattr(controller_module.TreeWalker, "apply", fail)

        with pytest.raises(RestoreIncomplete) as excinfo:
            controller.restore(first.commit)

        backup_dir = temp_project / ".gini" / "backups" / excinfo.value.backup
        assert _files(backup_dir) == before
        assert isinstance(excinfo.value.__cause__, OSError)
        assert controller.refs.read_head() == first.commit

        controller.restore_from_backup(excinfo.value.backup)

        assert _files(temp_project) == before

    def test_restore_with_detached_head(self, controller, temp_project):
        first = controller.checkpoint("original")
        controller.refs.head_path.write_text(first.commit)
        before = _files(temp_project)

        with pytest.raises(DetachedHeadUnsupported):
            controller.restore(first.commit)

        assert _files(temp_project) == before


class TestHistoryAndStatus:
    def test_log_newest_first(self, controller, temp_project):
        c1 = controller.checkpoint("one")
        (temp_project / "app.py").write_text("2")
        c2 = controller.checkpoint("two\n\nlonger body")
        (temp_project / "app.py").write_text("3")
        c3 = controller.checkpoint("three")

        log = controller.log()

        assert [e.digest for e in log] == [c3.commit, c2.commit, c1.commit]
        assert [e.summary for e in log] == ["three", "two", "one"]

    def test_log_empty(self, controller):
        assert controller.log() == []

    def test_status(self, controller):
        controller.checkpoint("first")

        status = controller.status()

        assert status.initialized
        assert status.branch == "main"
        assert status.checkpoint_count == 1
        assert status.backup_count == 0
        assert status.object_count == 4  # 2 blobs, 1 tree, 1 commit

    def test_status_uninitialized(self, temp_project):
        status = GiniController(project_root=temp_project).status()

        assert not status.initialized
        assert status.head is None

    def test_verify(self, controller, temp_project):
        result = controller.checkpoint("first")
        report = controller.verify()
        assert report.valid
        assert report.commits_checked == 1

        blob = decode_tree(controller.store.get(result.tree))[0].digest
        (temp_project / ".gini" / "objects" / blob).unlink()

        report = controller.verify()
        assert not report.valid
        assert report.issues

    def test_verify_uninitialized(self, temp_project):
        report = GiniController(project_root=temp_project).verify()

        assert not report.valid


class TestResolveRoot:
    def test_finds_ancestor(self, controller, temp_project):
        deep = temp_project / "a" / "b"
        deep.mkdir(parents=True)

        assert resolve_root(deep) == temp_project.resolve()

    def test_depth_bound(self, controller, temp_project):
        deep = temp_project / "a" / "b" / "c"
        deep.mkdir(parents=True)

        with pytest.raises(NotARepository):
            resolve_root(deep, max_depth=2)

    def test_not_a_repository(self, tmp_path):
        with pytest.raises(NotARepository):
            resolve_root(tmp_path)
