"""gini controller - main orchestrator.

Coordinates the object store, tree builder/walker, commit chain, refs and
backups into the checkpoint and restore transitions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator

from ..config import META_DIR_NAME, ConfigLoader, GiniConfig
from ..utils.fs import clean_working_directory
from ..utils.log import log_debug
from .backups import BackupInfo, BackupStore
from .commits import CommitChain, HistoryEntry
from .errors import (
    AlreadyInitialized,
    CommitNotFound,
    DetachedHeadUnsupported,
    GiniError,
    InvalidCommit,
    InvalidMessage,
    NotARepository,
    RestoreIncomplete,
)
from .object_store import ObjectStore
from .objects import is_valid_digest
from .refs import RefManager
from .tree import TreeBuilder, TreeWalker


class ControllerState(str, Enum):
    """Where the controller is in a checkpoint or restore."""
    IDLE = "idle"
    CHECKPOINTING = "checkpointing"
    RESTORING_BACKED_UP = "restoring_backed_up"
    RESTORING_CLEANED = "restoring_cleaned"


@dataclass
class CheckpointResult:
    """Result of a checkpoint operation."""
    commit: str
    tree: str
    parent: str | None = None


@dataclass
class RestoreResult:
    """Result of a restore operation."""
    commit: str
    tree: str
    backup: str
    file_count: int = 0


@dataclass
class LogEntry:
    """One line of history as shown to the user."""
    digest: str
    author: str
    summary: str


@dataclass
class GiniStatus:
    """Status of a gini repository."""
    initialized: bool
    project_root: str
    meta_dir: str
    branch: str | None = None
    head: str | None = None
    detached: bool = False
    checkpoint_count: int = 0
    backup_count: int = 0
    object_count: int = 0


@dataclass
class VerifyReport:
    """Outcome of a repository consistency check."""
    valid: bool
    issues: list[str] = field(default_factory=list)
    commits_checked: int = 0
    objects_checked: int = 0


class GiniController:
    """Main controller for gini operations."""

    def __init__(self, project_root: Path | str | None = None, config: GiniConfig | None = None):
        """Initialize controller.

        Args:
            project_root: Project root directory (defaults to cwd)
            config: Explicit configuration; loaded from disk when omitted
        """
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self._config_loader = ConfigLoader(project_root=self.project_root)
        self._config = config
        self.state = ControllerState.IDLE

        self._store: ObjectStore | None = None
        self._refs: RefManager | None = None
        self._commits: CommitChain | None = None
        self._backups: BackupStore | None = None

    @property
    def config(self) -> GiniConfig:
        """Get current configuration."""
        if self._config is None:
            self._config = self._config_loader.config
        return self._config

    @property
    def meta_dir(self) -> Path:
        return self.project_root / META_DIR_NAME

    @property
    def store(self) -> ObjectStore:
        """Get object store (lazy init)."""
        if self._store is None:
            self._store = ObjectStore(
                self.meta_dir / "objects",
                max_object_size=self.config.limits.max_object_size,
            )
        return self._store

    @property
    def refs(self) -> RefManager:
        if self._refs is None:
            self._refs = RefManager(self.meta_dir)
        return self._refs

    @property
    def commits(self) -> CommitChain:
        if self._commits is None:
            self._commits = CommitChain(self.store)
        return self._commits

    @property
    def backups(self) -> BackupStore:
        if self._backups is None:
            self._backups = BackupStore(
                self.meta_dir / "backups",
                project_root=self.project_root,
                protected=self.config.protected_names,
            )
        return self._backups

    def tree_builder(self) -> TreeBuilder:
        return TreeBuilder(
            self.store,
            ignore_config=self.config.ignore,
            protected=self.config.protected_names,
        )

    def tree_walker(self) -> TreeWalker:
        return TreeWalker(
            self.store,
            max_depth=self.config.limits.max_tree_depth,
            protected=self.config.protected_names,
        )

    def is_initialized(self) -> bool:
        return self.meta_dir.is_dir()

    def require_initialized(self) -> None:
        """Raise NotARepository unless .gini exists under the project root."""
        if not self.is_initialized():
            raise NotARepository(f"No .gini project found in {self.project_root}")

    def init(self) -> Path:
        """Create the .gini layout in the project root.

        Only the project root itself is checked; a .gini in an ancestor
        does not prevent initializing a nested project.

        Returns:
            Path to the new .gini directory

        Raises:
            AlreadyInitialized: If .gini already exists here
        """
        if self.meta_dir.exists():
            raise AlreadyInitialized(f"{META_DIR_NAME} already exists in {self.project_root}")

        self.meta_dir.mkdir(parents=True)
        (self.meta_dir / "objects").mkdir()
        (self.meta_dir / "backups").mkdir()
        self.refs.initialize(self.config.branch)
        log_debug(f"Initialized {self.meta_dir}")
        return self.meta_dir

    def validate_message(self, message: str) -> None:
        """Reject empty or overlong checkpoint messages.

        Raises:
            InvalidMessage: If the message is unusable
        """
        if not message or not message.strip():
            raise InvalidMessage("Commit message cannot be empty")
        limit = self.config.limits.max_message_length
        if len(message) > limit:
            raise InvalidMessage(f"Commit message too long (max {limit} characters)")

    def checkpoint(
        self,
        message: str,
        author_name: str | None = None,
        author_email: str | None = None,
        timestamp: int | None = None,
    ) -> CheckpointResult:
        """Create a new checkpoint from the working directory.

        The tree is stored before the commit, and the commit before HEAD is
        advanced, so HEAD never names a missing object. A failure at any step
        leaves HEAD where it was.

        Args:
            message: Checkpoint message
            author_name: Author name (defaults to configured author)
            author_email: Author email (defaults to configured author)
            timestamp: Unix time to record (defaults to now)

        Returns:
            CheckpointResult with commit, tree and parent digests
        """
        self.require_initialized()
        self.validate_message(message)

        self.state = ControllerState.CHECKPOINTING
        try:
            tree = self.tree_builder().build(self.project_root)
            parent = self.refs.read_head()
            commit = self.commits.create_commit(
                tree=tree,
                parent=parent,
                author_name=author_name or self.config.author.name,
                author_email=author_email or self.config.author.email,
                message=message,
                timestamp=timestamp,
            )
            self.refs.advance(commit)
        finally:
            self.state = ControllerState.IDLE

        log_debug(f"Checkpoint {commit[:7]} (tree {tree[:7]}, parent {parent[:7] if parent else 'none'})")
        return CheckpointResult(commit=commit, tree=tree, parent=parent)

    def restore(self, commit: str) -> RestoreResult:
        """Replace the working directory with a stored checkpoint.

        The target snapshot is fully validated first, then the current
        working directory is backed up, wiped and rebuilt, and finally HEAD
        is advanced. Nothing is removed unless the backup completed.

        Raises:
            InvalidCommit: If commit is not a well-formed digest
            CommitNotFound: If the commit is not in the object store
            MalformedObject: If the commit or any tree under it is invalid
            DetachedHeadUnsupported: If HEAD is detached
            BackupFailed: If the backup could not be made (nothing changed)
            RestoreIncomplete: If a step after the backup failed; the error
                names the backup to recover from
        """
        self.require_initialized()
        if not is_valid_digest(commit):
            raise InvalidCommit(f"Invalid commit hash: {commit}")
        if not self.store.exists(commit):
            raise CommitNotFound(f"Commit not found: {commit}")

        tree = self.commits.resolve_tree(commit)
        walker = self.tree_walker()
        plan = walker.plan(tree)

        if self.refs.is_detached():
            raise DetachedHeadUnsupported("Detached HEAD not supported for restore")
        head = self.refs.read_head()

        try:
            backup = self.backups.create(head=head, target=commit)
            self.state = ControllerState.RESTORING_BACKED_UP
            try:
                clean_working_directory(self.project_root, self.config.protected_names)
                self.state = ControllerState.RESTORING_CLEANED
                file_count = walker.apply(self.project_root, plan)
                self.refs.advance(commit)
            except (GiniError, OSError) as e:
                raise RestoreIncomplete(
                    f"Restore to {commit[:7]} did not complete: {e}. "
                    f"The previous working directory is saved in backup {backup.name}",
                    backup=backup.name,
                ) from e
        finally:
            self.state = ControllerState.IDLE

        return RestoreResult(commit=commit, tree=tree, backup=backup.name, file_count=file_count)

    def history(self) -> Iterator[HistoryEntry]:
        """Walk history from HEAD, newest first."""
        self.require_initialized()
        head = self.refs.read_head()
        if head is None:
            return iter(())
        return self.commits.walk_history(head)

    def log(self) -> list[LogEntry]:
        """List history from HEAD as (digest, author, first message line)."""
        return [
            LogEntry(digest=entry.digest, author=entry.author, summary=entry.summary)
            for entry in self.history()
        ]

    def list_backups(self) -> list[BackupInfo]:
        """List backups, newest first."""
        self.require_initialized()
        return self.backups.list()

    def restore_from_backup(self, name: str) -> None:
        """Replace the working directory with a backup's contents.

        Neither the object store nor HEAD is touched.
        """
        self.require_initialized()
        self.backups.restore(name)

    def status(self) -> GiniStatus:
        """Get repository status."""
        status = GiniStatus(
            initialized=self.is_initialized(),
            project_root=str(self.project_root),
            meta_dir=str(self.meta_dir),
        )
        if not status.initialized:
            return status

        status.branch = self.refs.current_branch()
        status.detached = status.branch is None
        status.head = self.refs.read_head()
        status.checkpoint_count = sum(1 for _ in self.history())
        status.backup_count = len(self.backups.list())
        status.object_count = sum(1 for _ in self.store.iter_digests())
        return status

    def verify(self) -> VerifyReport:
        """Check HEAD, history, reachable trees and object integrity.

        Returns:
            VerifyReport listing every problem found
        """
        report = VerifyReport(valid=False)
        if not self.is_initialized():
            report.issues.append("gini not initialized (run 'gini init')")
            return report

        try:
            for entry in self.history():
                report.commits_checked += 1
                self.tree_walker().plan(self.commits.resolve_tree(entry.digest))
        except GiniError as e:
            report.issues.append(f"History check failed: {e}")

        for object_id in self.store.iter_digests():
            report.objects_checked += 1
            if not self.store.verify_object(object_id):
                report.issues.append(f"Object {object_id} content does not match its digest")

        report.valid = not report.issues
        return report
