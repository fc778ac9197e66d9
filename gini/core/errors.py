"""Error types raised by the gini core.

Every failure is surfaced to the caller as one of these. The CLI turns them
into user-facing text and exit codes.
"""

from __future__ import annotations


class GiniError(Exception):
    """Base class for all gini errors."""


class InvalidDigest(GiniError):
    """Raised when a string is not a well-formed object digest."""


class InvalidCommit(InvalidDigest):
    """Raised when a restore target is not a well-formed commit digest."""


class ObjectNotFound(GiniError):
    """Raised when a digest is absent from the object store."""


class CommitNotFound(ObjectNotFound):
    """Raised when a restore target commit is absent from the object store."""


class MalformedObject(GiniError):
    """Raised when stored bytes cannot be parsed as their declared kind."""


class ObjectTooLarge(GiniError):
    """Raised when content exceeds the configured size ceiling."""


class FileTooLarge(ObjectTooLarge):
    """Raised when a working-directory file exceeds the size ceiling."""


class CorruptRepository(GiniError):
    """Raised when HEAD or a ref file is in no recognized form."""


class DetachedHeadUnsupported(GiniError):
    """Raised when HEAD must be advanced but is not symbolic."""


class NotARepository(GiniError):
    """Raised when no .gini directory is found."""


class AlreadyInitialized(GiniError):
    """Raised when init is called where .gini already exists."""


class BackupFailed(GiniError):
    """Raised when the pre-restore backup copy could not complete."""


class BackupNotFound(GiniError):
    """Raised when a named backup does not exist."""


class InvalidMessage(GiniError):
    """Raised when a checkpoint message is empty or too long."""


class RestoreIncomplete(GiniError):
    """Raised when a restore fails after the working directory was touched.

    The backup taken before the destructive steps is intact; restoring it
    is the recovery path.
    """

    def __init__(self, message: str, backup: str):
        super().__init__(message)
        self.backup = backup
