"""HEAD and branch refs.

HEAD is either symbolic (``ref: refs/heads/<branch>``) or detached (a bare
digest). Only a symbolic HEAD can be advanced.
"""

from __future__ import annotations

from pathlib import Path

from ..utils.fs import atomic_write
from ..utils.log import log_debug
from .errors import CorruptRepository, DetachedHeadUnsupported
from .objects import is_valid_digest, validate_digest


SYMBOLIC_PREFIX = "ref: "
HEADS_PREFIX = "refs/heads/"


class RefManager:
    """Owns .gini/HEAD and .gini/refs/."""

    def __init__(self, meta_dir: Path):
        self.meta_dir = Path(meta_dir)
        self.head_path = self.meta_dir / "HEAD"

    def initialize(self, branch: str = "main") -> None:
        """Point HEAD at a branch that has no commits yet."""
        (self.meta_dir / "refs" / "heads").mkdir(parents=True, exist_ok=True)
        atomic_write(self.head_path, f"{SYMBOLIC_PREFIX}{HEADS_PREFIX}{branch}")

    def _read_head_raw(self) -> str:
        try:
            return self.head_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            raise CorruptRepository("HEAD file is missing") from None
        except UnicodeDecodeError:
            raise CorruptRepository("HEAD file is not valid text") from None
        except OSError as e:
            raise CorruptRepository(f"Cannot read HEAD: {e}") from e

    def _symbolic_target(self, content: str) -> Path | None:
        """Ref file a symbolic HEAD points at, or None if HEAD is detached."""
        if not content.startswith(SYMBOLIC_PREFIX):
            return None
        ref_name = content[len(SYMBOLIC_PREFIX):].strip()
        parts = ref_name.split("/")
        if (
            not ref_name.startswith("refs/")
            or any(p in ("", ".", "..") for p in parts)
            or "\\" in ref_name
        ):
            raise CorruptRepository(f"Invalid ref in HEAD: {ref_name!r}")
        return self.meta_dir.joinpath(*parts)

    def read_head(self) -> str | None:
        """Resolve HEAD to a commit digest.

        Returns:
            The commit digest, or None if HEAD's branch has no commits yet

        Raises:
            CorruptRepository: If HEAD or its ref is in no recognized form
                or the ref file cannot be read
        """
        content = self._read_head_raw()
        ref_path = self._symbolic_target(content)

        if ref_path is None:
            if is_valid_digest(content):
                return content
            raise CorruptRepository("Invalid HEAD format")

        try:
            value = ref_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except UnicodeDecodeError:
            raise CorruptRepository(f"Ref file is not valid text: {ref_path.name}") from None
        except OSError as e:
            raise CorruptRepository(f"Cannot read ref file {ref_path.name}: {e}") from e
        if not is_valid_digest(value):
            raise CorruptRepository(f"Invalid digest in ref file: {value!r}")
        return value

    def current_branch(self) -> str | None:
        """Branch name HEAD points at, or None if detached."""
        content = self._read_head_raw()
        if self._symbolic_target(content) is None:
            return None
        ref_name = content[len(SYMBOLIC_PREFIX):].strip()
        if ref_name.startswith(HEADS_PREFIX):
            return ref_name[len(HEADS_PREFIX):]
        return ref_name

    def is_detached(self) -> bool:
        return self._symbolic_target(self._read_head_raw()) is None

    def advance(self, new_digest: str) -> None:
        """Point HEAD's branch at new_digest.

        Raises:
            InvalidDigest: If new_digest is malformed
            DetachedHeadUnsupported: If HEAD is not symbolic
        """
        validate_digest(new_digest)
        ref_path = self._symbolic_target(self._read_head_raw())
        if ref_path is None:
            raise DetachedHeadUnsupported("Detached HEAD not supported for updates")

        atomic_write(ref_path, new_digest)
        log_debug(f"Advanced {ref_path.relative_to(self.meta_dir).as_posix()} to {new_digest[:7]}")
