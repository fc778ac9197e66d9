"""Configuration schemas for gini.

Defines dataclasses for all configuration structures.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field


META_DIR_NAME = ".gini"


@dataclass
class LimitsConfig:
    """Size and depth ceilings."""
    max_object_size: int = 100 * 1024 * 1024  # bytes
    max_message_length: int = 1000  # characters
    max_tree_depth: int = 256  # nested tree levels accepted on restore

    @classmethod
    def from_dict(cls, data: dict) -> LimitsConfig:
        """Create LimitsConfig from dictionary."""
        defaults = cls()
        return cls(
            max_object_size=_positive_int(data.get("maxObjectSize"), defaults.max_object_size),
            max_message_length=_positive_int(data.get("maxMessageLength"), defaults.max_message_length),
            max_tree_depth=_positive_int(data.get("maxTreeDepth"), defaults.max_tree_depth),
        )


@dataclass
class AuthorConfig:
    """Fallback author identity for checkpoints."""
    name: str = "Unknown"
    email: str = "unknown@example.com"

    @classmethod
    def from_dict(cls, data: dict) -> AuthorConfig:
        """Create AuthorConfig from dictionary."""
        defaults = cls()
        name = data.get("name")
        email = data.get("email")
        return cls(
            name=name if isinstance(name, str) and name.strip() else defaults.name,
            email=email if isinstance(email, str) and email.strip() else defaults.email,
        )


@dataclass
class IgnoreConfig:
    """Patterns for paths left out of snapshots."""
    patterns: list[str] = field(default_factory=lambda: [
        ".git",
        ".hg",
        ".svn",
        "target",
        "build",
        "dist",
        "__pycache__",
    ])
    additional_ignores: list[str] = field(default_factory=list)
    force_include: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> IgnoreConfig:
        """Create IgnoreConfig from dictionary."""
        return cls(
            patterns=_str_list(data.get("ignorePatterns"), cls().patterns),
            additional_ignores=_str_list(data.get("additionalIgnores"), []),
            force_include=_str_list(data.get("forceInclude"), []),
        )

    def should_ignore(self, path: str) -> bool:
        """Check if a path should be ignored.

        The metadata directory is always ignored, whatever the patterns say.

        Args:
            path: Relative path to check, '/'-separated

        Returns:
            True if path should be ignored
        """
        parts = path.split("/")
        if META_DIR_NAME in parts:
            return True

        # Check force include first
        for pattern in self.force_include:
            if fnmatch.fnmatchcase(path, pattern):
                return False

        # Check ignore patterns
        for pattern in self.patterns + self.additional_ignores:
            if fnmatch.fnmatchcase(path, pattern):
                return True
            # Also check if any path component matches
            for part in parts:
                if fnmatch.fnmatchcase(part, pattern):
                    return True

        return False


@dataclass
class GiniConfig:
    """Main gini configuration."""
    branch: str = "main"
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    ignore: IgnoreConfig = field(default_factory=IgnoreConfig)
    author: AuthorConfig = field(default_factory=AuthorConfig)
    preserve: list[str] = field(default_factory=lambda: [".git"])

    @property
    def protected_names(self) -> list[str]:
        """Names never copied into backups nor removed by a wipe."""
        return [META_DIR_NAME] + [n for n in self.preserve if n != META_DIR_NAME]

    @classmethod
    def from_dict(cls, data: dict) -> GiniConfig:
        """Create GiniConfig from dictionary."""
        defaults = cls()
        branch = data.get("branch")
        if not (isinstance(branch, str) and _is_valid_branch(branch)):
            branch = defaults.branch

        return cls(
            branch=branch,
            limits=LimitsConfig.from_dict(_dict(data.get("limits"))),
            ignore=IgnoreConfig.from_dict(_dict(data.get("ignore"))),
            author=AuthorConfig.from_dict(_dict(data.get("author"))),
            preserve=_str_list(data.get("preserve"), defaults.preserve),
        )


def _is_valid_branch(name: str) -> bool:
    return bool(name) and name not in (".", "..") and not any(c in name for c in "/\\ \n\r\t\0")


def _positive_int(val: object, default: int) -> int:
    if isinstance(val, int) and not isinstance(val, bool) and val > 0:
        return val
    return default


def _str_list(val: object, default: list[str]) -> list[str]:
    if isinstance(val, list) and all(isinstance(v, str) for v in val):
        return list(val)
    return list(default)


def _dict(val: object) -> dict:
    return val if isinstance(val, dict) else {}
