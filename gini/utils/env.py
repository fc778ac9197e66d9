"""Environment utilities for gini."""

from __future__ import annotations

import os
from pathlib import Path


def is_debug_mode() -> bool:
    """Check if debug mode is enabled.

    Returns:
        True if GINI_DEBUG is set to a truthy value
    """
    val = os.environ.get("GINI_DEBUG", "").lower()
    return val in ("1", "true", "yes", "on")


def get_home_dir() -> Path:
    """Get user home directory.

    Returns:
        Path to home directory
    """
    return Path.home()


def get_global_gini_dir() -> Path:
    """Get global gini directory (~/.gini).

    Returns:
        Path to global gini config directory
    """
    return get_home_dir() / ".gini"


def get_project_root_override() -> Path | None:
    """Project root from GINI_PROJECT_ROOT, if set."""
    val = os.environ.get("GINI_PROJECT_ROOT")
    if isinstance(val, str) and val.strip():
        return Path(val.strip()).expanduser()
    return None


def get_author_identity(default_name: str, default_email: str) -> tuple[str, str]:
    """Resolve the checkpoint author.

    GINI_AUTHOR_NAME / GINI_AUTHOR_EMAIL win over the given defaults.

    Returns:
        (name, email)
    """
    name = os.environ.get("GINI_AUTHOR_NAME", "").strip() or default_name
    email = os.environ.get("GINI_AUTHOR_EMAIL", "").strip() or default_email
    return name, email
