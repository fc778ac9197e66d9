"""Utility modules for gini."""

from .fs import atomic_write, clean_working_directory, copy_tree_excluding, ensure_dir, safe_json_load
from .env import get_author_identity, get_global_gini_dir, get_home_dir, is_debug_mode
from .log import log_debug

__all__ = [
    "atomic_write",
    "clean_working_directory",
    "copy_tree_excluding",
    "ensure_dir",
    "safe_json_load",
    "get_author_identity",
    "get_global_gini_dir",
    "get_home_dir",
    "is_debug_mode",
    "log_debug",
]
