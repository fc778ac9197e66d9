"""Core modules for gini."""

from .controller import GiniController
from .object_store import ObjectStore
from .project_root import resolve_root

__all__ = [
    "GiniController",
    "ObjectStore",
    "resolve_root",
]
