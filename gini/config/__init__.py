"""Configuration management for gini."""

from .types import (
    META_DIR_NAME,
    AuthorConfig,
    GiniConfig,
    IgnoreConfig,
    LimitsConfig,
)
from .loader import ConfigLoader

__all__ = [
    "META_DIR_NAME",
    "AuthorConfig",
    "GiniConfig",
    "IgnoreConfig",
    "LimitsConfig",
    "ConfigLoader",
]
