"""Configuration loader for gini.

Handles loading and merging configuration from multiple sources.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from ..utils.env import get_global_gini_dir
from ..utils.fs import safe_json_load
from .types import META_DIR_NAME, GiniConfig


CONFIG_NAME = "config.json"


class ConfigLoader:
    """Loads and manages gini configuration."""

    def __init__(self, project_root: Path | None = None):
        """Initialize config loader.

        Args:
            project_root: Project root directory (for project-local config)
        """
        self.project_root = project_root
        self._config: GiniConfig | None = None

    @property
    def config(self) -> GiniConfig:
        """Get loaded configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def load(self) -> GiniConfig:
        """Load configuration from all sources.

        Priority (highest to lowest):
        1. Project-local config (.gini/config.json)
        2. Global config (~/.gini/config.json)
        3. Default values

        Returns:
            Merged GiniConfig
        """
        merged: dict[str, Any] = {}

        global_config_path = get_global_gini_dir() / CONFIG_NAME
        if global_config_path.exists():
            global_data = safe_json_load(global_config_path, {})
            if isinstance(global_data, dict):
                merged = self._deep_merge(merged, global_data)

        if self.project_root:
            project_config_path = Path(self.project_root) / META_DIR_NAME / CONFIG_NAME
            if project_config_path.exists():
                project_data = safe_json_load(project_config_path, {})
                if isinstance(project_data, dict):
                    merged = self._deep_merge(merged, project_data)

        return GiniConfig.from_dict(merged)

    def reload(self) -> GiniConfig:
        """Force reload configuration."""
        self._config = None
        return self.config

    @staticmethod
    def _deep_merge(base: dict, override: dict) -> dict:
        """Deep merge two dictionaries.

        Args:
            base: Base dictionary
            override: Dictionary to merge (takes precedence)

        Returns:
            Merged dictionary
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = ConfigLoader._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
