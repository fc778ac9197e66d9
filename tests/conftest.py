from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _isolate_home(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Prevent developer machine `~/.gini/config.json` and GINI_* vars from influencing tests."""

    monkeypatch.setenv("HOME", str(tmp_path))
    for var in ("GINI_DEBUG", "GINI_PROJECT_ROOT", "GINI_AUTHOR_NAME", "GINI_AUTHOR_EMAIL"):
        monkeypatch.delenv(var, raising=False)
