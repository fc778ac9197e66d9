from __future__ import annotations

from pathlib import Path

from ..config.types import META_DIR_NAME
from .errors import NotARepository


MAX_SEARCH_DEPTH = 100


def resolve_root(start: Path, *, max_depth: int = MAX_SEARCH_DEPTH) -> Path:
    """Walk upward from start to find a directory containing `.gini/`.

    Raises:
        NotARepository: If none is found within max_depth levels
    """

    cur = Path(start).resolve()
    for _ in range(max_depth + 1):
        if (cur / META_DIR_NAME).is_dir():
            return cur
        if cur.parent == cur:
            break
        cur = cur.parent
    raise NotARepository(f"Not a gini repository (or any parent up to {max_depth} levels): {start}")
