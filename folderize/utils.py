"""
Utility functions for folderize.
"""

import os
from pathlib import Path
from typing import Iterable, List, Optional

from .constants import get_logger


def prune_empty_directories(root: Path, removed: Optional[List[Path]] = None,
                            is_root: bool = True, keep: Iterable[Path] = ()) -> List[Path]:
    """Remove every empty subdirectory of root, deepest first. Root itself is kept.

    Each directory is listed, its child directories are pruned, and it is then
    listed again: removing children can leave a parent newly empty. Directories
    in keep are neither entered nor removed.
    """
    logger = get_logger("utils")
    if removed is None:
        removed = []
    root = Path(root)
    if is_root:
        keep = frozenset(Path(k).resolve() for k in keep)

    try:
        with os.scandir(root) as listing:
            entries = list(listing)
    except OSError as e:
        logger.warning(f"Could not list {root}: {e}")
        return removed

    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            child = Path(entry.path)
            if keep and child.resolve() in keep:
                continue
            prune_empty_directories(child, removed, is_root=False, keep=keep)

    if is_root:
        return removed

    # Re-read after recursion
    try:
        with os.scandir(root) as remaining:
            is_empty = next(remaining, None) is None
    except OSError as e:
        logger.warning(f"Could not list {root}: {e}")
        return removed

    if is_empty:
        try:
            root.rmdir()
            removed.append(root)
            logger.info(f"Removed empty folder: {root}")
        except OSError as e:
            logger.warning(f"Could not remove {root}: {e}")

    return removed
