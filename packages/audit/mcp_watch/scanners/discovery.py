"""File discovery shared by all detectors."""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

from mcp_watch.utils.compat import relative_to_root

logger = logging.getLogger(__name__)

# Dependency caches and build outputs are never scanned
DEFAULT_SKIP_DIRS: frozenset = frozenset({
    "node_modules",
    "dist",
    "build",
    "__pycache__",
})


def _matches_extension(name: str, extensions: Iterable[str]) -> bool:
    suffix = os.path.splitext(name)[1]
    return any(suffix == ext or name.endswith(ext) for ext in extensions)


def list_files(
    root: Union[str, Path],
    extensions: Iterable[str],
    skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS,
    exclude: Optional[Iterable[str]] = None,
) -> List[Path]:
    """
    Recursively list files under ``root`` whose extension is requested.

    Hidden directories (name starts with ``.``), ``skip_dirs`` and symlinked
    directories are not descended into. Directories that cannot be listed are skipped rather
    than aborting the walk. Entries are visited in name order so the
    result is stable for a fixed tree.

    Args:
        root: Directory to walk
        extensions: Extensions such as ``.py``; a literal filename suffix
            such as ``.env`` also matches
        skip_dirs: Directory names to prune
        exclude: Path fragments; files whose root-relative path contains
            one of them are dropped

    Returns:
        Matching file paths under ``root``
    """
    root = Path(root)
    extensions = tuple(extensions)
    skip = frozenset(skip_dirs)
    excludes = [e for e in (exclude or []) if e]
    files: List[Path] = []

    def traverse(current: Path):
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.debug(f"Skipping unreadable directory {current}: {e}")
            return

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    if entry.name.startswith(".") or entry.name in skip:
                        continue
                    traverse(Path(entry.path))
                elif entry.is_file() and _matches_extension(entry.name, extensions):
                    path = Path(entry.path)
                    if excludes:
                        rel = relative_to_root(path, root)
                        if any(fragment in rel for fragment in excludes):
                            continue
                    files.append(path)
            except OSError as e:
                logger.debug(f"Skipping {entry.path}: {e}")

    traverse(root)
    return files
