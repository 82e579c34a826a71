"""Cross-platform helpers.

Keeps file paths in findings and the git subprocess launch consistent on
Windows, macOS, and Linux.
"""

import sys
from pathlib import Path
from typing import Union

IS_WINDOWS = sys.platform == "win32"


def normalize_path(path: Union[str, Path]) -> str:
    """
    Normalize a path to use forward slashes consistently.

    Report paths are compared and sorted as strings, so they must not
    depend on the platform separator.
    """
    return str(path).replace("\\", "/")


def relative_to_root(path: Path, root: Path) -> str:
    """Return ``path`` relative to ``root`` with forward slashes."""
    try:
        rel = path.relative_to(root)
    except ValueError:
        rel = path
    return normalize_path(rel)


def get_subprocess_creation_flags() -> int:
    """
    Creation flags for child processes.

    On Windows, returns CREATE_NO_WINDOW so cloning does not flash a console
    window. On other platforms, returns 0.
    """
    if IS_WINDOWS:
        return 0x08000000
    return 0
