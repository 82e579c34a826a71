"""Utilities for mcp-watch."""

from mcp_watch.utils.compat import (
    IS_WINDOWS,
    normalize_path,
    relative_to_root,
    get_subprocess_creation_flags,
)

__all__ = [
    "IS_WINDOWS",
    "normalize_path",
    "relative_to_root",
    "get_subprocess_creation_flags",
]
