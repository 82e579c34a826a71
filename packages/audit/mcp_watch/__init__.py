"""mcp-watch - security scanner for Model Context Protocol server code."""

from mcp_watch.version import __version__

__all__ = ["__version__"]
