"""Version information for mcp-watch."""

__version__ = "2.0.0"
