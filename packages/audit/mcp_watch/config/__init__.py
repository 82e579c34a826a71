"""Configuration loading for mcp-watch."""

from mcp_watch.config.settings import DEFAULT_TIMEOUT, IgnoreRule, Settings

__all__ = ["DEFAULT_TIMEOUT", "IgnoreRule", "Settings"]
