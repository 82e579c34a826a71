"""Rule-table loading for mcp-watch."""

from mcp_watch_core.rules.loader import DetectorTable, RuleLoader

__all__ = ["DetectorTable", "RuleLoader"]
