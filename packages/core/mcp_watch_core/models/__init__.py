"""Core data models for mcp-watch."""

from mcp_watch_core.models.finding import Finding, MAX_EVIDENCE_LENGTH
from mcp_watch_core.models.risk import Severity

__all__ = [
    "Finding",
    "MAX_EVIDENCE_LENGTH",
    "Severity",
]
