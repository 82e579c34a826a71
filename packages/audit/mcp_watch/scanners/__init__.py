"""Detectors and the scan orchestrator."""

from mcp_watch.scanners.base import BaseScanner
from mcp_watch.scanners.discovery import DEFAULT_SKIP_DIRS, list_files
from mcp_watch.scanners.evidence import (
    is_example_credential,
    render_evidence,
    sanitize,
    sanitize_control_sequences,
)
from mcp_watch.scanners.pattern_scanner import PatternRule, PatternScanner
from mcp_watch.scanners.registry import BUILTIN_DETECTORS, build_detectors
from mcp_watch.scanners.mcp_scanner import McpScanner, ScanReport

__all__ = [
    "BaseScanner",
    "DEFAULT_SKIP_DIRS",
    "list_files",
    "is_example_credential",
    "render_evidence",
    "sanitize",
    "sanitize_control_sequences",
    "PatternRule",
    "PatternScanner",
    "BUILTIN_DETECTORS",
    "build_detectors",
    "McpScanner",
    "ScanReport",
]
