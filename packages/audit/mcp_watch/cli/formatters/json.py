"""JSON output formatter."""

import json
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List

from mcp_watch_core.models import Finding

from mcp_watch.errors import DetectorFailure
from mcp_watch.version import __version__

SCANNER_NAME = "MCP Watch"

RESEARCH_SOURCES = [
    "VulnerableMCP Database",
    "HiddenLayer Research",
    "Invariant Labs Research",
    "Trail of Bits Research",
    "PromptHub Analysis",
]


class JSONFormatter:
    """JSON output formatter for scan results."""

    def __init__(self, pretty: bool = True):
        self.pretty = pretty

    def format(
        self,
        findings: List[Finding],
        target: str = "",
        files_scanned: int = 0,
        failures: Iterable[DetectorFailure] = (),
    ) -> Dict[str, Any]:
        """
        Format findings as a JSON-serializable report.

        Counts are computed over ``findings`` as given, so callers filter
        before formatting.
        """
        return {
            "target": target,
            "scan_date": datetime.now(timezone.utc).isoformat(),
            "scanner": SCANNER_NAME,
            "version": __version__,
            "research_sources": RESEARCH_SOURCES,
            "files_scanned": files_scanned,
            "total_findings": len(findings),
            "severity_counts": dict(Counter(f.severity.value for f in findings)),
            "category_counts": dict(Counter(f.category for f in findings)),
            "failures": [failure.to_dict() for failure in failures],
            "findings": [f.to_dict() for f in findings],
        }

    def format_to_string(self, findings: List[Finding], **kwargs) -> str:
        """Format findings as JSON string."""
        data = self.format(findings, **kwargs)
        indent = 2 if self.pretty else None
        return json.dumps(data, indent=indent, default=str)

    def save(self, findings: List[Finding], output_path: Path, **kwargs):
        """Save findings as JSON file."""
        output_path.write_text(self.format_to_string(findings, **kwargs), encoding="utf-8")


def format_json(
    findings: List[Finding],
    target: str = "",
    files_scanned: int = 0,
    failures: Iterable[DetectorFailure] = (),
    pretty: bool = True,
) -> str:
    """Convenience function to format findings as JSON."""
    formatter = JSONFormatter(pretty=pretty)
    return formatter.format_to_string(
        findings, target=target, files_scanned=files_scanned, failures=failures
    )
