"""Report-boundary filtering and ordering of findings."""

from typing import Iterable, List, Optional, Union

from mcp_watch_core.models import Finding, Severity

BLOCKING_SEVERITIES = (Severity.CRITICAL, Severity.HIGH)


def filter_findings(
    findings: Iterable[Finding],
    min_severity: Optional[Union[str, Severity]] = None,
    category: Optional[str] = None,
) -> List[Finding]:
    """
    Keep findings at or above ``min_severity`` and in ``category``.

    Both filters are optional; when both are given a finding must pass
    both. Category is an exact match.
    """
    threshold = Severity.parse(min_severity) if min_severity is not None else None
    return [
        f for f in findings
        if (threshold is None or f.severity >= threshold)
        and (category is None or f.category == category)
    ]


def sort_findings(findings: Iterable[Finding]) -> List[Finding]:
    """Critical first; ties keep their scan order."""
    return sorted(findings, key=lambda f: -f.severity.ordinal)


def has_blocking_findings(findings: Iterable[Finding]) -> bool:
    """Whether any finding is critical or high, the CLI's failure signal."""
    return any(f.severity in BLOCKING_SEVERITIES for f in findings)
