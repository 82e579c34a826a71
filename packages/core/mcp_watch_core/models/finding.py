"""Finding model for MCP security scan results."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from mcp_watch_core.models.risk import Severity, _normalize_path

# Evidence excerpts are capped so reports stay small and leak little
MAX_EVIDENCE_LENGTH = 150


@dataclass(frozen=True)
class Finding:
    """
    A single potential vulnerability reported by a detector.

    Findings are immutable. Two findings with the same file, line and id
    coming from different detectors are kept as separate entries.
    """
    id: str                           # rule id, e.g. "HARDCODED_CREDENTIALS"
    severity: Severity
    category: str                     # e.g. "credential-leak"
    message: str
    file: str                         # relative to the scanned root
    line: Optional[int] = None        # 1-based; None for file-scoped rules
    evidence: Optional[str] = None    # redacted excerpt
    source: Optional[str] = None      # provenance of the heuristic
    detector: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.severity, Severity):
            object.__setattr__(self, "severity", Severity.parse(self.severity))
        object.__setattr__(self, "file", _normalize_path(self.file))
        if self.evidence is not None and len(self.evidence) > MAX_EVIDENCE_LENGTH:
            object.__setattr__(self, "evidence", self.evidence[:MAX_EVIDENCE_LENGTH])

    @property
    def location(self) -> str:
        """``file:line`` for line-scoped findings, otherwise just the file."""
        if self.line is None:
            return self.file
        return f"{self.file}:{self.line}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization; absent fields are omitted."""
        result: Dict[str, Any] = {
            "id": self.id,
            "severity": self.severity.value,
            "category": self.category,
            "message": self.message,
            "file": self.file,
        }
        for key in ("line", "evidence", "source", "detector"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result
