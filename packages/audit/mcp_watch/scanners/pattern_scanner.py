"""Generic pattern-rule evaluator instantiated once per detector family."""

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Pattern, Tuple, Union

from mcp_watch_core.models import Finding, Severity
from mcp_watch_core.rules import DetectorTable

from mcp_watch.errors import RuleLoadError
from mcp_watch.scanners.base import BaseScanner
from mcp_watch.scanners.discovery import list_files
from mcp_watch.scanners.evidence import is_example_credential, render_evidence
from mcp_watch.scanners.heuristics import HEURISTICS
from mcp_watch.utils.compat import relative_to_root

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 1024 * 1024

EVIDENCE_MODES = {'line', 'predicate', 'text', 'none'}


def _compile(rule_id: str, patterns: Iterable[Any]) -> Tuple[Pattern, ...]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(str(pattern)))
        except re.error as e:
            raise RuleLoadError(f"Rule {rule_id}: invalid pattern {pattern!r}: {e}") from e
    return tuple(compiled)


@dataclass(frozen=True)
class PatternRule:
    """
    One rule: predicate plus the Finding template emitted when it holds.

    ``match`` is a conjunction of groups; a group holds when any of its
    patterns matches. ``exclude`` patterns veto a match, as does the
    placeholder filter when enabled. A named ``predicate`` from
    ``HEURISTICS`` may add a check that regexes cannot express.
    """
    id: str
    severity: Severity
    category: str
    message: str
    source: Optional[str] = None
    scope: str = "line"
    match: Tuple[Tuple[Pattern, ...], ...] = ()
    exclude: Tuple[Pattern, ...] = ()
    placeholder_filter: bool = False
    predicate: Optional[str] = None
    evidence: str = "line"
    evidence_text: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatternRule":
        """Compile a rule definition loaded from a YAML table."""
        rule_id = str(data['id'])

        groups = data.get('match') or []
        if groups and all(isinstance(g, str) for g in groups):
            # A flat list is a single any-of group
            groups = [groups]
        match = tuple(
            _compile(rule_id, [g] if isinstance(g, str) else g) for g in groups
        )

        predicate = data.get('predicate')
        if predicate and predicate not in HEURISTICS:
            raise RuleLoadError(f"Rule {rule_id}: unknown predicate '{predicate}'")

        scope = data.get('scope', 'line')
        evidence_text = data.get('evidence_text')
        default_evidence = 'text' if evidence_text else ('line' if scope == 'line' else 'none')
        evidence = data.get('evidence', default_evidence)
        if evidence not in EVIDENCE_MODES:
            raise RuleLoadError(f"Rule {rule_id}: unknown evidence mode '{evidence}'")
        if evidence == 'text' and not evidence_text:
            raise RuleLoadError(f"Rule {rule_id}: evidence 'text' needs evidence_text")

        try:
            severity = Severity.parse(data['severity'])
        except ValueError as e:
            raise RuleLoadError(f"Rule {rule_id}: {e}") from e

        return cls(
            id=rule_id,
            severity=severity,
            category=str(data['category']),
            message=str(data['message']),
            source=data.get('source'),
            scope=scope,
            match=match,
            exclude=_compile(rule_id, data.get('exclude') or []),
            placeholder_filter=bool(data.get('placeholder_filter', False)),
            predicate=predicate,
            evidence=evidence,
            evidence_text=evidence_text,
        )

    def evaluate(
        self,
        text: str,
        content: str,
        file: str,
        line: Optional[int] = None,
        detector: Optional[str] = None,
    ) -> Optional[Finding]:
        """
        Test the rule against ``text``.

        Args:
            text: The line (line scope) or whole content (file scope)
            content: Full decoded file content
            file: Root-relative path recorded on the finding
            line: 1-based line number for line-scoped rules
            detector: Name of the detector running the rule

        Returns:
            The finding, or None when the rule does not fire
        """
        for group in self.match:
            if not any(pattern.search(text) for pattern in group):
                return None
        if any(pattern.search(text) for pattern in self.exclude):
            return None
        if self.placeholder_filter and is_example_credential(text):
            return None

        detail = None
        if self.predicate:
            detail = HEURISTICS[self.predicate](text, content)
            if detail is None:
                return None

        evidence: Optional[str] = None
        if self.evidence == "line":
            evidence = render_evidence(text)
        elif self.evidence == "predicate" and detail:
            evidence = render_evidence(detail)
        elif self.evidence == "text":
            evidence = self.evidence_text

        return Finding(
            id=self.id,
            severity=self.severity,
            category=self.category,
            message=self.message,
            file=file,
            line=line,
            evidence=evidence,
            source=self.source,
            detector=detector,
        )


class PatternScanner(BaseScanner):
    """
    Detector driven entirely by a rule table.

    Discovers files by extension, reads each one once, evaluates every
    line-scoped rule against every line and every file-scoped rule against
    the whole content. Unreadable or oversized files are skipped.
    """

    def __init__(
        self,
        name: str,
        extensions: Iterable[str],
        rules: Iterable[PatternRule],
        max_file_size: Optional[int] = DEFAULT_MAX_FILE_SIZE,
        exclude: Optional[List[str]] = None,
        description: str = "",
    ):
        self.name = name
        self.extensions = tuple(extensions)
        self.rules = tuple(rules)
        self.max_file_size = max_file_size
        self.exclude = list(exclude or [])
        self.description = description
        self._line_rules = [r for r in self.rules if r.scope == 'line']
        self._file_rules = [r for r in self.rules if r.scope == 'file']

    @classmethod
    def from_table(cls, table: DetectorTable, **kwargs) -> "PatternScanner":
        """Build a detector from a loaded rule table."""
        rules = [PatternRule.from_dict(rule) for rule in table.rules]
        return cls(
            name=table.detector,
            extensions=table.extensions,
            rules=rules,
            description=table.description,
            **kwargs
        )

    def __repr__(self) -> str:
        return f"PatternScanner(name={self.name!r}, rules={len(self.rules)})"

    async def scan(self, project_root: Union[str, Path]) -> List[Finding]:
        """Scan every matching file under ``project_root``."""
        root = Path(project_root)
        files = await asyncio.to_thread(
            list_files, root, self.extensions, exclude=self.exclude
        )

        findings: List[Finding] = []
        for file_path in files:
            content = await asyncio.to_thread(self._read, file_path)
            if content is None:
                continue
            findings.extend(self.evaluate(content, relative_to_root(file_path, root)))
        return findings

    def evaluate(self, content: str, file: str) -> List[Finding]:
        """Evaluate all rules against one file's decoded content."""
        findings: List[Finding] = []

        if self._line_rules:
            for line_number, line in enumerate(content.split('\n'), start=1):
                for rule in self._line_rules:
                    finding = rule.evaluate(line, content, file, line_number, self.name)
                    if finding is not None:
                        findings.append(finding)

        for rule in self._file_rules:
            finding = rule.evaluate(content, content, file, None, self.name)
            if finding is not None:
                findings.append(finding)

        return findings

    def _read(self, file_path: Path) -> Optional[str]:
        """Read and decode a file; None when it is skipped."""
        try:
            if self.max_file_size is not None:
                size = file_path.stat().st_size
                if size > self.max_file_size:
                    logger.debug(
                        f"[{self.name}] Skipping {file_path}: {size} bytes exceeds "
                        f"limit of {self.max_file_size}"
                    )
                    return None
            return file_path.read_bytes().decode('utf-8', errors='replace')
        except OSError as e:
            logger.debug(f"[{self.name}] Skipping unreadable file {file_path}: {e}")
            return None
