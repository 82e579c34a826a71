"""
Scan configuration management.

Handles:
- Loading .mcp-watch.yaml configuration
- Scan options (excludes, severity threshold, limits, strict mode)
- Rule-level and path-level ignore rules applied to finished reports
"""

import fnmatch
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from mcp_watch_core.models import Finding, Severity

from mcp_watch.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300.0


@dataclass
class IgnoreRule:
    """Single ignore rule definition."""
    rule_id: Optional[str] = None        # Finding id to ignore, e.g. "INSECURE_TRANSPORT"
    paths: List[str] = field(default_factory=list)  # Glob path patterns
    reason: str = ""


@dataclass
class Settings:
    """Effective scan settings: config file values overridden by CLI flags."""
    exclude: List[str] = field(default_factory=list)
    min_severity: Optional[str] = None
    category: Optional[str] = None
    max_file_size: Optional[int] = 1024 * 1024
    timeout: Optional[float] = DEFAULT_TIMEOUT
    strict: bool = False
    rules_dir: Optional[Path] = None
    ignore_rules: List[IgnoreRule] = field(default_factory=list)
    loaded_from: Optional[Path] = None

    CONFIG_FILENAMES = ('.mcp-watch.yaml', '.mcp-watch.yml', 'mcp-watch.yaml')

    @classmethod
    def discover(cls, project_path: Optional[Path] = None) -> "Settings":
        """
        Load settings from the first config file found.

        Searches the scan target directory, then the current working
        directory. Returns defaults when neither holds a config file.
        """
        search_paths: List[Path] = []
        if project_path is not None and project_path.is_dir():
            search_paths.append(project_path.resolve())
        cwd = Path.cwd().resolve()
        if cwd not in search_paths:
            search_paths.append(cwd)

        for search_path in search_paths:
            for filename in cls.CONFIG_FILENAMES:
                config_path = search_path / filename
                if config_path.is_file():
                    return cls.from_file(config_path)
        return cls()

    @classmethod
    def from_file(cls, path: Path) -> "Settings":
        """
        Load settings from a specific file.

        Raises:
            ConfigError: The file cannot be read or holds invalid values
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Error loading {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: top level must be a mapping")

        settings = cls.from_dict(data, base_dir=path.parent)
        settings.loaded_from = path
        logger.debug(f"Loaded config from {path}")
        return settings

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> "Settings":
        # Handle None values from YAML
        scan_data = data.get('scan') or {}

        min_severity = scan_data.get('min_severity')
        if min_severity is not None:
            try:
                min_severity = Severity.parse(min_severity).value
            except ValueError as e:
                raise ConfigError(f"scan.min_severity: {e}") from e

        ignore_rules = []
        for rule_data in data.get('ignore') or []:
            if not isinstance(rule_data, dict):
                raise ConfigError(f"Malformed ignore entry: {rule_data!r}")
            ignore_rules.append(IgnoreRule(
                rule_id=rule_data.get('rule_id'),
                paths=list(rule_data.get('paths') or []),
                reason=rule_data.get('reason', ''),
            ))

        rules_dir = data.get('rules_dir')
        if rules_dir:
            rules_dir = Path(rules_dir)
            if base_dir is not None and not rules_dir.is_absolute():
                rules_dir = base_dir / rules_dir

        try:
            max_file_size = scan_data.get('max_file_size', 1024 * 1024)
            max_file_size = int(max_file_size) if max_file_size is not None else None
            timeout = scan_data.get('timeout', DEFAULT_TIMEOUT)
            timeout = float(timeout) if timeout is not None else None
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid scan limit: {e}") from e
        if timeout is not None and timeout <= 0:
            # Zero or negative disables the limit
            timeout = None

        return cls(
            exclude=list(scan_data.get('exclude') or []),
            min_severity=min_severity,
            category=scan_data.get('category'),
            max_file_size=max_file_size,
            timeout=timeout,
            strict=bool(scan_data.get('strict', False)),
            rules_dir=rules_dir or None,
            ignore_rules=ignore_rules,
        )

    def override(self, **values: Any) -> "Settings":
        """Copy with every non-None keyword applied on top."""
        return replace(self, **{k: v for k, v in values.items() if v is not None})

    def should_ignore(self, finding: Finding) -> Optional[str]:
        """
        Check if a finding should be ignored.

        Returns:
            Ignore reason if should be ignored, None otherwise
        """
        for ignore in self.ignore_rules:
            # Match rule ID if specified (support "*" as wildcard for all rules)
            if ignore.rule_id and ignore.rule_id != "*" and ignore.rule_id != finding.id:
                continue

            if ignore.paths and not _match_any_pattern(finding.file, ignore.paths):
                continue

            return ignore.reason or f"Suppressed by config ({self.loaded_from})"
        return None

    def apply_ignores(self, findings: List[Finding]) -> List[Finding]:
        """Drop findings matched by an ignore rule, preserving order."""
        if not self.ignore_rules:
            return list(findings)
        kept = []
        for finding in findings:
            reason = self.should_ignore(finding)
            if reason is None:
                kept.append(finding)
            else:
                logger.debug(f"Ignoring {finding.id} at {finding.location}: {reason}")
        return kept


def _match_any_pattern(path: str, patterns: List[str]) -> bool:
    """
    Check if a path matches any of the given glob patterns.

    Handles both simple patterns (tests/**) and recursive patterns.
    Uses forward slashes for cross-platform consistency.
    """
    normalized_path = path.replace('\\', '/')

    for pattern in patterns:
        normalized_pattern = pattern.replace('\\', '/')

        if fnmatch.fnmatch(normalized_path, normalized_pattern):
            return True

        # "tests/**" also matches the prefix itself
        if normalized_pattern.endswith('/**'):
            prefix = normalized_pattern[:-3]
            if normalized_path.startswith(prefix + '/') or normalized_path == prefix:
                return True

        # "**/fixtures" matches any single path component
        if normalized_pattern.startswith('**/'):
            suffix_pattern = normalized_pattern[3:]
            if any(fnmatch.fnmatch(part, suffix_pattern) for part in Path(normalized_path).parts):
                return True

    return False
