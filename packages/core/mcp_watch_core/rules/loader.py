"""YAML rule-table loader for mcp-watch."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

VALID_SEVERITIES = {'critical', 'high', 'medium', 'low'}
VALID_SCOPES = {'line', 'file'}


@dataclass
class DetectorTable:
    """One detector family as declared in a YAML rule file."""
    detector: str
    extensions: List[str]
    rules: List[Dict[str, Any]] = field(default_factory=list)
    description: str = ""
    source_file: Optional[str] = None


class RuleLoader:
    """
    Loader for YAML detector tables.

    Each file declares one detector family:

        detector: credentials
        extensions: [".ts", ".js", ".py"]
        rules:
          - id: HARDCODED_CREDENTIALS
            severity: critical
            category: credential-leak
            message: Hardcoded credentials detected
            match:
              - ['sk-[a-zA-Z0-9_-]{20,}', 'ghp_[a-zA-Z0-9]{36}']
    """

    def __init__(self, rules_dirs: Optional[List[Path]] = None):
        """
        Initialize the rule loader.

        Args:
            rules_dirs: Directories to search for rule tables.
        """
        self.rules_dirs = list(rules_dirs or [])

    def add_rules_directory(self, path: Path):
        """Add a directory to search for rule tables."""
        if path.exists() and path.is_dir():
            self.rules_dirs.append(path)
        else:
            logger.warning(f"Rules directory does not exist: {path}")

    def load_all(self) -> List[DetectorTable]:
        """
        Load every table from the configured directories.

        Files are read in sorted order within each directory so detector
        registration order is stable.
        """
        tables: List[DetectorTable] = []
        for rules_dir in self.rules_dirs:
            tables.extend(self.load_directory(rules_dir))
        return tables

    def load_directory(self, rules_dir: Path) -> List[DetectorTable]:
        """Load all tables from a directory."""
        if not rules_dir.exists():
            logger.warning(f"Rules directory does not exist: {rules_dir}")
            return []

        files = sorted(
            list(rules_dir.glob("*.yaml")) + list(rules_dir.glob("*.yml")),
            key=lambda p: p.name,
        )
        tables = []
        for yaml_file in files:
            table = self.load_file(yaml_file)
            if table is not None:
                tables.append(table)
        return tables

    def load_file(self, file_path: Path) -> Optional[DetectorTable]:
        """
        Load a single detector table.

        Returns:
            The table, or None when the file is unusable. Individual invalid
            rules are dropped with a warning.
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"YAML parse error in {file_path}: {e}")
            return None
        except OSError as e:
            logger.error(f"Error loading {file_path}: {e}")
            return None

        if not isinstance(data, dict) or 'rules' not in data:
            logger.warning(f"No rules found in {file_path}")
            return None

        detector = data.get('detector') or file_path.stem
        extensions = data.get('extensions') or []
        if not extensions:
            logger.warning(f"Detector '{detector}' in {file_path} declares no extensions")
            return None

        rules = []
        for rule in data.get('rules') or []:
            if not isinstance(rule, dict):
                logger.warning(f"Malformed rule entry in {file_path}")
                continue
            if not self._validate_rule(rule, file_path):
                continue
            rule['_source_file'] = str(file_path)
            rules.append(rule)

        return DetectorTable(
            detector=str(detector),
            extensions=[str(e) for e in extensions],
            rules=rules,
            description=data.get('description', ''),
            source_file=str(file_path),
        )

    def _validate_rule(self, rule: Dict[str, Any], source_file: Path) -> bool:
        """
        Validate a rule definition has required fields.

        Returns True if valid, False otherwise.
        """
        required_fields = ['id', 'severity', 'category', 'message']

        for field_name in required_fields:
            if field_name not in rule:
                logger.warning(
                    f"Rule missing required field '{field_name}' in {source_file}"
                )
                return False

        if str(rule.get('severity', '')).lower() not in VALID_SEVERITIES:
            logger.warning(
                f"Invalid severity '{rule.get('severity')}' in rule {rule['id']}"
            )
            return False

        if rule.get('scope', 'line') not in VALID_SCOPES:
            logger.warning(f"Invalid scope '{rule.get('scope')}' in rule {rule['id']}")
            return False

        if not rule.get('match') and not rule.get('predicate'):
            logger.warning(f"Rule {rule['id']} has neither 'match' nor 'predicate'")
            return False

        return True
