"""Builtin detector families and detector construction."""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from mcp_watch_core.rules import DetectorTable, RuleLoader

from mcp_watch.errors import RuleLoadError
from mcp_watch.scanners.pattern_scanner import DEFAULT_MAX_FILE_SIZE, PatternScanner

logger = logging.getLogger(__name__)

BUILTIN_RULES_DIR = Path(__file__).resolve().parent.parent / "rules" / "builtin"

# Registration order; findings are concatenated in this order
BUILTIN_DETECTORS = (
    "credentials",
    "tool_poisoning",
    "parameter_injection",
    "prompt_injection",
    "tool_mutation",
    "conversation_exfiltration",
    "ansi_injection",
    "protocol_violation",
    "input_validation",
    "server_spoofing",
    "toxic_flow",
    "permissions",
)


def load_builtin_tables(rules_dir: Path = BUILTIN_RULES_DIR) -> List[DetectorTable]:
    """Load the builtin tables in registration order."""
    loader = RuleLoader()
    tables = []
    for name in BUILTIN_DETECTORS:
        table = loader.load_file(rules_dir / f"{name}.yaml")
        if table is None:
            raise RuleLoadError(f"Builtin rule table '{name}' is missing or invalid")
        tables.append(table)
    return tables


def build_detectors(
    rules_dirs: Optional[Iterable[Path]] = None,
    max_file_size: Optional[int] = DEFAULT_MAX_FILE_SIZE,
    exclude: Optional[List[str]] = None,
) -> List[PatternScanner]:
    """
    Instantiate the builtin detectors followed by any custom tables.

    Args:
        rules_dirs: Extra directories of YAML tables, each table one detector
        max_file_size: Per-file size cap passed to every detector
        exclude: Root-relative path fragments no detector should read

    Raises:
        RuleLoadError: A table holds a rule that cannot be compiled
    """
    tables = load_builtin_tables()

    if rules_dirs:
        loader = RuleLoader()
        for rules_dir in rules_dirs:
            loader.add_rules_directory(Path(rules_dir))
        custom = loader.load_all()
        logger.debug(f"Loaded {len(custom)} custom detector table(s)")
        tables.extend(custom)

    return [
        PatternScanner.from_table(table, max_file_size=max_file_size, exclude=exclude)
        for table in tables
    ]
