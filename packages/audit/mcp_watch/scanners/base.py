"""Base scanner interface."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Union

from mcp_watch_core.models import Finding


class BaseScanner(ABC):
    """
    Abstract base class for all detectors.

    A detector holds no state between calls and never mutates anything it
    shares with other detectors, so the orchestrator may run any number of
    them concurrently over the same root.
    """

    name: str = "BaseScanner"

    @abstractmethod
    async def scan(self, project_root: Union[str, Path]) -> List[Finding]:
        """
        Scan the project tree and return findings.

        Args:
            project_root: Directory to scan

        Returns:
            Findings in emission order; empty when nothing matched
        """
        pass
