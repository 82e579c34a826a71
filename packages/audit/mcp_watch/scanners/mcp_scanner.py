"""
Scan orchestrator.

Runs every registered detector concurrently over one project root and
concatenates their findings in registration order. Remote repositories are
shallow-cloned into a scratch directory that is removed on every exit path.
"""

import asyncio
import logging
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from mcp_watch_core.models import Finding

from mcp_watch.config import Settings
from mcp_watch.errors import (
    DetectorError,
    DetectorFailure,
    PathError,
    ScanTimeoutError,
)
from mcp_watch.scanners.base import BaseScanner
from mcp_watch.scanners.discovery import list_files
from mcp_watch.scanners.registry import build_detectors
from mcp_watch.utils.git import shallow_clone

logger = logging.getLogger(__name__)


@dataclass
class ScanReport:
    """Outcome of one scan: findings plus any detectors that failed."""
    target: str
    findings: List[Finding] = field(default_factory=list)
    failures: List[DetectorFailure] = field(default_factory=list)
    files_scanned: int = 0

    @property
    def complete(self) -> bool:
        return not self.failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "files_scanned": self.files_scanned,
            "failures": [f.to_dict() for f in self.failures],
            "findings": [f.to_dict() for f in self.findings],
        }


class McpScanner:
    """
    Fan-out/fan-in over a fixed set of detectors.

    By default a detector that raises is recorded as a ``DetectorFailure``
    and the other detectors' findings are still returned. With
    ``strict=True`` any detector failure fails the whole scan with a
    ``DetectorError``.
    """

    def __init__(
        self,
        detectors: Optional[Sequence[BaseScanner]] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or Settings()
        if detectors is None:
            rules_dirs = [self.settings.rules_dir] if self.settings.rules_dir else None
            detectors = build_detectors(
                rules_dirs=rules_dirs,
                max_file_size=self.settings.max_file_size,
                exclude=self.settings.exclude,
            )
        self.detectors: List[BaseScanner] = list(detectors)

    @property
    def strict(self) -> bool:
        return self.settings.strict

    @property
    def timeout(self) -> Optional[float]:
        return self.settings.timeout

    async def scan(self, project_root: Union[str, Path]) -> List[Finding]:
        """Scan a local directory and return the flattened findings."""
        report = await self.run(project_root)
        return report.findings

    async def scan_local_project(self, path: Union[str, Path]) -> List[Finding]:
        """Local-path entry point; same contract as ``scan``."""
        return await self.scan(path)

    async def scan_repository(self, url: str) -> List[Finding]:
        """Clone ``url`` at depth 1, scan it, and return the findings."""
        report = await self.run_repository(url)
        return report.findings

    async def run(self, project_root: Union[str, Path]) -> ScanReport:
        """
        Scan a local directory.

        Raises:
            PathError: The root is missing or is not a directory
            ScanTimeoutError: The scan exceeded the configured timeout
            DetectorError: A detector failed and strict mode is on
        """
        root = self._validate_root(project_root)
        logger.debug(f"Scanning {root} with {len(self.detectors)} detectors")

        try:
            findings, failures = await asyncio.wait_for(
                self._run_detectors(root), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            raise ScanTimeoutError(self.timeout) from None

        return ScanReport(
            target=str(project_root),
            findings=findings,
            failures=failures,
            files_scanned=await asyncio.to_thread(self._count_files, root),
        )

    async def run_repository(self, url: str) -> ScanReport:
        """
        Scan a remote repository through a scratch clone.

        Raises:
            CloneError: The clone could not be performed
            ScanTimeoutError: The scan exceeded the configured timeout
            DetectorError: A detector failed and strict mode is on
        """
        scratch = Path(tempfile.mkdtemp(prefix="mcp-watch-"))
        try:
            await shallow_clone(url, scratch, timeout=self.timeout)
            report = await self.run(scratch)
            report.target = url
            return report
        finally:
            self._remove_scratch(scratch)

    async def _run_detectors(
        self, root: Path
    ) -> Tuple[List[Finding], List[DetectorFailure]]:
        results = await asyncio.gather(
            *(detector.scan(root) for detector in self.detectors),
            return_exceptions=True,
        )

        findings: List[Finding] = []
        failures: List[DetectorFailure] = []
        for detector, result in zip(self.detectors, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                if self.strict:
                    raise DetectorError(detector.name, result) from result
                logger.warning(f"Detector '{detector.name}' failed: {result!r}")
                failures.append(DetectorFailure.from_exception(detector.name, result))
                continue
            findings.extend(result)
        return findings, failures

    def _count_files(self, root: Path) -> int:
        extensions = set()
        for detector in self.detectors:
            extensions.update(getattr(detector, 'extensions', ()))
        if not extensions:
            return 0
        return len(list_files(root, extensions, exclude=self.settings.exclude))

    @staticmethod
    def _validate_root(project_root: Union[str, Path]) -> Path:
        root = Path(project_root)
        if not root.exists():
            raise PathError(str(project_root), PathError.NOT_FOUND)
        if not root.is_dir():
            raise PathError(str(project_root), PathError.NOT_A_DIRECTORY)
        return root

    @staticmethod
    def _remove_scratch(scratch: Path) -> None:
        shutil.rmtree(scratch, ignore_errors=True)
        if scratch.exists():
            logger.warning(f"Could not fully remove scratch directory {scratch}")
        else:
            logger.debug(f"Removed scratch directory {scratch}")
