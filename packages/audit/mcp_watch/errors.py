"""Exception taxonomy for mcp-watch.

Only ``PathError``, ``CloneError`` and ``ScanTimeoutError`` abort a top-level
scan. Per-file read problems are absorbed inside detectors and never reach
this module.
"""

from dataclasses import dataclass
from typing import Optional


class McpWatchError(Exception):
    """Base class for all mcp-watch errors."""


class PathError(McpWatchError):
    """The local scan target is missing or is not a directory."""

    NOT_FOUND = "not_found"
    NOT_A_DIRECTORY = "not_a_directory"

    def __init__(self, path: str, kind: str):
        self.path = path
        self.kind = kind
        if kind == self.NOT_FOUND:
            message = f"Project path does not exist: {path}"
        else:
            message = f"Project path is not a directory: {path}"
        super().__init__(message)


class CloneError(McpWatchError):
    """Remote repository acquisition failed."""

    def __init__(self, url: str, stderr: str = ""):
        self.url = url
        self.stderr = stderr.strip()
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"Failed to clone repository {url}{detail}")


class ScanTimeoutError(McpWatchError):
    """The scan exceeded its wall-clock limit."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Scan timed out after {timeout:g} seconds")


class DetectorError(McpWatchError):
    """An unexpected fault inside one detector, raised in strict mode."""

    def __init__(self, detector: str, cause: BaseException):
        self.detector = detector
        self.cause = cause
        super().__init__(f"Detector '{detector}' failed: {cause!r}")


class RuleLoadError(McpWatchError):
    """A rule table could not be compiled."""


class ConfigError(McpWatchError):
    """The configuration file is invalid."""


@dataclass(frozen=True)
class DetectorFailure:
    """Record of a detector that failed while the rest of the scan completed."""
    detector: str
    error: str
    error_type: Optional[str] = None

    @classmethod
    def from_exception(cls, detector: str, exc: BaseException) -> "DetectorFailure":
        return cls(detector=detector, error=str(exc) or repr(exc), error_type=type(exc).__name__)

    def to_dict(self):
        return {"detector": self.detector, "error": self.error, "error_type": self.error_type}
