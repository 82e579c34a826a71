"""Severity model shared by detectors and reporters."""

from enum import Enum
from typing import Union


def _normalize_path(path: str) -> str:
    """Normalize path to use forward slashes for cross-platform consistency."""
    return path.replace("\\", "/")


class Severity(Enum):
    """Severity levels for findings."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def ordinal(self) -> int:
        """Rank of this severity; low is 0, critical is 3."""
        return _ORDER.index(self)

    @classmethod
    def parse(cls, value: Union[str, "Severity"]) -> "Severity":
        """Parse a case-insensitive severity name."""
        if isinstance(value, Severity):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown severity '{value}' "
                f"(expected one of: {', '.join(s.value for s in cls)})"
            ) from None

    def __lt__(self, other: "Severity") -> bool:
        return self.ordinal < other.ordinal

    def __le__(self, other: "Severity") -> bool:
        return self == other or self < other

    def __gt__(self, other: "Severity") -> bool:
        return not self <= other

    def __ge__(self, other: "Severity") -> bool:
        return not self < other


_ORDER = [Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL]
