"""Result types produced by the runner and consumed by the reporter."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Status(str, Enum):
    """Outcome status of a test or a whole service."""
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    SKIPPED = "skipped"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @property
    def emoji(self) -> str:
        return _EMOJI[self]


_SEVERITY = {
    Status.SKIPPED: -1,
    Status.SUCCESS: 0,
    Status.WARNING: 1,
    Status.ERROR: 2,
}

_EMOJI = {
    Status.SUCCESS: "✅",
    Status.WARNING: "⚠️",
    Status.ERROR: "❌",
    Status.SKIPPED: "⏭️",
}


def max_status(current: Status, new: Status) -> Status:
    """Return whichever status is more severe."""
    return new if new.severity > current.severity else current


@dataclass(frozen=True)
class TestOutcome:
    """Result of a single probe invocation."""
    success: bool
    warning: Optional[str] = None
    error: Optional[str] = None
    details: Any = None

    __test__ = False

    @property
    def status(self) -> Status:
        if self.error or (not self.success and not self.warning):
            return Status.ERROR
        if self.warning:
            return Status.WARNING
        return Status.SUCCESS

    @property
    def message(self) -> Optional[str]:
        """Text used to match troubleshooting causes."""
        return self.error or self.warning


@dataclass(frozen=True)
class TestResult:
    """A TestOutcome recorded under its test name."""
    name: str
    outcome: TestOutcome

    __test__ = False

    @property
    def status(self) -> Status:
        return self.outcome.status

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "success": self.outcome.success,
            "warning": self.outcome.warning,
            "error": self.outcome.error,
            "details": self.outcome.details,
        }


@dataclass
class ServiceResult:
    """Aggregated results for one configured server."""
    service_name: str
    display_name: str
    tests: List[TestResult] = field(default_factory=list)
    status: Status = Status.SUCCESS
    troubleshooting: List[str] = field(default_factory=list)

    def record(self, result: TestResult):
        """Append a test result and escalate the service status."""
        self.tests.append(result)
        self.status = max_status(self.status, result.status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "server": self.service_name,
            "display_name": self.display_name,
            "status": self.status.value,
            "tests": [t.to_dict() for t in self.tests],
            "troubleshooting": list(self.troubleshooting),
        }


@dataclass
class Report:
    """All service results from one run."""
    results: List[ServiceResult]
    summary: Dict[str, int]
    generated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at.isoformat(),
            "summary": dict(self.summary),
            "results": [r.to_dict() for r in self.results],
        }
