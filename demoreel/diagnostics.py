"""
Per-step outcomes collected during a recording run.
"""
import logging
from typing import Optional
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


class StepStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    """Outcome of one overlay effect or one action."""
    status: StepStatus
    kind: str = ""                   # "overlay" or "action"
    name: str = ""                   # effect style or action type
    selector: Optional[str] = None
    reason: Optional[str] = None
    section_id: Optional[str] = None

    @classmethod
    def ok(cls, kind: str, name: str, selector: Optional[str] = None) -> "StepResult":
        return cls(StepStatus.OK, kind, name, selector)

    @classmethod
    def skipped(cls, kind: str, name: str, selector: Optional[str], reason: str) -> "StepResult":
        return cls(StepStatus.SKIPPED, kind, name, selector, reason)

    @classmethod
    def failed(cls, kind: str, name: str, selector: Optional[str], reason: str) -> "StepResult":
        return cls(StepStatus.FAILED, kind, name, selector, reason)

    def in_section(self, section_id: str) -> "StepResult":
        return StepResult(self.status, self.kind, self.name, self.selector, self.reason, section_id)

    def describe(self) -> str:
        target = f" {self.selector}" if self.selector else ""
        text = f"{self.kind} {self.name}{target}: {self.status.value}"
        return f"{text} ({self.reason})" if self.reason else text


@dataclass
class Diagnostics:
    """Run-level log of every step result."""
    results: list[StepResult] = field(default_factory=list)

    def record(self, result: StepResult) -> StepResult:
        self.results.append(result)
        if result.status != StepStatus.OK:
            logger.warning("[%s] %s", result.section_id or "-", result.describe())
        return result

    def with_status(self, status: StepStatus) -> list[StepResult]:
        return [r for r in self.results if r.status == status]

    @property
    def degraded(self) -> bool:
        return any(r.status != StepStatus.OK for r in self.results)

    def summary(self) -> dict:
        return {status.value: len(self.with_status(status)) for status in StepStatus}
