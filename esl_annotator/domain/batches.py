"""Domain entities for batch annotation runs."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from esl_annotator.core.schema import AnalysisResult


class RunStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"
    COMPLETED = "completed"


@dataclass(slots=True)
class RunState:
    """Mutable counters of the current run, owned by the batch runner."""

    status: RunStatus = RunStatus.IDLE
    total: int = 0
    current: int = 0
    success_count: int = 0
    failure_count: int = 0

    def snapshot(self) -> "ProgressSnapshot":
        return ProgressSnapshot(
            status=self.status,
            total=self.total,
            current=self.current,
            success=self.success_count,
            failed=self.failure_count,
        )


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """Read-only copy of the run counters handed to observers."""

    status: RunStatus
    total: int
    current: int
    success: int
    failed: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "total": self.total,
            "current": self.current,
            "success": self.success,
            "failed": self.failed,
        }


@dataclass(frozen=True, slots=True)
class BatchSnapshot:
    """Everything an operator sees about the current run."""

    progress: ProgressSnapshot
    stop_requested: bool = False
    latest_result: AnalysisResult | None = None
    recent_results: tuple[AnalysisResult, ...] = ()
    counts: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            **self.progress.as_dict(),
            "stop_requested": self.stop_requested,
            "latest_result": self.latest_result.model_dump() if self.latest_result else None,
            "recent_results": [result.model_dump() for result in self.recent_results],
            "counts": self.counts,
        }
