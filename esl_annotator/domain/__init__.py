"""Domain layer definitions."""

from .batches import BatchSnapshot, ProgressSnapshot, RunState, RunStatus

__all__ = [
    "BatchSnapshot",
    "ProgressSnapshot",
    "RunState",
    "RunStatus",
]
