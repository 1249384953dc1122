"""Persistence of completed analyses."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol

from esl_annotator.core.schema import AnalysisResult, HistoryRecord

DEFAULT_HISTORY_LIMIT = 100


class ResultStore(Protocol):
    """Persistence contract for analysis results.

    Implementations never raise: a failed append returns ``None`` and a failed
    history lookup returns an empty list.
    """

    async def append(self, result: AnalysisResult) -> HistoryRecord | None: ...

    async def list_recent(self, limit: int = DEFAULT_HISTORY_LIMIT) -> list[HistoryRecord]: ...

    async def get(self, record_id: int) -> HistoryRecord | None: ...

    async def reset(self) -> None: ...


class InMemoryResultStore:
    """Simple in-memory store for local runs and tests."""

    def __init__(self) -> None:
        self._records: list[HistoryRecord] = []
        self._id_counter = 0

    async def append(self, result: AnalysisResult) -> HistoryRecord | None:
        self._id_counter += 1
        record = HistoryRecord(
            id=self._id_counter,
            created_at=datetime.now(timezone.utc),
            original_text=result.original_text,
            corrected_text=result.corrected_text,
            annotations=list(result.annotations),
            error_count=result.error_count,
        )
        self._records.append(record)
        return record

    async def list_recent(self, limit: int = DEFAULT_HISTORY_LIMIT) -> list[HistoryRecord]:
        return list(reversed(self._records))[:limit]

    async def get(self, record_id: int) -> HistoryRecord | None:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    async def reset(self) -> None:
        self._records.clear()
        self._id_counter = 0


_store: ResultStore = InMemoryResultStore()


def configure_result_store(store: ResultStore) -> None:
    """Install the store completed analyses are appended to."""

    global _store
    _store = store


def get_result_store() -> ResultStore:
    """Return the currently configured result store."""

    return _store


__all__ = [
    "DEFAULT_HISTORY_LIMIT",
    "InMemoryResultStore",
    "ResultStore",
    "configure_result_store",
    "get_result_store",
]
