"""Application service layer for single-text analysis and history."""
from __future__ import annotations

import logging

from esl_annotator.core.schema import AnalysisResult, HistoryRecord
from esl_annotator.core.statistics import summarise_history
from esl_annotator.exporters.history_csv import history_to_csv
from esl_annotator.infrastructure import ResultStore, get_classifier_client, get_result_store
from esl_annotator.infrastructure.results import DEFAULT_HISTORY_LIMIT

logger = logging.getLogger(__name__)


class AnnotationService:
    """Coordinates annotation use cases outside of batch runs."""

    def __init__(self, store: ResultStore | None = None) -> None:
        self._store = store

    @property
    def store(self) -> ResultStore:
        return self._store or get_result_store()

    # ------------------------------------------------------------------
    # analysis
    # ------------------------------------------------------------------
    async def analyze_text(self, text: str) -> AnalysisResult:
        """Classify one text and save it; classification errors propagate."""

        result = await get_classifier_client().classify(text)
        if await self.store.append(result) is None:
            logger.warning("Analysis of %d characters was not persisted", len(text))
        return result

    # ------------------------------------------------------------------
    # history
    # ------------------------------------------------------------------
    async def list_history(self, limit: int = DEFAULT_HISTORY_LIMIT) -> list[HistoryRecord]:
        return await self.store.list_recent(limit)

    async def get_record(self, record_id: int) -> HistoryRecord | None:
        return await self.store.get(record_id)

    async def get_statistics(self, record_id: int | None = None, limit: int = DEFAULT_HISTORY_LIMIT) -> dict[str, object]:
        if record_id is not None:
            record = await self.store.get(record_id)
            return summarise_history([record] if record is not None else [], record_id=record_id)
        return summarise_history(await self.store.list_recent(limit))

    async def export_history_csv(self, limit: int = DEFAULT_HISTORY_LIMIT) -> str:
        return history_to_csv(await self.store.list_recent(limit))

    # ------------------------------------------------------------------
    # testing helpers
    # ------------------------------------------------------------------
    async def reset(self) -> None:
        await self.store.reset()


_service = AnnotationService()


def get_annotation_service() -> AnnotationService:
    """Return the singleton annotation service for the process."""

    return _service


async def reset_annotation_state() -> None:
    """Reset the configured result store (used in tests)."""

    await _service.reset()
