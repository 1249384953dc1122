"""Result store backed by a Supabase (PostgREST) table.

Rows live in ``essay_analyses`` with the columns ``original_text``,
``corrected_text``, ``error_count`` and ``analysis_json`` (the annotation
list as JSONB). The table's ``id`` and ``created_at`` are filled in by the
database.
"""
from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from esl_annotator.core.schema import AnalysisResult, HistoryRecord
from esl_annotator.core.spans import normalise_spans

from .results import DEFAULT_HISTORY_LIMIT

logger = logging.getLogger(__name__)


class SupabaseResultStore:
    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        table: str = "essay_analyses",
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("url must include scheme and host")

        self._table_url = f"{parsed.scheme}://{parsed.netloc}/rest/v1/{table}"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
        }
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    @staticmethod
    def _to_row(result: AnalysisResult) -> dict[str, Any]:
        return {
            "original_text": result.original_text,
            "corrected_text": result.corrected_text,
            "analysis_json": [span.model_dump() for span in result.annotations],
            "error_count": result.error_count,
        }

    @staticmethod
    def _from_row(row: dict[str, Any]) -> HistoryRecord:
        original_text = row.get("original_text") or ""
        spans = row.get("analysis_json")
        return HistoryRecord(
            id=row.get("id"),
            created_at=row.get("created_at"),
            original_text=original_text,
            corrected_text=row.get("corrected_text") or "",
            annotations=normalise_spans(original_text, spans if isinstance(spans, list) else []),
            error_count=row.get("error_count"),
        )

    def _records(self, rows: Any) -> list[HistoryRecord]:
        if not isinstance(rows, list):
            logger.error("Unexpected response shape from %s: %s", self._table_url, type(rows).__name__)
            return []
        records = []
        for row in rows:
            if not isinstance(row, dict):
                logger.warning("Skipping non-object row %r", row)
                continue
            try:
                records.append(self._from_row(row))
            except ValidationError as exc:
                logger.warning("Skipping unreadable row %s: %s", row.get("id"), exc.errors()[0].get("msg"))
        return records

    async def append(self, result: AnalysisResult) -> HistoryRecord | None:
        try:
            response = await self._client.post(
                self._table_url,
                headers={**self._headers, "Prefer": "return=representation"},
                json=[self._to_row(result)],
            )
            response.raise_for_status()
            records = self._records(response.json())
        except (httpx.HTTPError, ValueError):
            logger.exception("Failed to save record")
            return None
        return records[0] if records else None

    async def _select(self, params: dict[str, str]) -> list[HistoryRecord]:
        try:
            response = await self._client.get(self._table_url, headers=self._headers, params=params)
            response.raise_for_status()
            return self._records(response.json())
        except (httpx.HTTPError, ValueError):
            logger.exception("Failed to fetch history")
            return []

    async def list_recent(self, limit: int = DEFAULT_HISTORY_LIMIT) -> list[HistoryRecord]:
        return await self._select({"select": "*", "order": "created_at.desc", "limit": str(limit)})

    async def get(self, record_id: int) -> HistoryRecord | None:
        rows = await self._select({"select": "*", "id": f"eq.{record_id}", "limit": "1"})
        return rows[0] if rows else None

    async def reset(self) -> None:  # pragma: no cover
        return None

    async def aclose(self) -> None:  # pragma: no cover - best effort cleanup
        if self._owns_client:
            await self._client.aclose()


__all__ = ["SupabaseResultStore"]
