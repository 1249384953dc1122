from __future__ import annotations

import asyncio
import json
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

import httpx

from esl_annotator.core.schema import AnalysisResult, AnnotationSpan
from esl_annotator.infrastructure import InMemoryResultStore, SupabaseResultStore


def _result(text: str = "He go school.") -> AnalysisResult:
    return AnalysisResult(
        original_text=text,
        corrected_text="He goes to school.",
        annotations=[
            AnnotationSpan(
                original_span="go",
                corrected_span="goes",
                start_index=3,
                end_index=5,
                error_code="AGV",
                macro_code="AG",
                explanation="",
            )
        ],
    )


def test_in_memory_store_returns_newest_first():
    store = InMemoryResultStore()

    async def scenario():
        first = await store.append(_result("one"))
        second = await store.append(_result("two"))
        return first, second, await store.list_recent(), await store.list_recent(limit=1)

    first, second, recent, limited = asyncio.run(scenario())

    assert (first.id, second.id) == (1, 2)
    assert first.error_count == 1
    assert [record.original_text for record in recent] == ["two", "one"]
    assert [record.id for record in limited] == [2]
    assert asyncio.run(store.get(1)).original_text == "one"
    assert asyncio.run(store.get(99)) is None


def test_supabase_append_maps_columns():
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["headers"] = request.headers
        rows = json.loads(request.content.decode("utf-8"))
        captured["rows"] = rows
        stored = {**rows[0], "id": 7, "created_at": "2025-01-02T03:04:05+00:00"}
        return httpx.Response(201, json=[stored])

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    store = SupabaseResultStore("https://demo.supabase.co", "anon-key", http_client=http_client)

    record = asyncio.run(store.append(_result()))

    assert captured["url"] == "https://demo.supabase.co/rest/v1/essay_analyses"
    headers = captured["headers"]
    assert headers["apikey"] == "anon-key"
    assert headers["authorization"] == "Bearer anon-key"
    assert headers["prefer"] == "return=representation"
    row = captured["rows"][0]
    assert row["error_count"] == 1
    assert row["analysis_json"][0]["error_code"] == "AGV"
    assert "annotations" not in row

    assert record.id == 7
    assert record.annotations[0].corrected_span == "goes"


def test_supabase_failures_are_swallowed():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"message": "relation does not exist"})

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    store = SupabaseResultStore("https://demo.supabase.co", "anon-key", http_client=http_client)

    assert asyncio.run(store.append(_result())) is None
    assert asyncio.run(store.list_recent()) == []
    assert asyncio.run(store.get(1)) is None


def test_supabase_history_query():
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json=[
                {
                    "id": 2,
                    "created_at": "2025-01-02T03:04:05+00:00",
                    "original_text": "She is happy.",
                    "corrected_text": "She is happy.",
                    "analysis_json": None,
                    "error_count": 0,
                }
            ],
        )

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    store = SupabaseResultStore("https://demo.supabase.co", "anon-key", http_client=http_client)

    records = asyncio.run(store.list_recent(limit=25))

    assert captured["params"] == {"select": "*", "order": "created_at.desc", "limit": "25"}
    assert records[0].id == 2
    assert records[0].annotations == []


def _row(record_id: int, start: int, end: int, created_at: str = "2025-01-02T03:04:05+00:00") -> dict:
    return {
        "id": record_id,
        "created_at": created_at,
        "original_text": "He go school.",
        "corrected_text": "He goes to school.",
        "analysis_json": [
            {
                "original_span": "go",
                "corrected_span": "goes",
                "start_index": start,
                "end_index": end,
                "error_code": "AGV",
                "macro_code": "AG",
                "explanation": "",
            }
        ],
        "error_count": 1,
    }


def test_supabase_history_keeps_rows_next_to_malformed_ones():
    rows = [_row(3, 5, 5), _row(2, 3, 5), _row(1, 3, 5, created_at="yesterday")]

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=rows)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    store = SupabaseResultStore("https://demo.supabase.co", "anon-key", http_client=http_client)

    records = asyncio.run(store.list_recent())

    assert [record.id for record in records] == [3, 2]
    assert records[0].annotations == []
    assert records[1].annotations[0].error_code == "AGV"


def test_supabase_unexpected_response_shape_is_swallowed():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json={"id": 1, "original_text": "one"})

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    store = SupabaseResultStore("https://demo.supabase.co", "anon-key", http_client=http_client)

    assert asyncio.run(store.append(_result())) is None
    assert asyncio.run(store.list_recent()) == []
    assert asyncio.run(store.get(1)) is None
