from __future__ import annotations

from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

from esl_annotator.core.spans import normalise_spans


def _raw(start: int, end: int, code: str) -> dict:
    return {
        "original_span": "x",
        "corrected_span": "y",
        "start_index": start,
        "end_index": end,
        "error_code": code,
        "macro_code": code[0],
        "explanation": "",
    }


def test_spans_are_sorted_by_start():
    spans = normalise_spans("abcdefghij", [_raw(6, 8, "RN"), _raw(0, 2, "AGV")])
    assert [span.error_code for span in spans] == ["AGV", "RN"]


def test_overlapping_span_loses_to_earlier_start():
    spans = normalise_spans("abcdefghij", [_raw(3, 6, "RN"), _raw(1, 4, "AGV"), _raw(6, 7, "MP")])
    assert [span.error_code for span in spans] == ["AGV", "MP"]


def test_equal_starts_keep_first_listed():
    spans = normalise_spans("abcdefghij", [_raw(2, 5, "RN"), _raw(2, 3, "AGV")])
    assert [span.error_code for span in spans] == ["RN"]


def test_adjacent_spans_are_not_overlapping():
    spans = normalise_spans("abcdef", [_raw(0, 3, "RN"), _raw(3, 6, "AGV")])
    assert len(spans) == 2


def test_invalid_and_out_of_range_spans_are_dropped():
    spans = normalise_spans(
        "short",
        [
            _raw(4, 2, "RN"),
            _raw(-1, 2, "RN"),
            _raw(0, 6, "RN"),
            {"start_index": 0},
            _raw(0, 5, "AGV"),
        ],
    )
    assert [span.error_code for span in spans] == ["AGV"]
