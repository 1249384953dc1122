from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from esl_annotator.core.schema import AnnotationSpan, HistoryRecord

TOP_ERROR_CODES = 10


@dataclass
class AggregateAnnotationCounts:
    """Per-code annotation totals over a whole batch; never truncated."""

    error_codes: Counter[str] = field(default_factory=Counter)
    macro_codes: Counter[str] = field(default_factory=Counter)

    def merge(self, spans: Iterable[AnnotationSpan]) -> None:
        for span in spans:
            self.error_codes[span.error_code] += 1
            self.macro_codes[span.macro_code] += 1

    @property
    def total(self) -> int:
        return sum(self.error_codes.values())

    def as_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "error_codes": dict(self.error_codes),
            "macro_codes": dict(self.macro_codes),
        }


def _ranked(counter: Counter[str], limit: int | None = None) -> list[dict[str, object]]:
    return [{"name": name, "value": value} for name, value in counter.most_common(limit)]


def summarise_history(records: Iterable[HistoryRecord], record_id: int | None = None) -> dict[str, object]:
    selected = [record for record in records if record_id is None or record.id == record_id]

    counts = AggregateAnnotationCounts()
    for record in selected:
        counts.merge(record.annotations)

    total_records = len(selected)
    total_errors = counts.total
    return {
        "total_records": total_records,
        "total_errors": total_errors,
        "avg_errors": round(total_errors / total_records, 1) if total_records else 0,
        "top_error_codes": _ranked(counts.error_codes, TOP_ERROR_CODES),
        "macro_codes": _ranked(counts.macro_codes),
    }


__all__ = ["AggregateAnnotationCounts", "summarise_history"]
