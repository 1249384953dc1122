"""Normalisation of annotation spans returned by the classification service.

The service is asked for sorted, non-overlapping spans but nothing on its side
guarantees it. Spans are therefore validated against the text they annotate
before a result leaves the classifier client:

* entries that do not validate as :class:`AnnotationSpan` are dropped;
* spans reaching past the end of the text are dropped;
* of two overlapping spans the one starting first is kept (for equal starts
  the one listed first by the service).

Survivors are returned sorted by ``start_index``.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable

from pydantic import ValidationError

from esl_annotator.core.schema import AnnotationSpan

logger = logging.getLogger(__name__)


def _coerce(raw: Any) -> AnnotationSpan | None:
    if isinstance(raw, AnnotationSpan):
        return raw
    try:
        return AnnotationSpan.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Dropping invalid annotation %r: %s", raw, exc.errors()[0].get("msg"))
        return None


def normalise_spans(text: str, spans: Iterable[Any]) -> list[AnnotationSpan]:
    candidates: list[AnnotationSpan] = []
    for raw in spans:
        span = _coerce(raw)
        if span is None:
            continue
        if span.end_index > len(text):
            logger.warning(
                "Dropping annotation %s [%d, %d) outside text of length %d",
                span.error_code,
                span.start_index,
                span.end_index,
                len(text),
            )
            continue
        candidates.append(span)

    # sorted() is stable, so equal starts keep the service's order
    kept: list[AnnotationSpan] = []
    last_end = 0
    for span in sorted(candidates, key=lambda item: item.start_index):
        if kept and span.start_index < last_end:
            logger.warning(
                "Dropping annotation %s [%d, %d) overlapping [%d, %d)",
                span.error_code,
                span.start_index,
                span.end_index,
                kept[-1].start_index,
                kept[-1].end_index,
            )
            continue
        kept.append(span)
        last_end = span.end_index
    return kept


__all__ = ["normalise_spans"]
