from __future__ import annotations

from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, Field, model_validator


class AnnotationSpan(BaseModel):
    original_span: str
    corrected_span: str
    start_index: int = Field(ge=0)
    end_index: int
    error_code: str
    macro_code: str
    explanation: str = ""

    @model_validator(mode="after")
    def _check_bounds(self) -> "AnnotationSpan":
        if self.end_index <= self.start_index:
            raise ValueError("end_index must be greater than start_index")
        return self


class AnalysisResult(BaseModel):
    FAILURE_TEXT: ClassVar[str] = "Error processing this item."

    original_text: str
    corrected_text: str
    annotations: list[AnnotationSpan] = Field(default_factory=list)

    @classmethod
    def failure(cls, text: str) -> "AnalysisResult":
        """Placeholder recorded for an item the classifier could not process."""

        return cls(original_text=text, corrected_text=cls.FAILURE_TEXT, annotations=[])

    @property
    def error_count(self) -> int:
        return len(self.annotations)


class HistoryRecord(BaseModel):
    id: int | None = None
    created_at: datetime | None = None
    original_text: str
    corrected_text: str
    annotations: list[AnnotationSpan] = Field(default_factory=list)
    error_count: int | None = None

    @model_validator(mode="after")
    def _fill_error_count(self) -> "HistoryRecord":
        if self.error_count is None:
            self.error_count = len(self.annotations)
        return self
