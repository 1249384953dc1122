"""Application services."""

from .annotations import AnnotationService, get_annotation_service, reset_annotation_state

__all__ = [
    "AnnotationService",
    "get_annotation_service",
    "reset_annotation_state",
]
