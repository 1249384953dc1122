"""Infrastructure layer exports."""

from .classifier import (
    ClassificationError,
    ClassifierClient,
    FatalError,
    RetryableError,
    RetryPolicy,
    configure_classifier_client,
    get_classifier_client,
)
from .gemini import GeminiClassifierClient
from .results import InMemoryResultStore, ResultStore, configure_result_store, get_result_store
from .supabase import SupabaseResultStore

__all__ = [
    "ClassificationError",
    "ClassifierClient",
    "FatalError",
    "GeminiClassifierClient",
    "InMemoryResultStore",
    "ResultStore",
    "RetryPolicy",
    "RetryableError",
    "SupabaseResultStore",
    "configure_classifier_client",
    "configure_result_store",
    "get_classifier_client",
    "get_result_store",
]
