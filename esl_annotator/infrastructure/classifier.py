"""Classification client contract and retry handling.

The batch runner and the single-text endpoint only see the
:class:`ClassifierClient` protocol. Concrete clients raise
:class:`RetryableError` for transient service conditions and
:class:`FatalError` for everything else; :func:`call_with_retry` turns a
single-attempt coroutine into one that backs off on the former.
"""
from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Protocol, TypeVar

from esl_annotator.core.schema import AnalysisResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ClassificationError(RuntimeError):
    """Base class for failures surfaced by a classifier client."""


class RetryableError(ClassificationError):
    """The service is rate limiting or overloaded; the call may be repeated."""


class FatalError(ClassificationError):
    """The call cannot succeed by repeating it."""


class ClassifierClient(Protocol):
    """Contract for annotation services."""

    async def classify(self, text: str) -> AnalysisResult:
        """Annotate ``text`` or raise :class:`ClassificationError`."""


@dataclass(slots=True)
class RetryPolicy:
    max_attempts: int = 5
    base_delay: float = 2.0
    max_jitter: float = 1.0
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    jitter: Callable[[float, float], float] = field(default=random.uniform)

    def delay_for(self, retry: int) -> float:
        """Seconds to wait before retry number ``retry`` (1-based)."""

        return self.base_delay * (2**retry) + self.jitter(0.0, self.max_jitter)


async def call_with_retry(operation: Callable[[], Awaitable[T]], policy: RetryPolicy) -> T:
    attempt = 1
    while True:
        try:
            return await operation()
        except RetryableError as exc:
            if attempt >= policy.max_attempts:
                logger.error("Giving up after %d attempts: %s", attempt, exc)
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                "Classifier rate limited or overloaded (%s). Retrying in %d ms (attempt %d/%d)",
                exc,
                round(delay * 1000),
                attempt,
                policy.max_attempts,
            )
            await policy.sleep(delay)
            attempt += 1


class UnconfiguredClassifierClient:
    """Fallback client used when no API key has been provided."""

    async def classify(self, text: str) -> AnalysisResult:
        raise FatalError("API key is missing")


_client: ClassifierClient = UnconfiguredClassifierClient()


def configure_classifier_client(client: ClassifierClient) -> None:
    """Install the classifier used by the runner and the analyze endpoint."""

    global _client
    _client = client


def get_classifier_client() -> ClassifierClient:
    """Return the currently configured classifier."""

    return _client


__all__ = [
    "ClassificationError",
    "ClassifierClient",
    "FatalError",
    "RetryPolicy",
    "RetryableError",
    "UnconfiguredClassifierClient",
    "call_with_retry",
    "configure_classifier_client",
    "get_classifier_client",
]
