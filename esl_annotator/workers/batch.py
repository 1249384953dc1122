"""Sequential batch runner for annotation jobs.

A batch is an ordered list of texts. The runner sends them one at a time to
the classifier, appends every successful result to the result store and keeps
live counters for whoever is watching. A failing item never ends the run: it
is replaced by a placeholder result and counted as a failure. Only a stop
request or the end of the queue finishes a batch.

All mutable run state is written from the dispatch loop. Operator calls
(:meth:`BatchRunner.pause`, :meth:`BatchRunner.resume`,
:meth:`BatchRunner.stop`) only flip the pause event and the stop flag, which
the loop checks before each item. An item already handed to the classifier
is always finished and counted.
"""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Iterable, Protocol, Sequence

from esl_annotator.core.schema import AnalysisResult
from esl_annotator.core.statistics import AggregateAnnotationCounts
from esl_annotator.domain import BatchSnapshot, ProgressSnapshot, RunState, RunStatus
from esl_annotator.infrastructure import (
    ClassifierClient,
    ResultStore,
    get_classifier_client,
    get_result_store,
)

logger = logging.getLogger(__name__)

DEFAULT_ITEM_DELAY = 0.1
DEFAULT_RECENT_LIMIT = 100


class BatchObserver(Protocol):
    """Receives progress after every item and once when the run ends."""

    def on_progress(self, snapshot: ProgressSnapshot, latest: AnalysisResult) -> None: ...

    def on_complete(self, snapshot: ProgressSnapshot) -> None: ...


class BatchStateError(RuntimeError):
    """Raised when a batch is started or cleared while another is running."""


class BatchRunner:
    def __init__(
        self,
        classifier: ClassifierClient | None = None,
        store: ResultStore | None = None,
        *,
        item_delay: float = DEFAULT_ITEM_DELAY,
        recent_limit: int = DEFAULT_RECENT_LIMIT,
        observers: Iterable[BatchObserver] = (),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._classifier = classifier
        self._store = store
        self._item_delay = item_delay
        self._sleep = sleep
        self._observers: list[BatchObserver] = list(observers)

        self._state = RunState()
        self._recent: deque[AnalysisResult] = deque(maxlen=recent_limit)
        self._counts = AggregateAnnotationCounts()
        self._latest: AnalysisResult | None = None

        self._stop_requested = False
        self._resume_event: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # observation
    # ------------------------------------------------------------------
    @property
    def status(self) -> RunStatus:
        return self._state.status

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    def progress(self) -> ProgressSnapshot:
        return self._state.snapshot()

    def snapshot(self) -> BatchSnapshot:
        return BatchSnapshot(
            progress=self._state.snapshot(),
            stop_requested=self._stop_requested,
            latest_result=self._latest,
            recent_results=tuple(self._recent),
            counts=self._counts.as_dict(),
        )

    def add_observer(self, observer: BatchObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: BatchObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    # ------------------------------------------------------------------
    # operator controls
    # ------------------------------------------------------------------
    def start(self, items: Sequence[str]) -> asyncio.Task[None]:
        """Begin a new batch. Must be called from a running event loop."""

        if self.is_active:
            raise BatchStateError("A batch is already running")

        queue = list(items)
        self._clear()
        self._state.status = RunStatus.RUNNING
        self._state.total = len(queue)
        self._resume_event = asyncio.Event()
        self._resume_event.set()

        classifier = self._classifier or get_classifier_client()
        store = self._store or get_result_store()
        self._task = asyncio.create_task(self._run(queue, classifier, store))
        return self._task

    def pause(self) -> None:
        if self._state.status is not RunStatus.RUNNING or self._stop_requested:
            return
        assert self._resume_event is not None
        self._resume_event.clear()
        self._state.status = RunStatus.PAUSED
        logger.info("Batch paused at %d/%d", self._state.current, self._state.total)

    def resume(self) -> None:
        if self._state.status is not RunStatus.PAUSED:
            return
        assert self._resume_event is not None
        self._state.status = RunStatus.RUNNING
        self._resume_event.set()
        logger.info("Batch resumed at %d/%d", self._state.current, self._state.total)

    def stop(self) -> None:
        """Discard the rest of the queue once the in-flight item is done."""

        if not self.is_active or self._stop_requested:
            return
        self._stop_requested = True
        if self._resume_event is not None:
            self._resume_event.set()
        logger.info("Stop requested at %d/%d", self._state.current, self._state.total)

    def reset(self) -> None:
        if self.is_active:
            raise BatchStateError("Cannot reset while a batch is running")
        self._clear()

    async def wait(self) -> None:
        if self._task is not None:
            await asyncio.shield(self._task)

    # ------------------------------------------------------------------
    # dispatch loop
    # ------------------------------------------------------------------
    def _clear(self) -> None:
        self._state = RunState()
        self._recent.clear()
        self._counts = AggregateAnnotationCounts()
        self._latest = None
        self._stop_requested = False
        self._resume_event = None
        self._task = None

    async def _run(self, items: list[str], classifier: ClassifierClient, store: ResultStore) -> None:
        logger.info("Batch started with %d items", len(items))
        try:
            for index, text in enumerate(items):
                if self._stop_requested:
                    break
                await self._wait_while_paused()
                if self._stop_requested:
                    break

                result, succeeded = await self._process(index, text, classifier, store)
                self._record(result, succeeded)
                await self._sleep(self._item_delay)
        except asyncio.CancelledError:
            self._state.status = RunStatus.STOPPED
            logger.warning("Batch cancelled at %d/%d", self._state.current, self._state.total)
            self._notify_complete()
            raise

        state = self._state
        stopped_early = self._stop_requested and state.current < state.total
        state.status = RunStatus.STOPPED if stopped_early else RunStatus.COMPLETED
        logger.info(
            "Batch %s: %d/%d processed, %d succeeded, %d failed",
            state.status.value,
            state.current,
            state.total,
            state.success_count,
            state.failure_count,
        )
        self._notify_complete()

    async def _wait_while_paused(self) -> None:
        assert self._resume_event is not None
        while not self._resume_event.is_set():
            await self._resume_event.wait()

    async def _process(
        self,
        index: int,
        text: str,
        classifier: ClassifierClient,
        store: ResultStore,
    ) -> tuple[AnalysisResult, bool]:
        try:
            result = await classifier.classify(text)
        except Exception:  # any classifier failure only fails this item
            logger.exception("Error processing item %d", index + 1)
            return AnalysisResult.failure(text), False

        try:
            saved = await store.append(result)
        except Exception:
            logger.exception("Failed to persist item %d", index + 1)
        else:
            if saved is None:
                logger.warning("Item %d was processed but not persisted", index + 1)
        return result, True

    def _record(self, result: AnalysisResult, succeeded: bool) -> None:
        state = self._state
        state.current += 1
        if succeeded:
            state.success_count += 1
        else:
            state.failure_count += 1

        self._recent.appendleft(result)
        self._latest = result
        self._counts.merge(result.annotations)

        snapshot = state.snapshot()
        for observer in list(self._observers):
            try:
                observer.on_progress(snapshot, result)
            except Exception:
                logger.exception("Batch observer %r failed on progress", observer)

    def _notify_complete(self) -> None:
        snapshot = self._state.snapshot()
        for observer in list(self._observers):
            try:
                observer.on_complete(snapshot)
            except Exception:
                logger.exception("Batch observer %r failed on completion", observer)


_runner: BatchRunner | None = None


def configure_batch_runner(runner: BatchRunner) -> None:
    global _runner
    _runner = runner


def get_batch_runner() -> BatchRunner:
    global _runner
    if _runner is None:
        _runner = BatchRunner()
    return _runner


__all__ = [
    "BatchObserver",
    "BatchRunner",
    "BatchStateError",
    "configure_batch_runner",
    "get_batch_runner",
]
