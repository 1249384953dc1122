from __future__ import annotations

import asyncio
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest

from esl_annotator.core.schema import AnalysisResult, AnnotationSpan
from esl_annotator.domain import RunStatus
from esl_annotator.infrastructure import FatalError, InMemoryResultStore, RetryableError
from esl_annotator.workers.batch import BatchRunner, BatchStateError


def _span(start: int, end: int, code: str = "AGV", macro: str = "AG") -> AnnotationSpan:
    return AnnotationSpan(
        original_span="x",
        corrected_span="y",
        start_index=start,
        end_index=end,
        error_code=code,
        macro_code=macro,
        explanation="",
    )


class FakeClassifier:
    def __init__(self, annotations=None, failures=None, on_call=None):
        self.annotations = annotations or {}
        self.failures = failures or {}
        self.on_call = on_call
        self.calls: list[str] = []

    async def classify(self, text: str) -> AnalysisResult:
        self.calls.append(text)
        if self.on_call is not None:
            self.on_call(len(self.calls))
        if text in self.failures:
            raise self.failures[text]
        return AnalysisResult(
            original_text=text,
            corrected_text=text.upper(),
            annotations=self.annotations.get(text, []),
        )


class BrokenStore(InMemoryResultStore):
    async def append(self, result):
        raise RuntimeError("database unavailable")


class RecordingObserver:
    def __init__(self):
        self.progress = []
        self.completed = []

    def on_progress(self, snapshot, latest):
        self.progress.append((snapshot, latest))

    def on_complete(self, snapshot):
        self.completed.append(snapshot)


def _run(runner: BatchRunner, items: list[str]) -> BatchRunner:
    async def scenario():
        runner.start(items)
        await runner.wait()

    asyncio.run(scenario())
    return runner


def test_two_items_complete_with_window_and_counts():
    annotation = AnnotationSpan(
        original_span="go",
        corrected_span="goes",
        start_index=3,
        end_index=5,
        error_code="AGV",
        macro_code="AG",
        explanation="A verb does not agree with its subject in number or person.",
    )
    classifier = FakeClassifier(annotations={"He go school.": [annotation]})
    store = InMemoryResultStore()
    runner = _run(BatchRunner(classifier, store, item_delay=0), ["He go school.", "She is happy."])

    progress = runner.progress()
    assert progress.status is RunStatus.COMPLETED
    assert (progress.total, progress.current, progress.success, progress.failed) == (2, 2, 2, 0)

    snapshot = runner.snapshot()
    assert [result.original_text for result in snapshot.recent_results] == ["She is happy.", "He go school."]
    assert snapshot.latest_result.original_text == "She is happy."
    assert snapshot.counts["error_codes"] == {"AGV": 1}
    assert snapshot.counts["macro_codes"] == {"AG": 1}

    saved = asyncio.run(store.list_recent())
    assert [record.original_text for record in saved] == ["She is happy.", "He go school."]
    assert saved[1].error_count == 1


def test_fatal_error_is_isolated_to_its_item():
    classifier = FakeClassifier(failures={"two": FatalError("bad request")})
    store = InMemoryResultStore()
    runner = _run(BatchRunner(classifier, store, item_delay=0), ["one", "two", "three"])

    progress = runner.progress()
    assert progress.status is RunStatus.COMPLETED
    assert (progress.total, progress.current, progress.success, progress.failed) == (3, 3, 2, 1)

    placeholder = runner.snapshot().recent_results[1]
    assert placeholder.original_text == "two"
    assert placeholder.corrected_text == "Error processing this item."
    assert placeholder.annotations == []

    saved = asyncio.run(store.list_recent())
    assert [record.original_text for record in saved] == ["three", "one"]


def test_any_classifier_exception_counts_as_failure():
    classifier = FakeClassifier(
        failures={
            "a": RetryableError("429 exhausted"),
            "b": ValueError("unexpected"),
        }
    )
    runner = _run(BatchRunner(classifier, InMemoryResultStore(), item_delay=0), ["a", "b", "c"])

    progress = runner.progress()
    assert (progress.success, progress.failed) == (1, 2)
    assert classifier.calls == ["a", "b", "c"]


def test_progress_snapshots_keep_counts_consistent():
    observer = RecordingObserver()
    classifier = FakeClassifier(failures={"item-3": FatalError("nope"), "item-7": FatalError("nope")})
    items = [f"item-{index}" for index in range(10)]
    _run(BatchRunner(classifier, InMemoryResultStore(), item_delay=0, observers=[observer]), items)

    assert [snapshot.current for snapshot, _ in observer.progress] == list(range(1, 11))
    for snapshot, latest in observer.progress:
        assert snapshot.success + snapshot.failed == snapshot.current
        assert snapshot.total == 10
    assert [latest.original_text for _, latest in observer.progress] == items

    assert len(observer.completed) == 1
    assert observer.completed[0].status is RunStatus.COMPLETED
    assert observer.completed[0].current == 10


def test_recent_results_window_is_capped():
    items = [f"sentence {index}" for index in range(5000)]
    runner = _run(BatchRunner(FakeClassifier(), InMemoryResultStore(), item_delay=0), items)

    recent = runner.snapshot().recent_results
    assert len(recent) == 100
    assert recent[0].original_text == "sentence 4999"
    assert recent[-1].original_text == "sentence 4900"
    assert runner.progress().current == 5000


def test_aggregate_counts_cover_whole_batch():
    annotations = {f"t{index}": [_span(0, 1, code="SX", macro="S")] for index in range(150)}
    classifier = FakeClassifier(annotations=annotations)
    runner = _run(
        BatchRunner(classifier, InMemoryResultStore(), item_delay=0, recent_limit=10),
        list(annotations),
    )

    snapshot = runner.snapshot()
    assert len(snapshot.recent_results) == 10
    assert snapshot.counts["error_codes"] == {"SX": 150}
    assert snapshot.counts["total"] == 150


def test_stop_discards_remaining_items():
    runner = BatchRunner(None, InMemoryResultStore(), item_delay=0)
    classifier = FakeClassifier(on_call=lambda count: runner.stop() if count == 3 else None)
    runner._classifier = classifier
    observer = RecordingObserver()
    runner.add_observer(observer)

    _run(runner, [f"item-{index}" for index in range(10)])

    progress = runner.progress()
    assert progress.status is RunStatus.STOPPED
    assert progress.current == 3
    assert len(classifier.calls) == 3
    assert observer.completed[0].status is RunStatus.STOPPED


def test_stop_during_last_item_still_completes():
    runner = BatchRunner(None, InMemoryResultStore(), item_delay=0)
    runner._classifier = FakeClassifier(on_call=lambda count: runner.stop() if count == 2 else None)

    _run(runner, ["a", "b"])

    assert runner.progress().status is RunStatus.COMPLETED
    assert runner.progress().current == 2


def test_pause_and_resume_match_uninterrupted_run():
    items = [f"item-{index}" for index in range(6)]
    failures = {"item-4": FatalError("nope")}

    baseline = _run(BatchRunner(FakeClassifier(failures=failures), InMemoryResultStore(), item_delay=0), items)

    runner = BatchRunner(None, InMemoryResultStore(), item_delay=0)
    classifier = FakeClassifier(failures=failures, on_call=lambda count: runner.pause() if count == 2 else None)
    runner._classifier = classifier

    async def scenario():
        runner.start(items)
        while runner.progress().current < 2:
            await asyncio.sleep(0)
        assert runner.status is RunStatus.PAUSED
        for _ in range(20):
            await asyncio.sleep(0)
        assert runner.progress().current == 2
        assert len(classifier.calls) == 2
        runner.resume()
        await runner.wait()

    asyncio.run(scenario())

    assert classifier.calls == items
    assert runner.progress() == baseline.progress()
    assert [r.original_text for r in runner.snapshot().recent_results] == [
        r.original_text for r in baseline.snapshot().recent_results
    ]


def test_stop_while_paused_ends_run():
    runner = BatchRunner(None, InMemoryResultStore(), item_delay=0)
    classifier = FakeClassifier(on_call=lambda count: runner.pause() if count == 1 else None)
    runner._classifier = classifier

    async def scenario():
        runner.start(["a", "b", "c"])
        while runner.progress().current < 1:
            await asyncio.sleep(0)
        runner.stop()
        await runner.wait()

    asyncio.run(scenario())

    assert runner.progress().status is RunStatus.STOPPED
    assert runner.progress().current == 1
    assert classifier.calls == ["a"]


def test_persistence_failure_does_not_fail_item():
    runner = _run(BatchRunner(FakeClassifier(), BrokenStore(), item_delay=0), ["a", "b"])

    progress = runner.progress()
    assert (progress.current, progress.success, progress.failed) == (2, 2, 0)
    assert runner.snapshot().recent_results[0].corrected_text == "B"


def test_observer_errors_are_contained():
    class ExplodingObserver:
        def on_progress(self, snapshot, latest):
            raise RuntimeError("ui went away")

        def on_complete(self, snapshot):
            raise RuntimeError("ui went away")

    runner = _run(
        BatchRunner(FakeClassifier(), InMemoryResultStore(), item_delay=0, observers=[ExplodingObserver()]),
        ["a", "b"],
    )
    assert runner.progress().status is RunStatus.COMPLETED
    assert runner.progress().current == 2


def test_item_delay_applies_after_every_item():
    delays: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    classifier = FakeClassifier(failures={"b": FatalError("nope")})
    _run(BatchRunner(classifier, InMemoryResultStore(), sleep=fake_sleep), ["a", "b", "c"])

    assert delays == [0.1, 0.1, 0.1]


def test_controls_are_noops_when_idle_or_finished():
    runner = BatchRunner(FakeClassifier(), InMemoryResultStore(), item_delay=0)
    runner.pause()
    runner.resume()
    runner.stop()
    assert runner.status is RunStatus.IDLE

    _run(runner, ["a"])
    runner.pause()
    assert runner.status is RunStatus.COMPLETED
    runner.resume()
    runner.stop()
    assert runner.status is RunStatus.COMPLETED
    assert runner.snapshot().stop_requested is False


def test_start_and_reset_rejected_while_running():
    runner = BatchRunner(None, InMemoryResultStore(), item_delay=0)

    async def scenario():
        gate = asyncio.Event()

        class SlowClassifier(FakeClassifier):
            async def classify(self, text):
                await gate.wait()
                return await super().classify(text)

        runner._classifier = SlowClassifier()
        runner.start(["a", "b"])
        await asyncio.sleep(0)
        with pytest.raises(BatchStateError):
            runner.start(["c"])
        with pytest.raises(BatchStateError):
            runner.reset()
        gate.set()
        await runner.wait()

    asyncio.run(scenario())
    assert runner.progress().current == 2

    runner.reset()
    snapshot = runner.snapshot()
    assert snapshot.progress.status is RunStatus.IDLE
    assert (snapshot.progress.total, snapshot.progress.current) == (0, 0)
    assert snapshot.recent_results == ()
    assert snapshot.latest_result is None
    assert snapshot.counts["total"] == 0


def test_new_batch_resets_previous_counters():
    runner = BatchRunner(FakeClassifier(annotations={"a": [_span(0, 1)]}), InMemoryResultStore(), item_delay=0)
    _run(runner, ["a", "b", "c"])
    _run(runner, ["a"])

    progress = runner.progress()
    assert (progress.total, progress.current, progress.success) == (1, 1, 1)
    assert len(runner.snapshot().recent_results) == 1
    assert runner.snapshot().counts["error_codes"] == {"AGV": 1}


def test_empty_batch_completes_immediately():
    observer = RecordingObserver()
    runner = _run(BatchRunner(FakeClassifier(), InMemoryResultStore(), item_delay=0, observers=[observer]), [])

    assert runner.progress().status is RunStatus.COMPLETED
    assert runner.progress().total == 0
    assert len(observer.completed) == 1


def test_removed_observer_stops_receiving_progress():
    observer = RecordingObserver()
    runner = BatchRunner(FakeClassifier(), InMemoryResultStore(), item_delay=0, observers=[observer])
    _run(runner, ["a"])
    runner.remove_observer(observer)
    _run(runner, ["b", "c"])

    assert len(observer.progress) == 1
    assert len(observer.completed) == 1


def test_cancelled_run_reports_completion_as_stopped():
    observer = RecordingObserver()
    runner = BatchRunner(None, InMemoryResultStore(), item_delay=0, observers=[observer])

    async def scenario():
        gate = asyncio.Event()

        class BlockingClassifier(FakeClassifier):
            async def classify(self, text):
                if text == "b":
                    await gate.wait()
                return await super().classify(text)

        runner._classifier = BlockingClassifier()
        task = runner.start(["a", "b", "c"])
        while runner.progress().current < 1:
            await asyncio.sleep(0)
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    assert runner.progress().status is RunStatus.STOPPED
    assert len(observer.completed) == 1
    assert observer.completed[0].status is RunStatus.STOPPED
    assert observer.completed[0].current == 1
