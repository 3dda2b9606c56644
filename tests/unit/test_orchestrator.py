from __future__ import annotations

import threading

import pytest

from conftest import (
    CONTRACT_TEXT,
    LEGAL_ANALYSIS_PAYLOAD,
    OPTIMIZATION_PAYLOAD,
    TRANSLATION_PAYLOAD,
    BlockingLLM,
    DummyLLM,
    as_reply,
    happy_replies,
)
from persistence.memory_store import MemoryStore
from pipelines.errors import DependencyError, NotFoundError, StepStateError
from pipelines.orchestrator import AnalysisOrchestrator
from pipelines.steps.executor import StepExecutor
from schemas.internal.events import CompleteEvent, ProgressUpdate, StepResultEvent
from schemas.internal.legal import LegalAnalysisResult
from schemas.internal.steps import StepFailure


def _orchestrator(llm: DummyLLM, store: MemoryStore | None = None) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(StepExecutor(llm), store or MemoryStore())


def _failed_analysis_run(llm: DummyLLM) -> tuple[AnalysisOrchestrator, str]:
    orchestrator = _orchestrator(llm)
    events = list(orchestrator.run(CONTRACT_TEXT, "china"))
    complete = events[-1]
    assert isinstance(complete, CompleteEvent)
    return orchestrator, complete.result.id


def test_run_emits_events_in_order(dummy_llm: DummyLLM, orchestrator: AnalysisOrchestrator) -> None:
    dummy_llm.queue(*happy_replies())

    events = list(orchestrator.run(CONTRACT_TEXT, "china", "usa", target_language="ja"))

    kinds = [event.type for event in events]
    assert kinds == [
        "progress",
        "progress",
        "step_result",
        "progress",
        "progress",
        "step_result",
        "progress",
        "progress",
        "step_result",
        "progress",
        "complete",
    ]
    progress = [event.progress for event in events if isinstance(event, ProgressUpdate)]
    assert progress == [0, 0, 33, 33, 66, 66, 100]
    assert progress == sorted(progress)

    steps = [event.step for event in events if isinstance(event, StepResultEvent)]
    assert steps == ["legal_analysis", "optimization", "translation"]

    complete = events[-1]
    assert isinstance(complete, CompleteEvent)
    run = complete.result
    assert run.status == "completed"
    assert run.completed_steps == 3
    assert run.failed_steps == 0
    assert run.can_retry == []
    assert run.secondary_framework == "usa"
    assert run.target_language == "ja"
    assert complete.summary is not None
    assert complete.summary.analysis_status == "completed"
    assert complete.summary.compliance_score == 82


def test_first_event_carries_run_id(dummy_llm: DummyLLM, orchestrator: AnalysisOrchestrator) -> None:
    dummy_llm.queue(*happy_replies())
    events = list(orchestrator.run(CONTRACT_TEXT))

    first = events[0]
    assert isinstance(first, ProgressUpdate)
    assert first.message == "开始分析"
    assert first.run_id == events[-1].result.id


def test_step_result_matches_persisted_result(
    dummy_llm: DummyLLM, orchestrator: AnalysisOrchestrator
) -> None:
    dummy_llm.queue(*happy_replies())
    events = list(orchestrator.run(CONTRACT_TEXT))
    run = orchestrator.get_run(events[-1].result.id)

    for event in events:
        if isinstance(event, StepResultEvent):
            assert event.result == run.step(event.step).result


def test_failed_analysis_leaves_downstream_pending() -> None:
    llm = DummyLLM(["not json at all"])
    orchestrator, run_id = _failed_analysis_run(llm)

    run = orchestrator.get_run(run_id)
    assert run.step("legal_analysis").status == "failed"
    assert run.step("legal_analysis").error.reason == "parse_error"
    assert run.step("optimization").status == "pending"
    assert run.step("translation").status == "pending"
    assert run.completed_steps == 0
    assert run.failed_steps == 1
    assert run.can_retry == ["legal_analysis"]
    assert run.status == "partial"
    assert run.summary().analysis_status == "partial"
    assert llm.invocations == 1


def test_failure_progress_message_and_complete_event() -> None:
    llm = DummyLLM([ConnectionError("refused")])
    orchestrator = _orchestrator(llm)
    events = list(orchestrator.run(CONTRACT_TEXT))

    messages = [event.message for event in events if isinstance(event, ProgressUpdate)]
    assert messages[-1].startswith("法律合规分析失败：")
    assert isinstance(events[-1], CompleteEvent)
    assert not any(isinstance(event, StepResultEvent) for event in events)


def test_retry_success_updates_counters() -> None:
    llm = DummyLLM(["not json at all"])
    orchestrator, run_id = _failed_analysis_run(llm)

    llm.queue(as_reply(LEGAL_ANALYSIS_PAYLOAD))
    outcome = orchestrator.retry_step(run_id, "legal_analysis")

    assert isinstance(outcome, LegalAnalysisResult)
    run = orchestrator.get_run(run_id)
    analysis = run.step("legal_analysis")
    assert analysis.status == "succeeded"
    assert analysis.error is None
    assert analysis.attempts == 2
    assert analysis.history == ["running", "failed", "retrying", "succeeded"]
    assert run.completed_steps == 1
    assert run.failed_steps == 0
    assert run.can_retry == []
    # Retries do not cascade; the downstream step is now eligible.
    assert run.step("optimization").status == "pending"
    assert run.next_runnable_step() == "optimization"


def test_retry_failure_keeps_step_failed() -> None:
    llm = DummyLLM(["not json at all"])
    orchestrator, run_id = _failed_analysis_run(llm)

    llm.queue(TimeoutError("slow"))
    outcome = orchestrator.retry_step(run_id, "legal_analysis")

    assert isinstance(outcome, StepFailure)
    assert outcome.reason == "transport_error"
    run = orchestrator.get_run(run_id)
    assert run.step("legal_analysis").status == "failed"
    assert run.step("legal_analysis").error.reason == "transport_error"
    assert run.can_retry == ["legal_analysis"]


def test_resume_runs_downstream_after_retry() -> None:
    llm = DummyLLM(["not json at all"])
    orchestrator, run_id = _failed_analysis_run(llm)
    llm.queue(as_reply(LEGAL_ANALYSIS_PAYLOAD))
    orchestrator.retry_step(run_id, "legal_analysis")

    llm.queue(as_reply(OPTIMIZATION_PAYLOAD), as_reply(TRANSLATION_PAYLOAD))
    events = list(orchestrator.resume(run_id))

    steps = [event.step for event in events if isinstance(event, StepResultEvent)]
    assert steps == ["optimization", "translation"]
    assert events[0].progress == 33
    run = events[-1].result
    assert run.status == "completed"
    assert run.step("legal_analysis").attempts == 2


def test_locks_are_released_once_nothing_is_in_flight() -> None:
    llm = DummyLLM(["not json at all"])
    orchestrator, run_id = _failed_analysis_run(llm)
    assert orchestrator._run_locks == {}

    llm.queue(as_reply(LEGAL_ANALYSIS_PAYLOAD))
    orchestrator.retry_step(run_id, "legal_analysis")
    llm.queue(as_reply(OPTIMIZATION_PAYLOAD), as_reply(TRANSLATION_PAYLOAD))
    list(orchestrator.resume(run_id))

    assert orchestrator._run_locks == {}
    assert orchestrator._step_locks == {}
    assert not orchestrator._inflight


def test_retry_rejects_unmet_dependencies() -> None:
    llm = DummyLLM(["not json at all"])
    orchestrator, run_id = _failed_analysis_run(llm)

    with pytest.raises(DependencyError):
        orchestrator.retry_step(run_id, "optimization")
    assert llm.invocations == 1


def test_retry_rejects_step_that_has_not_failed(
    dummy_llm: DummyLLM, orchestrator: AnalysisOrchestrator
) -> None:
    dummy_llm.queue(*happy_replies())
    run_id = list(orchestrator.run(CONTRACT_TEXT))[-1].result.id

    with pytest.raises(StepStateError):
        orchestrator.retry_step(run_id, "legal_analysis")


def test_retry_unknown_run_or_step(orchestrator: AnalysisOrchestrator) -> None:
    with pytest.raises(NotFoundError):
        orchestrator.retry_step("run_missing", "legal_analysis")

    run = orchestrator.start(CONTRACT_TEXT)
    with pytest.raises(NotFoundError):
        orchestrator.retry_step(run.id, "summarize")


def test_start_validates_frameworks_and_text(orchestrator: AnalysisOrchestrator) -> None:
    with pytest.raises(ValueError):
        orchestrator.start("   \n ")
    with pytest.raises(ValueError):
        orchestrator.start(CONTRACT_TEXT, "china", "china")
    with pytest.raises(ValueError):
        orchestrator.start(CONTRACT_TEXT, "atlantis")
    with pytest.raises(ValueError):
        orchestrator.start(CONTRACT_TEXT, target_language="xx")


def test_start_applies_defaults(dummy_llm: DummyLLM) -> None:
    orchestrator = AnalysisOrchestrator(
        StepExecutor(dummy_llm),
        MemoryStore(),
        default_primary_framework="eu",
        default_target_language="fr",
    )
    run = orchestrator.start(CONTRACT_TEXT, secondary_framework="CHINA")

    assert run.primary_framework == "eu"
    assert run.secondary_framework == "china"
    assert run.target_language == "fr"
    assert [step.status for step in run.steps] == ["pending"] * 3


def test_concurrent_retries_are_serialized() -> None:
    llm = BlockingLLM()
    llm.release.set()
    llm.queue("not json at all")
    orchestrator, run_id = _failed_analysis_run(llm)

    llm.release.clear()
    llm.entered.clear()
    llm.queue(as_reply(LEGAL_ANALYSIS_PAYLOAD), as_reply(LEGAL_ANALYSIS_PAYLOAD))
    outcomes: list[object] = []

    def worker() -> None:
        try:
            outcomes.append(orchestrator.retry_step(run_id, "legal_analysis"))
        except StepStateError as exc:
            outcomes.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    assert llm.entered.wait(timeout=5)
    llm.release.set()
    for thread in threads:
        thread.join(timeout=5)

    assert len(outcomes) == 2
    assert sum(isinstance(item, LegalAnalysisResult) for item in outcomes) == 1
    assert sum(isinstance(item, StepStateError) for item in outcomes) == 1
    # One initial call plus exactly one retry reached the model.
    assert llm.invocations == 2
    run = orchestrator.get_run(run_id)
    assert run.step("legal_analysis").attempts == 2


def test_delete_rejected_while_retry_in_flight() -> None:
    llm = BlockingLLM()
    llm.release.set()
    llm.queue("not json at all")
    orchestrator, run_id = _failed_analysis_run(llm)

    llm.release.clear()
    llm.entered.clear()
    llm.queue(as_reply(LEGAL_ANALYSIS_PAYLOAD))
    thread = threading.Thread(target=orchestrator.retry_step, args=(run_id, "legal_analysis"))
    thread.start()
    try:
        assert llm.entered.wait(timeout=5)
        with pytest.raises(StepStateError):
            orchestrator.delete_run(run_id)
    finally:
        llm.release.set()
        thread.join(timeout=5)

    orchestrator.delete_run(run_id)
    with pytest.raises(NotFoundError):
        orchestrator.get_run(run_id)
    with pytest.raises(NotFoundError):
        orchestrator.delete_run(run_id)


def test_unexpected_executor_error_marks_step_failed(memory_store: MemoryStore) -> None:
    class ExplodingExecutor(StepExecutor):
        def execute(self, step, context):
            raise KeyError("boom")

    orchestrator = AnalysisOrchestrator(ExplodingExecutor(DummyLLM()), memory_store)
    run = orchestrator.start(CONTRACT_TEXT)

    events = []
    with pytest.raises(KeyError):
        for event in orchestrator.stream(run.id):
            events.append(event)

    assert not any(isinstance(event, CompleteEvent) for event in events)
    state = orchestrator.get_run(run.id).step("legal_analysis")
    assert state.status == "failed"
    assert state.error.reason == "invalid_response"


def test_every_transition_is_persisted(dummy_llm: DummyLLM, memory_store: MemoryStore) -> None:
    saved: list[str] = []
    original_save = memory_store.save_run

    def recording_save(run) -> None:
        saved.append(",".join(step.status for step in run.steps))
        original_save(run)

    memory_store.save_run = recording_save  # type: ignore[method-assign]
    orchestrator = AnalysisOrchestrator(StepExecutor(dummy_llm), memory_store)
    dummy_llm.queue(*happy_replies())
    list(orchestrator.run(CONTRACT_TEXT))

    assert saved == [
        "pending,pending,pending",
        "running,pending,pending",
        "succeeded,pending,pending",
        "succeeded,running,pending",
        "succeeded,succeeded,pending",
        "succeeded,succeeded,running",
        "succeeded,succeeded,succeeded",
    ]
