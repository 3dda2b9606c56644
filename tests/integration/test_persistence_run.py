from __future__ import annotations

from pathlib import Path

from conftest import (
    CONTRACT_TEXT,
    LEGAL_ANALYSIS_PAYLOAD,
    OPTIMIZATION_PAYLOAD,
    TRANSLATION_PAYLOAD,
    DummyLLM,
    as_reply,
)
from core.config import Settings
from persistence.memory_store import MemoryStore
from persistence.sqlite_store import SqliteStore
from pipelines.orchestrator import AnalysisOrchestrator
from pipelines.steps.executor import StepExecutor
from rendering.comparison import comparison_for_run
from schemas.internal.events import ProgressUpdate
from services.analysis import build_orchestrator, build_store, collect_statistics, list_history


def test_run_survives_restart_between_failure_retry_and_resume(tmp_path: Path) -> None:
    db_path = tmp_path / "metadata.sqlite"
    first_llm = DummyLLM(
        [as_reply(LEGAL_ANALYSIS_PAYLOAD), "优化失败，没有JSON"]
    )
    first = AnalysisOrchestrator(StepExecutor(first_llm), SqliteStore(db_path))

    events = list(first.run(CONTRACT_TEXT, "china", "eu", target_language="de"))
    run_id = events[-1].result.id
    messages = [event.message for event in events if isinstance(event, ProgressUpdate)]
    assert messages[-1].startswith("合同优化失败")

    # A new process sees the persisted state.
    second_llm = DummyLLM([as_reply(OPTIMIZATION_PAYLOAD), as_reply(TRANSLATION_PAYLOAD)])
    second = AnalysisOrchestrator(StepExecutor(second_llm), SqliteStore(db_path))
    run = second.get_run(run_id)
    assert run.step("legal_analysis").status == "succeeded"
    assert run.step("optimization").status == "failed"
    assert run.can_retry == ["optimization"]

    outcome = second.retry_step(run_id, "optimization")
    assert outcome.modifications[0].reason == "明确付款期限"
    assert second.get_run(run_id).step("translation").status == "pending"

    resumed = list(second.resume(run_id))
    final = resumed[-1].result
    assert final.status == "completed"
    assert final.step("translation").result["translated_text"].startswith("Lease Agreement")
    assert "德语" in second_llm.prompts[-1][1].content

    comparison = comparison_for_run(final)
    assert comparison.mode == "modifications"

    history = list_history(second.store, limit=5)
    assert history.items[0].status == "completed"
    assert history.items[0].secondary_framework == "eu"
    stats = collect_statistics(second.store, window_days=1)
    assert stats.total == 1
    assert stats.framework_distribution == {"china": 1}


def test_build_store_follows_settings(tmp_path: Path) -> None:
    disabled = Settings(PERSISTENCE_ENABLED=False, PERSISTENCE_DIR=str(tmp_path))
    enabled = Settings(PERSISTENCE_ENABLED=True, PERSISTENCE_DIR=str(tmp_path / "runs"))

    assert isinstance(build_store(disabled), MemoryStore)
    store = build_store(enabled)
    assert isinstance(store, SqliteStore)
    assert store.path == tmp_path / "runs" / "metadata.sqlite"
    assert isinstance(build_store(disabled, persistence_dir=tmp_path), SqliteStore)


def test_build_orchestrator_uses_settings_defaults(tmp_path: Path) -> None:
    settings = Settings(
        PERSISTENCE_ENABLED=False,
        DEFAULT_PRIMARY_FRAMEWORK="japan",
        DEFAULT_TARGET_LANGUAGE="ko",
    )
    orchestrator = build_orchestrator(settings, llm=DummyLLM())

    run = orchestrator.start(CONTRACT_TEXT)
    assert run.primary_framework == "japan"
    assert run.target_language == "ko"
    assert isinstance(orchestrator.store, MemoryStore)
