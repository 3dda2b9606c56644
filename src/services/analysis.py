"""Analysis service wiring for CLI/API reuse."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from core.config import Settings, get_settings
from lexreview.llm import ChatModelLike, llm_config_from_settings
from persistence.contracts import RunStore
from persistence.memory_store import MemoryStore
from persistence.models import RunSummaryRecord
from persistence.sqlite_store import SqliteStore
from pipelines.orchestrator import AnalysisOrchestrator
from pipelines.steps.executor import StepExecutor
from schemas.responses import (
    DailyCount,
    HistoryResponse,
    RunHistoryItem,
    StatisticsResponse,
)

_DB_FILENAME = "metadata.sqlite"


def build_store(
    settings: Settings | None = None, *, persistence_dir: str | Path | None = None
) -> RunStore:
    settings = settings or get_settings()
    if not settings.persistence_enabled and persistence_dir is None:
        return MemoryStore()
    root = Path(persistence_dir or settings.persistence_dir).expanduser()
    return SqliteStore(root / _DB_FILENAME)


def build_orchestrator(
    settings: Settings | None = None,
    *,
    llm: ChatModelLike | None = None,
    store: RunStore | None = None,
) -> AnalysisOrchestrator:
    """Assemble executor, store and orchestrator from settings."""
    settings = settings or get_settings()
    executor = StepExecutor(llm, llm_config=llm_config_from_settings(settings))
    return AnalysisOrchestrator(
        executor,
        store if store is not None else build_store(settings),
        default_primary_framework=settings.default_primary_framework,
        default_target_language=settings.default_target_language,
    )


@lru_cache(maxsize=1)
def get_orchestrator() -> AnalysisOrchestrator:
    return build_orchestrator()


def list_history(store: RunStore, *, limit: int | None = None) -> HistoryResponse:
    limit = limit or get_settings().history_limit
    return HistoryResponse(items=[_history_item(record) for record in store.list_runs(limit=limit)])


def collect_statistics(store: RunStore, *, window_days: int | None = None) -> StatisticsResponse:
    window_days = window_days or get_settings().statistics_window_days
    stats = store.statistics(window_days=window_days)
    return StatisticsResponse(
        total=stats.total,
        avg_score=stats.avg_score,
        score_distribution=stats.score_distribution,
        risk_distribution=stats.risk_distribution,
        framework_distribution=stats.framework_distribution,
        recent_runs=[DailyCount(date=day, count=count) for day, count in stats.daily_counts],
    )


def _history_item(record: RunSummaryRecord) -> RunHistoryItem:
    return RunHistoryItem(
        id=record.run_id,
        document_name=record.document_name,
        primary_framework=record.primary_framework,
        secondary_framework=record.secondary_framework,
        compliance_score=record.compliance_score,
        risk_level=record.risk_level,
        modification_count=record.modification_count,
        status=record.status,
        created_at=record.created_at.isoformat(),
    )


__all__ = [
    "build_orchestrator",
    "build_store",
    "collect_statistics",
    "get_orchestrator",
    "list_history",
]
