"""Persistence protocol contracts."""

from __future__ import annotations

from typing import Protocol

from persistence.models import RunSummaryRecord, StatisticsRecord
from schemas.internal.runs import AnalysisRun


class RunStore(Protocol):
    """Key-value storage of runs by id; single-record reads and writes only."""

    def get_run(self, run_id: str) -> AnalysisRun | None: ...

    def save_run(self, run: AnalysisRun) -> None: ...

    def delete_run(self, run_id: str) -> bool: ...

    def list_runs(self, *, limit: int = 20) -> list[RunSummaryRecord]: ...

    def find_runs_by_document(self, sha256: str) -> list[RunSummaryRecord]: ...

    def statistics(self, *, window_days: int = 7) -> StatisticsRecord: ...


__all__ = ["RunStore"]
