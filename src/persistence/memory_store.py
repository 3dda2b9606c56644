"""In-process run store used when persistence is disabled."""

from __future__ import annotations

import threading
from collections import Counter
from datetime import datetime, timedelta, timezone

from legal.scoring import score_band
from persistence.hashing import sha256_text
from persistence.models import RunSummaryRecord, StatisticsRecord
from schemas.internal.runs import AnalysisRun


class MemoryStore:
    def __init__(self) -> None:
        self._runs: dict[str, str] = {}
        self._lock = threading.Lock()

    def get_run(self, run_id: str) -> AnalysisRun | None:
        with self._lock:
            payload = self._runs.get(run_id)
        if payload is None:
            return None
        return AnalysisRun.model_validate_json(payload)

    def save_run(self, run: AnalysisRun) -> None:
        payload = run.model_dump_json()
        with self._lock:
            self._runs[run.id] = payload

    def delete_run(self, run_id: str) -> bool:
        with self._lock:
            return self._runs.pop(run_id, None) is not None

    def list_runs(self, *, limit: int = 20) -> list[RunSummaryRecord]:
        records = sorted(self._summaries(), key=lambda item: item.created_at, reverse=True)
        return records[:limit]

    def find_runs_by_document(self, sha256: str) -> list[RunSummaryRecord]:
        return [item for item in self.list_runs(limit=len(self._runs)) if item.document_sha256 == sha256]

    def statistics(
        self, *, window_days: int = 7, now: datetime | None = None
    ) -> StatisticsRecord:
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=window_days)
        records = self._summaries()
        scores = [item.compliance_score for item in records if item.compliance_score is not None]
        daily = Counter(
            item.created_at.date().isoformat() for item in records if item.created_at >= cutoff
        )
        return StatisticsRecord(
            total=len(records),
            avg_score=round(sum(scores) / len(scores), 2) if scores else 0.0,
            score_distribution=dict(Counter(score_band(score) for score in scores)),
            risk_distribution=dict(
                Counter(item.risk_level for item in records if item.risk_level is not None)
            ),
            framework_distribution=dict(Counter(item.primary_framework for item in records)),
            daily_counts=sorted(daily.items()),
        )

    def _summaries(self) -> list[RunSummaryRecord]:
        with self._lock:
            payloads = list(self._runs.values())
        return [_summarize(AnalysisRun.model_validate_json(payload)) for payload in payloads]


def _summarize(run: AnalysisRun) -> RunSummaryRecord:
    summary = run.summary()
    optimization = summary.contract_optimization
    return RunSummaryRecord(
        run_id=run.id,
        document_name=run.document_name,
        document_sha256=sha256_text(run.document_text),
        primary_framework=run.primary_framework,
        secondary_framework=run.secondary_framework,
        target_language=run.target_language,
        status=run.status,
        compliance_score=summary.compliance_score,
        risk_level=summary.risk_level,
        modification_count=len(optimization.modifications) if optimization else 0,
        created_at=datetime.fromisoformat(run.created_at),
        updated_at=datetime.fromisoformat(run.updated_at),
    )


__all__ = ["MemoryStore"]
