"""SQLite-backed run store."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path

from persistence.hashing import sha256_text
from persistence.models import RunSummaryRecord, StatisticsRecord
from schemas.internal.runs import AnalysisRun


_SCHEMA = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS runs (
    run_id TEXT PRIMARY KEY,
    document_name TEXT,
    document_sha256 TEXT NOT NULL,
    primary_framework TEXT NOT NULL,
    secondary_framework TEXT,
    target_language TEXT,
    status TEXT NOT NULL,
    compliance_score INTEGER,
    risk_level TEXT,
    modification_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    run_json TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_runs_created_at ON runs(created_at);
CREATE INDEX IF NOT EXISTS idx_runs_document_sha256 ON runs(document_sha256);
"""

_SUMMARY_COLUMNS = """
    run_id, document_name, document_sha256, primary_framework, secondary_framework,
    target_language, status, compliance_score, risk_level, modification_count,
    created_at, updated_at
"""


class SqliteStore:
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize(self) -> None:
        with self._connect() as conn:
            conn.executescript(_SCHEMA)
            conn.commit()

    def get_run(self, run_id: str) -> AnalysisRun | None:
        row = self._fetch_one("SELECT run_json FROM runs WHERE run_id = ?", (run_id,))
        if row is None:
            return None
        return AnalysisRun.model_validate_json(row["run_json"])

    def save_run(self, run: AnalysisRun) -> None:
        summary = run.summary()
        optimization = summary.contract_optimization
        modification_count = len(optimization.modifications) if optimization else 0
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO runs (
                    run_id, document_name, document_sha256, primary_framework,
                    secondary_framework, target_language, status, compliance_score,
                    risk_level, modification_count, created_at, updated_at, run_json
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(run_id) DO UPDATE SET
                    status = excluded.status,
                    compliance_score = excluded.compliance_score,
                    risk_level = excluded.risk_level,
                    modification_count = excluded.modification_count,
                    updated_at = excluded.updated_at,
                    run_json = excluded.run_json
                """,
                (
                    run.id,
                    run.document_name,
                    sha256_text(run.document_text),
                    run.primary_framework,
                    run.secondary_framework,
                    run.target_language,
                    run.status,
                    summary.compliance_score,
                    summary.risk_level,
                    modification_count,
                    run.created_at,
                    run.updated_at,
                    run.model_dump_json(),
                ),
            )
            conn.commit()

    def delete_run(self, run_id: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM runs WHERE run_id = ?", (run_id,))
            conn.commit()
            return cur.rowcount > 0

    def list_runs(self, *, limit: int = 20) -> list[RunSummaryRecord]:
        rows = self._fetch_all(
            f"SELECT {_SUMMARY_COLUMNS} FROM runs ORDER BY created_at DESC LIMIT ?",
            (limit,),
        )
        return [_row_to_summary(row) for row in rows]

    def find_runs_by_document(self, sha256: str) -> list[RunSummaryRecord]:
        rows = self._fetch_all(
            f"SELECT {_SUMMARY_COLUMNS} FROM runs WHERE document_sha256 = ? ORDER BY created_at DESC",
            (sha256,),
        )
        return [_row_to_summary(row) for row in rows]

    def statistics(
        self, *, window_days: int = 7, now: datetime | None = None
    ) -> StatisticsRecord:
        now = now or datetime.now(timezone.utc)
        cutoff = (now - timedelta(days=window_days)).isoformat()

        total_row = self._fetch_one("SELECT COUNT(*) AS total FROM runs")
        avg_row = self._fetch_one(
            "SELECT AVG(compliance_score) AS avg_score FROM runs WHERE compliance_score IS NOT NULL"
        )
        bands = self._fetch_all(
            """
            SELECT CASE
                       WHEN compliance_score >= 90 THEN 'excellent'
                       WHEN compliance_score >= 70 THEN 'good'
                       WHEN compliance_score >= 50 THEN 'fair'
                       ELSE 'poor'
                   END AS band,
                   COUNT(*) AS count
              FROM runs
             WHERE compliance_score IS NOT NULL
             GROUP BY band
            """
        )
        risks = self._fetch_all(
            """
            SELECT risk_level, COUNT(*) AS count
              FROM runs
             WHERE risk_level IS NOT NULL
             GROUP BY risk_level
            """
        )
        frameworks = self._fetch_all(
            "SELECT primary_framework, COUNT(*) AS count FROM runs GROUP BY primary_framework"
        )
        daily = self._fetch_all(
            """
            SELECT substr(created_at, 1, 10) AS day, COUNT(*) AS count
              FROM runs
             WHERE created_at >= ?
             GROUP BY day
             ORDER BY day
            """,
            (cutoff,),
        )

        avg_score = avg_row["avg_score"] if avg_row and avg_row["avg_score"] is not None else 0.0
        return StatisticsRecord(
            total=int(total_row["total"]) if total_row else 0,
            avg_score=round(float(avg_score), 2),
            score_distribution={row["band"]: int(row["count"]) for row in bands},
            risk_distribution={row["risk_level"]: int(row["count"]) for row in risks},
            framework_distribution={
                row["primary_framework"]: int(row["count"]) for row in frameworks
            },
            daily_counts=[(row["day"], int(row["count"])) for row in daily],
        )

    def _fetch_one(self, query: str, params: tuple[object, ...] = ()) -> sqlite3.Row | None:
        with self._connect() as conn:
            cur = conn.execute(query, params)
            return cur.fetchone()

    def _fetch_all(self, query: str, params: tuple[object, ...] = ()) -> list[sqlite3.Row]:
        with self._connect() as conn:
            cur = conn.execute(query, params)
            return cur.fetchall()


def _from_iso(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _row_to_summary(row: sqlite3.Row) -> RunSummaryRecord:
    return RunSummaryRecord(
        run_id=row["run_id"],
        document_name=row["document_name"],
        document_sha256=row["document_sha256"],
        primary_framework=row["primary_framework"],
        secondary_framework=row["secondary_framework"],
        target_language=row["target_language"],
        status=row["status"],
        compliance_score=row["compliance_score"],
        risk_level=row["risk_level"],
        modification_count=int(row["modification_count"] or 0),
        created_at=_from_iso(row["created_at"]),
        updated_at=_from_iso(row["updated_at"]),
    )


__all__ = ["SqliteStore"]
