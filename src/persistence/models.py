"""Lightweight persistence records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class RunSummaryRecord:
    run_id: str
    document_name: str | None
    document_sha256: str
    primary_framework: str
    secondary_framework: str | None
    target_language: str | None
    status: str
    compliance_score: int | None
    risk_level: str | None
    modification_count: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class StatisticsRecord:
    total: int
    avg_score: float
    score_distribution: dict[str, int] = field(default_factory=dict)
    risk_distribution: dict[str, int] = field(default_factory=dict)
    framework_distribution: dict[str, int] = field(default_factory=dict)
    daily_counts: list[tuple[str, int]] = field(default_factory=list)


__all__ = ["RunSummaryRecord", "StatisticsRecord"]
