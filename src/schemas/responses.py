"""External response schemas for analysis runs."""

from __future__ import annotations

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field

from schemas.internal.legal import ModificationRecord
from schemas.internal.steps import StepFailure


class RetryResponse(BaseModel):
    success: bool
    result: Dict[str, Any] | None = None
    error: StepFailure | None = None

    model_config = ConfigDict(extra="forbid")


class RunHistoryItem(BaseModel):
    id: str
    document_name: str | None = None
    primary_framework: str
    secondary_framework: str | None = None
    compliance_score: int | None = None
    risk_level: str | None = None
    modification_count: int = 0
    status: str
    created_at: str

    model_config = ConfigDict(extra="forbid")


class HistoryResponse(BaseModel):
    items: List[RunHistoryItem] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class DailyCount(BaseModel):
    date: str
    count: int


class StatisticsResponse(BaseModel):
    total: int = 0
    avg_score: float = 0.0
    score_distribution: Dict[str, int] = Field(default_factory=dict)
    risk_distribution: Dict[str, int] = Field(default_factory=dict)
    framework_distribution: Dict[str, int] = Field(default_factory=dict)
    recent_runs: List[DailyCount] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class ComparisonResponse(BaseModel):
    mode: Literal["modifications", "diff"]
    before_html: str
    after_html: str
    modifications: List[ModificationRecord] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class DiffResponse(BaseModel):
    before_html: str
    after_html: str
    html: str

    model_config = ConfigDict(extra="forbid")


class FrameworkCatalog(BaseModel):
    frameworks: Dict[str, str]
    languages: Dict[str, str]

    model_config = ConfigDict(extra="forbid")


__all__ = [
    "ComparisonResponse",
    "DailyCount",
    "DiffResponse",
    "FrameworkCatalog",
    "HistoryResponse",
    "RetryResponse",
    "RunHistoryItem",
    "StatisticsResponse",
]
