"""Pipeline step identifiers and per-step state."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

StepName = Literal["legal_analysis", "optimization", "translation"]
StepStatus = Literal["pending", "running", "succeeded", "failed", "retrying"]
FailureReason = Literal["parse_error", "transport_error", "invalid_response"]

STEP_ORDER: Tuple[StepName, ...] = ("legal_analysis", "optimization", "translation")

STEP_DEPENDENCIES: Mapping[StepName, Tuple[StepName, ...]] = {
    "legal_analysis": (),
    "optimization": ("legal_analysis",),
    "translation": ("optimization",),
}

STEP_LABELS: Mapping[StepName, str] = {
    "legal_analysis": "法律合规分析",
    "optimization": "合同优化",
    "translation": "合同翻译",
}

_TRANSITIONS: Mapping[StepStatus, Tuple[StepStatus, ...]] = {
    "pending": ("running",),
    "running": ("succeeded", "failed"),
    "failed": ("retrying",),
    "retrying": ("succeeded", "failed"),
    "succeeded": (),
}

TERMINAL_STATUSES: Tuple[StepStatus, ...] = ("succeeded", "failed")


def is_transition_allowed(current: StepStatus, target: StepStatus) -> bool:
    return target in _TRANSITIONS.get(current, ())


class StepFailure(BaseModel):
    """Typed failure returned by the step executor instead of raising."""

    reason: FailureReason
    message: str

    model_config = ConfigDict(extra="forbid")


class StepState(BaseModel):
    """Status, result and error of one step within a run."""

    name: StepName
    status: StepStatus = "pending"
    result: Optional[Dict[str, Any]] = None
    error: Optional[StepFailure] = None
    attempts: int = 0
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    history: List[StepStatus] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


__all__ = [
    "FailureReason",
    "STEP_DEPENDENCIES",
    "STEP_LABELS",
    "STEP_ORDER",
    "StepFailure",
    "StepName",
    "StepState",
    "StepStatus",
    "TERMINAL_STATUSES",
    "is_transition_allowed",
]
