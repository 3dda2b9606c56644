"""Compliance score normalization and risk banding."""

from __future__ import annotations

import math
from typing import Any, Iterable, Literal

RiskLevel = Literal["low", "medium", "high", "critical"]
ScoreBand = Literal["excellent", "good", "fair", "poor"]

_TRUTHY = {"true", "yes", "y", "1", "是", "符合", "compliant"}


def clamp_score(value: float) -> int:
    """Round half up to an integer and clamp into [0, 100]."""
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return 100 if value > 0 else 0
    return max(0, min(100, int(math.floor(value + 0.5))))


def risk_level_for(score: int) -> RiskLevel:
    if score >= 90:
        return "low"
    if score >= 70:
        return "medium"
    if score >= 50:
        return "high"
    return "critical"


def score_band(score: float) -> ScoreBand:
    if score >= 90:
        return "excellent"
    if score >= 70:
        return "good"
    if score >= 50:
        return "fair"
    return "poor"


def is_compliant_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return False


def fallback_score(compliance_flags: Iterable[Any]) -> int | None:
    """Share of compliant matched articles, or None when there are none."""
    flags = [is_compliant_flag(flag) for flag in compliance_flags]
    if not flags:
        return None
    compliant = sum(1 for flag in flags if flag)
    return clamp_score(100 * compliant / len(flags))


__all__ = [
    "RiskLevel",
    "ScoreBand",
    "clamp_score",
    "fallback_score",
    "is_compliant_flag",
    "risk_level_for",
    "score_band",
]
