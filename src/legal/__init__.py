"""Legal framework catalogue and compliance scoring rules."""

from .frameworks import (
    FRAMEWORKS,
    LANGUAGES,
    framework_name,
    language_name,
    validate_frameworks,
    validate_language,
)
from .scoring import clamp_score, fallback_score, risk_level_for, score_band

__all__ = [
    "FRAMEWORKS",
    "LANGUAGES",
    "clamp_score",
    "fallback_score",
    "framework_name",
    "language_name",
    "risk_level_for",
    "score_band",
    "validate_frameworks",
    "validate_language",
]
