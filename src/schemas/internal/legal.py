"""Structured results of the legal_analysis, optimization and translation steps."""

from __future__ import annotations

import re
from typing import Any, List, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from legal.scoring import (
    RiskLevel,
    clamp_score,
    fallback_score,
    is_compliant_flag,
    risk_level_for,
)

ModificationType = Literal["add", "modify", "delete"]

_RISK_ALIASES = {
    "low": "low",
    "低": "low",
    "低风险": "low",
    "medium": "medium",
    "moderate": "medium",
    "中": "medium",
    "中等": "medium",
    "中风险": "medium",
    "中等风险": "medium",
    "high": "high",
    "高": "high",
    "高风险": "high",
    "critical": "critical",
    "severe": "critical",
    "严重": "critical",
    "极高": "critical",
    "严重风险": "critical",
}
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")

# Validation context key set when the payload comes straight from the language model.
FROM_MODEL_RESPONSE = "from_model_response"


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _normalize_risk(value: Any) -> Optional[str]:
    if value is None:
        return None
    token = str(value).strip().lower().replace("_", " ")
    if token.endswith(" risk"):
        token = token[: -len(" risk")]
    return _RISK_ALIASES.get(token)


def _raw_score(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("compliance_score must be numeric")
    if isinstance(value, (int, float)):
        return float(value)
    match = _NUMBER_RE.search(str(value))
    if match is None:
        raise ValueError(f"compliance_score is not numeric: {value!r}")
    return float(match.group(0))


def _article_compliance(item: Any) -> Any:
    if isinstance(item, MatchedArticle):
        return item.compliance
    if isinstance(item, dict):
        return item.get("compliance")
    return False


class Suggestion(BaseModel):
    suggestion: str
    legal_basis: str = ""

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _from_plain_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"suggestion": value}
        return value

    @field_validator("legal_basis", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return _text(value)


class MatchedArticle(BaseModel):
    article: str = ""
    description: str = ""
    compliance: bool = False
    original_text: str = ""
    contract_reference: str = ""
    analysis: str = ""

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _from_plain_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"article": value}
        return value

    @field_validator("compliance", mode="before")
    @classmethod
    def _coerce_compliance(cls, value: Any) -> bool:
        return is_compliant_flag(value)

    @field_validator(
        "article",
        "description",
        "original_text",
        "contract_reference",
        "analysis",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return _text(value)


class LegalAnalysisResult(BaseModel):
    """Compliance assessment of a document against the selected frameworks."""

    compliance_score: int = 0
    risk_level: Optional[RiskLevel] = None
    risk_factors: List[str] = Field(default_factory=list)
    suggestions: List[Suggestion] = Field(default_factory=list)
    matched_articles: List[MatchedArticle] = Field(default_factory=list)
    analysis_summary: str = ""

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _score_from_articles(cls, data: Any, info: ValidationInfo) -> Any:
        """Replace a reported score of exactly 0 (or none) by the compliant share.

        Only model replies get this treatment. The decision looks at the raw
        value, so a negative score still clamps to 0.
        """

        if not isinstance(data, dict) or not (info.context or {}).get(FROM_MODEL_RESPONSE):
            return data
        articles = data.get("matched_articles") or []
        if not articles or _raw_score(data.get("compliance_score")) not in (None, 0):
            return data
        derived = fallback_score(_article_compliance(item) for item in articles)
        if derived is None:
            return data
        return {**data, "compliance_score": derived}

    @field_validator("compliance_score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> int:
        raw = _raw_score(value)
        return 0 if raw is None else clamp_score(raw)

    @field_validator("risk_level", mode="before")
    @classmethod
    def _normalize_risk_level(cls, value: Any) -> Optional[str]:
        return _normalize_risk(value)

    @field_validator("risk_factors", mode="before")
    @classmethod
    def _coerce_risk_factors(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        factors: List[str] = []
        for item in value:
            if isinstance(item, dict):
                item = item.get("factor") or item.get("description") or item.get("risk")
            text = _text(item).strip()
            if text:
                factors.append(text)
        return factors

    @field_validator("suggestions", "matched_articles", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("analysis_summary", mode="before")
    @classmethod
    def _summary_text(cls, value: Any) -> str:
        return _text(value)

    @model_validator(mode="after")
    def _derive_risk(self) -> "LegalAnalysisResult":
        if self.risk_level is None:
            self.risk_level = risk_level_for(self.compliance_score)
        return self


class ModificationRecord(BaseModel):
    """A suggested edit, with before/after text and its justification."""

    type: ModificationType = "modify"
    original_text: str = ""
    optimized_text: str = Field(
        default="",
        validation_alias=AliasChoices("optimized_text", "modified_text", "suggested_text"),
    )
    highlight_type: str = "modify"
    legal_basis: str = ""
    reason: str = ""
    position: Optional[str] = None
    highlight_start: Optional[int] = None
    highlight_end: Optional[int] = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _infer_type(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        data = dict(value)
        kind = _text(data.get("type")).strip().lower()
        if kind not in ("add", "modify", "delete"):
            hint = _text(data.get("highlight_type")).strip().lower()
            if hint in ("add", "modify", "delete"):
                kind = hint
            else:
                original = _text(data.get("original_text")).strip()
                replacement = _text(
                    data.get("optimized_text")
                    or data.get("modified_text")
                    or data.get("suggested_text")
                ).strip()
                if not original and replacement:
                    kind = "add"
                elif original and not replacement:
                    kind = "delete"
                else:
                    kind = "modify"
        data["type"] = kind
        return data

    @field_validator(
        "original_text", "optimized_text", "legal_basis", "reason", mode="before"
    )
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return _text(value)

    @field_validator("highlight_type", mode="before")
    @classmethod
    def _default_highlight(cls, value: Any) -> str:
        text = _text(value).strip().lower()
        return text or "modify"

    @field_validator("position", mode="before")
    @classmethod
    def _position_text(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("highlight_start", "highlight_end", mode="before")
    @classmethod
    def _offset(cls, value: Any) -> Optional[int]:
        if value is None or isinstance(value, bool):
            return None
        try:
            offset = int(value)
        except (TypeError, ValueError):
            return None
        return offset if offset >= 0 else None

    @model_validator(mode="after")
    def _drop_inverted_offsets(self) -> "ModificationRecord":
        if self.highlight_start is None or self.highlight_end is None:
            self.highlight_start = None
            self.highlight_end = None
        elif self.highlight_end < self.highlight_start:
            self.highlight_start = None
            self.highlight_end = None
        return self


class OptimizationResult(BaseModel):
    optimized_text: str = ""
    modifications: List[ModificationRecord] = Field(default_factory=list)
    summary: str = ""

    model_config = ConfigDict(extra="ignore")

    @field_validator("optimized_text", "summary", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return _text(value)

    @field_validator("modifications", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _require_content(self) -> "OptimizationResult":
        if not self.optimized_text.strip() and not self.modifications:
            raise ValueError("optimization result has neither optimized_text nor modifications")
        return self


class TranslatedModification(BaseModel):
    original_text: str = ""
    translated_text: str = ""
    legal_basis: str = ""
    reason: str = ""

    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return _text(value)


class TranslationResult(BaseModel):
    target_language: str = "en"
    translated_text: str
    translated_modifications: List[TranslatedModification] = Field(default_factory=list)
    translated_legal_basis: str = ""

    model_config = ConfigDict(extra="ignore")

    @field_validator("translated_text")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("translated_text must not be empty")
        return value

    @field_validator("translated_modifications", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("target_language", "translated_legal_basis", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return _text(value)


__all__ = [
    "FROM_MODEL_RESPONSE",
    "LegalAnalysisResult",
    "MatchedArticle",
    "ModificationRecord",
    "ModificationType",
    "OptimizationResult",
    "Suggestion",
    "TranslatedModification",
    "TranslationResult",
]
