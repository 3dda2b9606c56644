"""External request schemas for analysis runs."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from legal.frameworks import FRAMEWORKS, validate_frameworks, validate_language
from utils.text import normalize_document


class AnalyzeRequest(BaseModel):
    """Submission of a document for review.

    Framework and language fields left as None fall back to the configured
    defaults when the run is created.
    """

    document_text: str = Field(min_length=1)
    document_name: str | None = None
    primary_framework: str | None = None
    secondary_framework: str | None = None
    target_language: str | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("document_text")
    @classmethod
    def _normalize_text(cls, value: str) -> str:
        text = normalize_document(value)
        if not text.strip():
            raise ValueError("document_text must not be blank")
        return text

    @field_validator("secondary_framework", "target_language", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("target_language")
    @classmethod
    def _check_language(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return validate_language(value)

    @model_validator(mode="after")
    def _check_frameworks(self) -> "AnalyzeRequest":
        if self.primary_framework is not None:
            self.primary_framework, self.secondary_framework = validate_frameworks(
                self.primary_framework, self.secondary_framework
            )
        elif self.secondary_framework is not None:
            code = self.secondary_framework.strip().lower()
            if code not in FRAMEWORKS:
                raise ValueError(f"Unknown secondary framework: {self.secondary_framework!r}")
            self.secondary_framework = code
        return self


class RetryRequest(BaseModel):
    # Unknown step names are reported as not found by the orchestrator.
    step: str = Field(min_length=1)

    model_config = ConfigDict(extra="forbid")


class DiffRequest(BaseModel):
    original: str = ""
    optimized: str = ""

    model_config = ConfigDict(extra="forbid")


__all__ = ["AnalyzeRequest", "DiffRequest", "RetryRequest"]
