"""AnalysisRun: the state of one document moving through the pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from schemas.internal.legal import (
    LegalAnalysisResult,
    MatchedArticle,
    OptimizationResult,
    Suggestion,
    TranslationResult,
)
from schemas.internal.steps import (
    STEP_DEPENDENCIES,
    STEP_ORDER,
    StepName,
    StepState,
)


RunStatus = Literal["pending", "running", "completed", "partial"]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AnalysisSummary(BaseModel):
    """Flattened view of the succeeded step results of a run."""

    compliance_score: Optional[int] = None
    risk_level: Optional[str] = None
    risk_factors: List[str] = Field(default_factory=list)
    suggestions: List[Suggestion] = Field(default_factory=list)
    matched_articles: List[MatchedArticle] = Field(default_factory=list)
    analysis_summary: str = ""
    contract_optimization: Optional[OptimizationResult] = None
    translation: Optional[TranslationResult] = None
    analysis_status: Literal["completed", "partial"] = "partial"
    completed_steps: int = 0
    failed_steps: int = 0
    can_retry: List[StepName] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class AnalysisRun(BaseModel):
    """One end-to-end execution of the pipeline over a single document."""

    id: str
    document_text: str
    document_name: Optional[str] = None
    primary_framework: str
    secondary_framework: Optional[str] = None
    target_language: str = "en"
    steps: List[StepState]
    created_at: str = Field(default_factory=_now_iso)
    updated_at: str = Field(default_factory=_now_iso)

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def new(
        cls,
        *,
        document_text: str,
        primary_framework: str,
        secondary_framework: Optional[str] = None,
        target_language: str = "en",
        document_name: Optional[str] = None,
    ) -> "AnalysisRun":
        return cls(
            id=f"run_{uuid4().hex}",
            document_text=document_text,
            document_name=document_name,
            primary_framework=primary_framework,
            secondary_framework=secondary_framework,
            target_language=target_language,
            steps=[StepState(name=name) for name in STEP_ORDER],
        )

    @model_validator(mode="after")
    def _check_invariants(self) -> "AnalysisRun":
        if self.secondary_framework and self.secondary_framework == self.primary_framework:
            raise ValueError("secondary_framework must differ from primary_framework")
        names = tuple(step.name for step in self.steps)
        if names != STEP_ORDER:
            raise ValueError(f"steps must be ordered as {list(STEP_ORDER)}, got {list(names)}")
        return self

    def step(self, name: StepName) -> StepState:
        for state in self.steps:
            if state.name == name:
                return state
        raise KeyError(name)

    def dependencies_met(self, name: StepName) -> bool:
        return all(self.step(dep).status == "succeeded" for dep in STEP_DEPENDENCIES[name])

    def next_runnable_step(self) -> Optional[StepName]:
        for state in self.steps:
            if state.status == "pending" and self.dependencies_met(state.name):
                return state.name
        return None

    def result_of(self, name: StepName) -> Optional[Dict[str, Any]]:
        state = self.step(name)
        if state.status != "succeeded":
            return None
        return state.result

    def touch(self) -> None:
        self.updated_at = _now_iso()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def completed_steps(self) -> int:
        return sum(1 for state in self.steps if state.status == "succeeded")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed_steps(self) -> int:
        return sum(1 for state in self.steps if state.status == "failed")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def can_retry(self) -> List[StepName]:
        return [
            state.name
            for state in self.steps
            if state.status == "failed" and self.dependencies_met(state.name)
        ]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> RunStatus:
        if any(state.status in ("running", "retrying") for state in self.steps):
            return "running"
        if self.completed_steps == self.total_steps:
            return "completed"
        if self.failed_steps:
            return "partial"
        return "pending"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_terminal(self) -> bool:
        if any(state.status in ("running", "retrying") for state in self.steps):
            return False
        return self.next_runnable_step() is None

    def summary(self) -> AnalysisSummary:
        analysis = self.result_of("legal_analysis")
        optimization = self.result_of("optimization")
        translation = self.result_of("translation")

        payload: Dict[str, Any] = {
            "analysis_status": "completed"
            if self.completed_steps == self.total_steps
            else "partial",
            "completed_steps": self.completed_steps,
            "failed_steps": self.failed_steps,
            "can_retry": self.can_retry,
        }
        if analysis is not None:
            legal = LegalAnalysisResult.model_validate(analysis)
            payload.update(
                compliance_score=legal.compliance_score,
                risk_level=legal.risk_level,
                risk_factors=legal.risk_factors,
                suggestions=legal.suggestions,
                matched_articles=legal.matched_articles,
                analysis_summary=legal.analysis_summary,
            )
        if optimization is not None:
            payload["contract_optimization"] = OptimizationResult.model_validate(optimization)
        if translation is not None:
            payload["translation"] = TranslationResult.model_validate(translation)
        return AnalysisSummary(**payload)


__all__ = ["AnalysisRun", "AnalysisSummary", "RunStatus"]
