"""Progress events streamed to consumers while a run executes."""

from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from schemas.internal.runs import AnalysisRun, AnalysisSummary
from schemas.internal.steps import StepName


class ProgressUpdate(BaseModel):
    type: Literal["progress"] = "progress"
    progress: int = Field(ge=0, le=100)
    message: str
    run_id: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class StepResultEvent(BaseModel):
    type: Literal["step_result"] = "step_result"
    step: StepName
    result: Dict[str, Any]

    model_config = ConfigDict(extra="forbid")


class CompleteEvent(BaseModel):
    type: Literal["complete"] = "complete"
    result: AnalysisRun
    summary: Optional[AnalysisSummary] = None

    model_config = ConfigDict(extra="forbid")


ProgressEvent = Annotated[
    Union[ProgressUpdate, StepResultEvent, CompleteEvent],
    Field(discriminator="type"),
]

progress_event_adapter: TypeAdapter[ProgressEvent] = TypeAdapter(ProgressEvent)


__all__ = [
    "CompleteEvent",
    "ProgressEvent",
    "ProgressUpdate",
    "StepResultEvent",
    "progress_event_adapter",
]
