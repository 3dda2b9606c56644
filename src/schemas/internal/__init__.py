"""Internal schema definitions."""

from .events import (  # noqa: F401
    CompleteEvent,
    ProgressEvent,
    ProgressUpdate,
    StepResultEvent,
)
from .legal import (  # noqa: F401
    LegalAnalysisResult,
    MatchedArticle,
    ModificationRecord,
    OptimizationResult,
    Suggestion,
    TranslatedModification,
    TranslationResult,
)
from .runs import AnalysisRun, AnalysisSummary  # noqa: F401
from .steps import (  # noqa: F401
    STEP_DEPENDENCIES,
    STEP_ORDER,
    StepFailure,
    StepName,
    StepState,
    StepStatus,
)

__all__ = [
    "AnalysisRun",
    "AnalysisSummary",
    "CompleteEvent",
    "LegalAnalysisResult",
    "MatchedArticle",
    "ModificationRecord",
    "OptimizationResult",
    "ProgressEvent",
    "ProgressUpdate",
    "STEP_DEPENDENCIES",
    "STEP_ORDER",
    "StepFailure",
    "StepName",
    "StepResultEvent",
    "StepState",
    "StepStatus",
    "Suggestion",
    "TranslatedModification",
    "TranslationResult",
]
