"""Template context for run reports."""

from __future__ import annotations

from typing import Any

from pipelines.errors import NotFoundError
from rendering.comparison import Comparison, comparison_for_run
from reporting.utils import describe_frameworks, language_name
from schemas.internal.runs import AnalysisRun


def build_report_context(run: AnalysisRun) -> dict[str, Any]:
    summary = run.summary()
    comparison: Comparison | None
    try:
        comparison = comparison_for_run(run)
    except NotFoundError:
        comparison = None
    return {
        "run": run,
        "summary": summary,
        "comparison": comparison,
        "frameworks": describe_frameworks(run.primary_framework, run.secondary_framework),
        "target_language": language_name(run.target_language),
        "title": run.document_name or run.id,
    }


__all__ = ["build_report_context"]
