"""Side-by-side comparison of original and optimized text."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

from markupsafe import Markup

from pipelines.errors import NotFoundError
from rendering.diff import highlight_differences
from rendering.highlight import highlight
from rendering.insertion import apply_modifications
from schemas.internal.legal import ModificationRecord, OptimizationResult
from schemas.internal.runs import AnalysisRun


@dataclass(frozen=True)
class Comparison:
    mode: Literal["modifications", "diff"]
    original_text: str
    optimized_text: str
    before_html: Markup
    after_html: Markup
    modifications: tuple[ModificationRecord, ...] = ()


def build_comparison(
    original: str,
    optimized: str,
    modifications: Sequence[ModificationRecord] = (),
) -> Comparison:
    """Highlight modification spans when records exist, otherwise fall back to a diff."""

    records = tuple(modifications)
    if records:
        if not optimized.strip():
            optimized = apply_modifications(original, records)
        return Comparison(
            mode="modifications",
            original_text=original,
            optimized_text=optimized,
            before_html=highlight(original, records, side="before"),
            after_html=highlight(optimized, records, side="after"),
            modifications=records,
        )

    before_html, after_html = highlight_differences(original, optimized)
    return Comparison(
        mode="diff",
        original_text=original,
        optimized_text=optimized,
        before_html=before_html,
        after_html=after_html,
    )


def comparison_for_run(run: AnalysisRun) -> Comparison:
    payload = run.result_of("optimization")
    if payload is None:
        raise NotFoundError(f"Run {run.id} has no optimization result to compare.")
    optimization = OptimizationResult.model_validate(payload)
    return build_comparison(
        run.document_text, optimization.optimized_text, optimization.modifications
    )


def resolve_modification(comparison: Comparison, index: int) -> ModificationRecord:
    """Record behind a marker's ``data-modification`` index."""
    if index < 0 or index >= len(comparison.modifications):
        raise NotFoundError(f"No modification with index {index}.")
    return comparison.modifications[index]


__all__ = [
    "Comparison",
    "build_comparison",
    "comparison_for_run",
    "resolve_modification",
]
