"""Highlighting, diffing and clause insertion over document text."""

from .comparison import Comparison, build_comparison, comparison_for_run, resolve_modification
from .diff import diff_lines, diff_words, highlight_differences, render_diff
from .highlight import highlight, locate_spans, strip_markers
from .insertion import (
    DEFAULT_ANCHORS,
    InsertionAnchor,
    LineIndex,
    apply_modifications,
    resolve_insertion_point,
)

__all__ = [
    "Comparison",
    "DEFAULT_ANCHORS",
    "InsertionAnchor",
    "LineIndex",
    "apply_modifications",
    "build_comparison",
    "comparison_for_run",
    "diff_lines",
    "diff_words",
    "highlight",
    "highlight_differences",
    "locate_spans",
    "render_diff",
    "resolve_insertion_point",
    "resolve_modification",
    "strip_markers",
]
