"""Greedy line-then-word diff for texts without explicit modification spans."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal

from markupsafe import Markup, escape

TokenKind = Literal["equal", "removed", "added"]

_WHITESPACE_SPLIT = re.compile(r"(\s+)")
_CLASSES: dict[str, str] = {"removed": "highlight-danger", "added": "highlight-success"}


@dataclass(frozen=True)
class DiffToken:
    kind: TokenKind
    text: str


@dataclass(frozen=True)
class LineDiff:
    changed: bool
    tokens: list[DiffToken] = field(default_factory=list)


def split_words(line: str) -> list[str]:
    """Split on whitespace runs, keeping the whitespace as tokens."""
    return [token for token in _WHITESPACE_SPLIT.split(line) if token]


def diff_words(line_a: str, line_b: str) -> list[DiffToken]:
    """Walk both token lists with independent cursors.

    Equal tokens are emitted once; on a mismatch the token under each cursor that
    still has input is emitted as removed/added and that cursor advances. There
    is no realignment after insertions, so the output is not a minimal edit.
    """

    tokens_a, tokens_b = split_words(line_a), split_words(line_b)
    i = j = 0
    result: list[DiffToken] = []
    while i < len(tokens_a) or j < len(tokens_b):
        if i < len(tokens_a) and j < len(tokens_b) and tokens_a[i] == tokens_b[j]:
            _push(result, "equal", tokens_a[i])
            i += 1
            j += 1
            continue
        if i < len(tokens_a):
            _push(result, "removed", tokens_a[i])
            i += 1
        if j < len(tokens_b):
            _push(result, "added", tokens_b[j])
            j += 1
    return result


def diff_lines(text_a: str, text_b: str) -> list[LineDiff]:
    lines_a = text_a.split("\n") if text_a else []
    lines_b = text_b.split("\n") if text_b else []
    result: list[LineDiff] = []
    for idx in range(max(len(lines_a), len(lines_b))):
        line_a = lines_a[idx] if idx < len(lines_a) else ""
        line_b = lines_b[idx] if idx < len(lines_b) else ""
        if line_a == line_b:
            result.append(LineDiff(changed=False, tokens=[DiffToken("equal", line_a)]))
        else:
            result.append(LineDiff(changed=True, tokens=diff_words(line_a, line_b)))
    return result


def render_diff(text_a: str, text_b: str) -> Markup:
    """Inline rendering with removed and added spans interleaved."""
    return _render(diff_lines(text_a, text_b), keep=("equal", "removed", "added"))


def highlight_differences(text_a: str, text_b: str) -> tuple[Markup, Markup]:
    """Side-by-side rendering: removed spans on the left, added spans on the right."""
    lines = diff_lines(text_a, text_b)
    return (
        _render(lines, keep=("equal", "removed")),
        _render(lines, keep=("equal", "added")),
    )


def _push(tokens: list[DiffToken], kind: TokenKind, text: str) -> None:
    if tokens and tokens[-1].kind == kind:
        tokens[-1] = DiffToken(kind, tokens[-1].text + text)
    else:
        tokens.append(DiffToken(kind, text))


def _render(lines: list[LineDiff], *, keep: tuple[TokenKind, ...]) -> Markup:
    rendered: list[Markup] = []
    for line in lines:
        parts: list[Markup] = []
        for token in line.tokens:
            if token.kind not in keep:
                continue
            if token.kind == "equal":
                parts.append(escape(token.text))
            else:
                parts.append(
                    Markup('<span class="{cls}">{text}</span>').format(
                        cls=_CLASSES[token.kind], text=token.text
                    )
                )
        rendered.append(Markup("").join(parts))
    return Markup("\n").join(rendered)


__all__ = [
    "DiffToken",
    "LineDiff",
    "diff_lines",
    "diff_words",
    "highlight_differences",
    "render_diff",
    "split_words",
]
