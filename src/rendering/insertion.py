"""Insertion-point resolution for clauses added by the optimization step."""

from __future__ import annotations

import logging
import re
from bisect import bisect_right
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from schemas.internal.legal import ModificationRecord

logger = logging.getLogger(__name__)

Placement = Literal["after_line", "before_line", "before_last_line"]

_ARTICLE_RE = re.compile(r"第[一二三四五六七八九十百千零〇\d]+条")


@dataclass(frozen=True)
class InsertionAnchor:
    marker: str
    placement: Placement


DEFAULT_ANCHORS: tuple[InsertionAnchor, ...] = (
    InsertionAnchor("第六条", "after_line"),
    InsertionAnchor("第七条", "before_line"),
    InsertionAnchor("日期：", "before_last_line"),
)


class LineIndex:
    """Start offsets of every line in a text blob."""

    def __init__(self, text: str) -> None:
        self.text = text
        self._starts = [0] + [idx + 1 for idx, char in enumerate(text) if char == "\n"]

    def __len__(self) -> int:
        return len(self._starts)

    def line_start(self, line: int) -> int:
        return self._starts[line]

    def line_end(self, line: int) -> int:
        """Offset just past the line, including its newline when present."""
        if line + 1 < len(self._starts):
            return self._starts[line + 1]
        return len(self.text)

    def line_at(self, offset: int) -> int:
        return bisect_right(self._starts, offset) - 1

    def find_line(self, marker: str, *, last: bool = False) -> Optional[int]:
        offset = self.text.rfind(marker) if last else self.text.find(marker)
        if offset == -1:
            return None
        return self.line_at(offset)


def resolve_insertion_point(
    text: str, anchors: Sequence[InsertionAnchor] = DEFAULT_ANCHORS
) -> int:
    """Offset at which a new clause should be inserted.

    The first anchor whose marker occurs in ``text`` wins; without a match the
    clause goes to the end of the text.
    """

    index = LineIndex(text)
    for anchor in anchors:
        line = index.find_line(anchor.marker, last=anchor.placement == "before_last_line")
        if line is None:
            continue
        if anchor.placement == "after_line":
            return index.line_end(line)
        return index.line_start(line)
    return len(text)


def insert_clause(text: str, offset: int, clause: str) -> str:
    """Insert ``clause`` at ``offset`` so that it occupies its own line(s)."""

    before, after = text[:offset], text[offset:]
    piece = clause.strip("\n")
    if before and not before.endswith("\n"):
        piece = "\n" + piece
    if after and not after.startswith("\n"):
        piece = piece + "\n"
    return before + piece + after


def anchors_for(record: ModificationRecord) -> tuple[InsertionAnchor, ...]:
    """Anchors for an ``add`` record, preferring the article named in its position hint."""

    if record.position:
        match = _ARTICLE_RE.search(record.position)
        if match:
            placement: Placement = "before_line" if "前" in record.position else "after_line"
            return (InsertionAnchor(match.group(0), placement),) + DEFAULT_ANCHORS
    return DEFAULT_ANCHORS


def apply_modifications(
    text: str, modifications: Sequence[ModificationRecord]
) -> str:
    """Synthesize an optimized text by applying the records to ``text``.

    Records are applied from the last to the first. Records whose original
    snippet cannot be found are skipped.
    """

    result = text
    for record in reversed(modifications):
        if record.type == "add":
            clause = record.optimized_text
            if not clause.strip():
                continue
            offset = resolve_insertion_point(result, anchors_for(record))
            result = insert_clause(result, offset, clause)
            continue

        snippet = record.original_text
        if not snippet.strip():
            continue
        offset = result.find(snippet)
        if offset == -1:
            logger.debug("Skipping %s record; snippet not found: %r", record.type, snippet[:40])
            continue
        replacement = "" if record.type == "delete" else record.optimized_text
        result = result[:offset] + replacement + result[offset + len(snippet) :]
    return result


__all__ = [
    "DEFAULT_ANCHORS",
    "InsertionAnchor",
    "LineIndex",
    "Placement",
    "anchors_for",
    "apply_modifications",
    "insert_clause",
    "resolve_insertion_point",
]
