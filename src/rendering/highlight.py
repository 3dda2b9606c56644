"""Overlay modification records onto document text as clickable markers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from markupsafe import Markup, escape

from schemas.internal.legal import ModificationRecord

Side = Literal["before", "after"]

MARKER_CLASS = "highlight-marker"
DOCUMENT_CLASS = "highlight-document"
_DOCUMENT_OPEN = f'<span class="{DOCUMENT_CLASS}">'
_DOCUMENT_CLOSE = "</span>"
_MARKER_RE = re.compile(
    r'<span class="highlight-marker\b[^"]*"[^>]*>(.*?)</span>', re.DOTALL
)


@dataclass(frozen=True)
class MarkerSpan:
    index: int
    start: int
    end: int
    highlight_type: str


def is_rendered(text: str) -> bool:
    """Whether ``text`` is output of :func:`highlight`, possibly passed through ``str()``."""
    if isinstance(text, Markup):
        return True
    return text.startswith(_DOCUMENT_OPEN) or _MARKER_RE.search(text) is not None


def strip_markers(text: str) -> str:
    """Return the plain text behind a previously highlighted rendering.

    Rendered output is HTML-escaped, so it is unescaped after the document
    wrapper and the markers are removed. Plain text is returned unchanged.
    """

    if not is_rendered(text):
        return text
    body = str(text)
    if body.startswith(_DOCUMENT_OPEN) and body.endswith(_DOCUMENT_CLOSE):
        body = body[len(_DOCUMENT_OPEN) : -len(_DOCUMENT_CLOSE)]
    stripped = _MARKER_RE.sub(lambda match: match.group(1), body)
    return Markup(stripped).unescape()


def snippet_for(record: ModificationRecord, side: Side) -> str:
    return record.original_text if side == "before" else record.optimized_text


def locate_spans(
    text: str, modifications: Sequence[ModificationRecord], *, side: Side = "after"
) -> list[MarkerSpan]:
    """Find the span of each modification's snippet in plain ``text``.

    Modifications are processed from the latest position to the earliest, longer
    snippets first on ties. A snippet overlapping an already placed span moves to
    the first occurrence that does not overlap, or is skipped.
    """

    candidates: list[tuple[int, int, int]] = []
    for index, record in enumerate(modifications):
        snippet = snippet_for(record, side)
        if not snippet.strip():
            continue
        start = _explicit_start(text, record, snippet) if side == "after" else None
        if start is None:
            start = text.find(snippet)
        if start == -1:
            continue
        candidates.append((start, len(snippet), index))

    candidates.sort(key=lambda item: (item[0] + item[1], item[1]), reverse=True)

    placed: list[MarkerSpan] = []
    for start, length, index in candidates:
        if _overlaps(start, start + length, placed):
            start = _free_occurrence(text, snippet_for(modifications[index], side), placed)
            if start is None:
                continue
        placed.append(
            MarkerSpan(
                index=index,
                start=start,
                end=start + length,
                highlight_type=modifications[index].highlight_type,
            )
        )
    return sorted(placed, key=lambda span: span.start)


def highlight(
    text: str, modifications: Sequence[ModificationRecord], *, side: Side = "after"
) -> Markup:
    """Escape ``text`` and wrap each located snippet in an addressable marker.

    The marker's ``data-modification`` attribute is the record's index in
    ``modifications``. Unmatched snippets are left unmarked. The result is
    wrapped in a ``highlight-document`` span so that a later call recognises it
    as rendered even when no snippet matched.
    """

    plain = strip_markers(text)
    spans = locate_spans(plain, modifications, side=side)
    parts: list[str] = [Markup(_DOCUMENT_OPEN)]
    cursor = 0
    for span in spans:
        parts.append(escape(plain[cursor : span.start]))
        parts.append(_marker(plain[span.start : span.end], span))
        cursor = span.end
    parts.append(escape(plain[cursor:]))
    parts.append(Markup(_DOCUMENT_CLOSE))
    return Markup("").join(parts)


def _marker(content: str, span: MarkerSpan) -> Markup:
    return Markup(
        '<span class="{cls} highlight-{kind}" data-modification="{index}" '
        'data-highlight-type="{kind}">{content}</span>'
    ).format(
        cls=MARKER_CLASS,
        kind=span.highlight_type,
        index=span.index,
        content=content,
    )


def _explicit_start(
    text: str, record: ModificationRecord, snippet: str
) -> Optional[int]:
    start, end = record.highlight_start, record.highlight_end
    if start is None or end is None or end > len(text):
        return None
    if text[start:end] != snippet:
        return None
    return start


def _overlaps(start: int, end: int, placed: Sequence[MarkerSpan]) -> bool:
    return any(start < span.end and span.start < end for span in placed)


def _free_occurrence(
    text: str, snippet: str, placed: Sequence[MarkerSpan]
) -> Optional[int]:
    offset = text.find(snippet)
    while offset != -1:
        if not _overlaps(offset, offset + len(snippet), placed):
            return offset
        offset = text.find(snippet, offset + 1)
    return None


__all__ = [
    "DOCUMENT_CLASS",
    "MARKER_CLASS",
    "MarkerSpan",
    "Side",
    "highlight",
    "is_rendered",
    "locate_spans",
    "snippet_for",
    "strip_markers",
]
