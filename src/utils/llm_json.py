"""Extract the JSON object embedded in a free-form LLM reply."""

from __future__ import annotations

import json
import re
from typing import Any, Iterator

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def extract_json_object(text: str | None, *, prefer_code_block: bool = True) -> dict[str, Any]:
    """Decode the first balanced ``{...}`` span of ``text``.

    Fenced ```json blocks are searched first when ``prefer_code_block`` is set,
    since models often wrap the payload in prose. Only the first balanced span
    is decoded; later spans are never tried. Raises ``ValueError`` when there is
    no balanced span or when it does not decode to an object.
    """

    source = (text or "").lstrip("\ufeff")
    regions: list[str] = []
    if prefer_code_block:
        regions.extend(match.group(1) for match in _FENCE_RE.finditer(source))
    regions.append(source)

    for region in regions:
        candidate = next(_balanced_spans(region), None)
        if candidate is None:
            continue
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Malformed JSON object in LLM response: {exc.msg}") from exc
        if not isinstance(parsed, dict):
            raise ValueError("Malformed JSON object in LLM response")
        return parsed
    raise ValueError("No JSON object found in LLM response")


def _balanced_spans(text: str) -> Iterator[str]:
    start = text.find("{")
    while start != -1:
        end = _closing_brace(text, start)
        if end is not None:
            yield text[start : end + 1]
        start = text.find("{", start + 1)


def _closing_brace(text: str, start: int) -> int | None:
    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        char = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return idx
    return None


__all__ = ["extract_json_object"]
