"""Newline-delimited JSON encoding of progress events."""

from __future__ import annotations

import codecs
import json
from typing import Iterable, Iterator

from schemas.internal.events import ProgressEvent, progress_event_adapter

NDJSON_MEDIA_TYPE = "application/x-ndjson"


def progress_percent(completed_steps: int, total_steps: int) -> int:
    """floor(100 * completed / total); an empty pipeline counts as done."""
    if total_steps <= 0:
        return 100
    completed = max(0, min(completed_steps, total_steps))
    return (100 * completed) // total_steps


def encode_event(event: ProgressEvent) -> str:
    return event.model_dump_json() + "\n"


def iter_ndjson(events: Iterable[ProgressEvent]) -> Iterator[str]:
    for event in events:
        yield encode_event(event)


def decode_event(line: str | bytes) -> ProgressEvent:
    return progress_event_adapter.validate_json(line)


def iter_events(chunks: Iterable[str | bytes]) -> Iterator[ProgressEvent]:
    """Decode events from arbitrarily split chunks of an NDJSON stream.

    A trailing partial line (stream cut before its newline) is parsed only if it
    holds a complete JSON document.
    """

    decoder = codecs.getincrementaldecoder("utf-8")()
    buffer = ""
    for chunk in chunks:
        # Byte chunks may end inside a multi-byte character.
        buffer += decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        while "\n" in buffer:
            line, buffer = buffer.split("\n", 1)
            if line.strip():
                yield decode_event(line)
    if buffer.strip():
        try:
            json.loads(buffer)
        except json.JSONDecodeError:
            return
        yield decode_event(buffer)


__all__ = [
    "NDJSON_MEDIA_TYPE",
    "decode_event",
    "encode_event",
    "iter_events",
    "iter_ndjson",
    "progress_percent",
]
