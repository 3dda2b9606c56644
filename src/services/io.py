"""Service-layer helpers for input/output handling."""

from __future__ import annotations

from pathlib import Path

from utils.text import normalize_document

# Binary formats need the external text-extraction collaborator.
TEXT_SUFFIXES = {".txt", ".md", ".text"}
_ENCODINGS = ("utf-8-sig", "gb18030")


def decode_document(data: bytes) -> str:
    """Decode uploaded plain-text bytes, trying UTF-8 before GB18030."""
    last_error: UnicodeDecodeError | None = None
    for encoding in _ENCODINGS:
        try:
            return normalize_document(data.decode(encoding))
        except UnicodeDecodeError as exc:
            last_error = exc
    assert last_error is not None
    raise last_error


def read_document(path: str | Path) -> str:
    """Read a plain-text document from disk."""
    path = Path(path)
    if path.suffix.lower() not in TEXT_SUFFIXES:
        raise ValueError(
            f"Unsupported document type {path.suffix or '<none>'}; extract plain text first."
        )
    return decode_document(path.read_bytes())


__all__ = ["TEXT_SUFFIXES", "decode_document", "read_document"]
