"""Text normalization helpers."""

from __future__ import annotations


def normalize_document(text: str) -> str:
    """Unify line endings and drop trailing whitespace, keeping line structure."""

    cleaned = text.replace("\r\n", "\n").replace("\r", "\n").replace("\x0c", "\n")
    cleaned = "\n".join(line.rstrip() for line in cleaned.split("\n"))
    return cleaned.strip("\n")


def preview(text: str, limit: int = 80) -> str:
    """Single-line preview for logs and history listings."""

    flat = " ".join(text.split())
    if len(flat) <= limit:
        return flat
    return flat[: max(limit - 1, 0)] + "…"


__all__ = ["normalize_document", "preview"]
