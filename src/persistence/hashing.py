"""Hashing helpers for document fingerprints."""

from __future__ import annotations

import hashlib


def sha256_bytes(data: bytes) -> str:
    """Return hex sha256 of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def sha256_text(text: str) -> str:
    """Return hex sha256 of UTF-8 encoded text."""
    return sha256_bytes(text.encode("utf-8"))


__all__ = ["sha256_bytes", "sha256_text"]
