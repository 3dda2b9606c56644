"""Supported legal frameworks and translation targets."""

from __future__ import annotations

from typing import Mapping, Optional

FRAMEWORKS: Mapping[str, str] = {
    "china": "中华人民共和国法律",
    "usa": "美国法律",
    "eu": "欧盟法律",
    "japan": "日本法律",
    "germany": "德国法律",
    "france": "法国法律",
    "uk": "英国法律",
    "canada": "加拿大法律",
    "australia": "澳大利亚法律",
    "singapore": "新加坡法律",
}

LANGUAGES: Mapping[str, str] = {
    "en": "英语",
    "ja": "日语",
    "de": "德语",
    "fr": "法语",
    "es": "西班牙语",
    "ru": "俄语",
    "ko": "韩语",
    "zh": "中文",
}


def framework_name(code: str) -> str:
    return FRAMEWORKS.get(code, code)


def language_name(code: str) -> str:
    return LANGUAGES.get(code, code)


def validate_frameworks(
    primary: str, secondary: Optional[str]
) -> tuple[str, Optional[str]]:
    """Normalize framework codes, rejecting unknown codes and primary == secondary."""

    primary_code = (primary or "").strip().lower()
    if primary_code not in FRAMEWORKS:
        raise ValueError(f"Unknown primary framework: {primary!r}")

    secondary_code = (secondary or "").strip().lower() or None
    if secondary_code is None:
        return primary_code, None
    if secondary_code not in FRAMEWORKS:
        raise ValueError(f"Unknown secondary framework: {secondary!r}")
    if secondary_code == primary_code:
        raise ValueError("Secondary framework must differ from the primary framework.")
    return primary_code, secondary_code


def validate_language(code: str) -> str:
    normalized = (code or "").strip().lower()
    if normalized not in LANGUAGES:
        raise ValueError(f"Unsupported target language: {code!r}")
    return normalized


__all__ = [
    "FRAMEWORKS",
    "LANGUAGES",
    "framework_name",
    "language_name",
    "validate_frameworks",
    "validate_language",
]
