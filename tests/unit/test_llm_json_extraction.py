from __future__ import annotations

import pytest

from utils.llm_json import extract_json_object


def test_extract_json_object_prefers_code_block() -> None:
    text = (
        'prefix {noise} {"outside": true}\n'
        '```json\n'
        '{"inside": 1}\n'
        '```\n'
        '{tail}'
    )
    assert extract_json_object(text, prefer_code_block=True) == {"inside": 1}


def test_extract_json_object_without_code_block_preference() -> None:
    text = '{"outside": true}\n```json\n{"inside": 1}\n```'
    assert extract_json_object(text, prefer_code_block=False) == {"outside": True}


def test_extract_json_object_stops_at_malformed_first_object() -> None:
    text = 'lead {not json} middle {"ok": 2} tail'
    with pytest.raises(ValueError, match="Malformed JSON object"):
        extract_json_object(text)

    fenced = '```json\n{"score": 80,}\n```\n{"score": 70}'
    with pytest.raises(ValueError, match="Malformed JSON object"):
        extract_json_object(fenced)


def test_extract_json_object_handles_braces_inside_strings() -> None:
    text = 'prefix {"a": "brace { inside }", "b": 1} trailing'
    assert extract_json_object(text) == {"a": "brace { inside }", "b": 1}


def test_extract_json_object_handles_escaped_quotes_and_bom() -> None:
    text = '\ufeff{"a": "say \\"hi\\" {", "nested": {"b": [1, 2]}}'
    assert extract_json_object(text) == {"a": 'say "hi" {', "nested": {"b": [1, 2]}}


def test_extract_json_object_falls_back_to_body_when_fence_is_broken() -> None:
    text = '```json\n{"broken": \n```\n好的 {"score": 80}'
    assert extract_json_object(text) == {"score": 80}


@pytest.mark.parametrize("text", ["no json here", "", None, "[1, 2, 3]", "{unclosed"])
def test_extract_json_object_raises_when_missing(text) -> None:
    with pytest.raises(ValueError, match="No JSON object found"):
        extract_json_object(text, prefer_code_block=True)
