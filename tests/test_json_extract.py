"""Tests for JSON extraction from model replies."""

import pytest

from photo_nutrition.services.json_extract import (
    JsonExtractionError,
    parse_first_json_object,
)


def test_parses_plain_object() -> None:
    assert parse_first_json_object('{"foods": []}') == {"foods": []}


def test_parses_object_wrapped_in_prose() -> None:
    text = 'Here is the result: {"calories": 120} Let me know!'

    assert parse_first_json_object(text) == {"calories": 120}


def test_parses_markdown_fenced_object() -> None:
    text = '```json\n{"foods": [{"name": "rice"}]}\n```'

    assert parse_first_json_object(text) == {"foods": [{"name": "rice"}]}


def test_skips_undecodable_brace_before_real_object() -> None:
    text = 'Format is {name} like this: {"ok": true}'

    assert parse_first_json_object(text) == {"ok": True}


def test_returns_outer_object_when_nested() -> None:
    assert parse_first_json_object('{"a": {"b": 1}}') == {"a": {"b": 1}}


@pytest.mark.parametrize("text", ["", None, "no json here", "[1, 2]", '{"a": 1'])
def test_raises_when_no_object(text: str | None) -> None:
    with pytest.raises(JsonExtractionError):
        parse_first_json_object(text)


def test_does_not_return_object_nested_in_truncated_reply() -> None:
    text = '{"calories": 250, "protein": {"g": 10}, "fat": 5, "carbs": '

    with pytest.raises(JsonExtractionError):
        parse_first_json_object(text)


def test_resumes_after_broken_object() -> None:
    text = 'Draft: {"a": {"b": 1} oops} final: {"calories": 90}'

    assert parse_first_json_object(text) == {"calories": 90}
