import json

import pytest

from symptom_triage.agents.triage.utils import (
    IncompleteResponseError,
    ParseError,
    extract_structured,
    require_fields,
)


def test_extract_structured_parses_plain_object():
    assert extract_structured('  {"summary": "ok", "tips": []}  ') == {"summary": "ok", "tips": []}


@pytest.mark.parametrize(
    "raw_text",
    [
        'Sure! Here is the result: {"urgencyLevel": "low"} Hope that helps.',
        '```json\n{"urgencyLevel": "low"}\n```',
        '<json>\n{"urgencyLevel": "low"}\n</json>',
    ],
)
def test_extract_structured_recovers_object_wrapped_in_prose(raw_text: str):
    assert extract_structured(raw_text) == {"urgencyLevel": "low"}


def test_extract_structured_rejects_text_without_object():
    with pytest.raises(ParseError):
        extract_structured("I am not able to help with that.")


def test_extract_structured_rejects_json_that_is_not_an_object():
    with pytest.raises(ParseError, match="not an object"):
        extract_structured("[1, 2, 3]")


def test_extract_structured_reports_original_decode_error():
    with pytest.raises(ParseError) as exc_info:
        extract_structured("prefix {not valid json} suffix")

    assert isinstance(exc_info.value.__cause__, json.JSONDecodeError)


def test_extract_structured_span_is_greedy():
    # First brace to last brace spans both objects, which is not valid JSON.
    with pytest.raises(ParseError):
        extract_structured('first {"a": 1} then {"b": 2}')


def test_extract_structured_handles_empty_input():
    with pytest.raises(ParseError):
        extract_structured("")


def test_require_fields_lists_missing_and_blank_fields():
    with pytest.raises(IncompleteResponseError) as exc_info:
        require_fields({"message": "   ", "other": 1}, "message", "newState")

    assert "message" in str(exc_info.value)
    assert "newState" in str(exc_info.value)


def test_require_fields_accepts_non_string_values():
    require_fields({"newState": {}, "message": "Next?"}, "message", "newState")


def test_incomplete_response_is_a_parse_error():
    assert issubclass(IncompleteResponseError, ParseError)
    assert issubclass(ParseError, ValueError)
