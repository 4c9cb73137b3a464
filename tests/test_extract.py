"""Tests for tolerant JSON extraction from agent replies."""

from __future__ import annotations

import json

import pytest

from agent.extract import MAX_SCAN_CHARS, extract, repair

DEFAULT = {"fallback": True}

# ---------------------------------------------------------------------------
# Direct parse
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "text",
    [
        '{"a": 1}',
        "[1, 2, 3]",
        '  {"nested": {"list": [1, {"x": null}], "flag": false}}  \n',
        "[]",
        "{}",
    ],
)
def test_well_formed_json_round_trips(text: str):
    assert extract(text, DEFAULT) == json.loads(text)


@pytest.mark.parametrize("text", ["", "   ", "\n\t  \n", None])
def test_empty_input_returns_default(text):
    assert extract(text, DEFAULT) is DEFAULT


def test_non_string_input_returns_default():
    assert extract(42, DEFAULT) is DEFAULT
    assert extract(b'{"a": 1}', DEFAULT) is DEFAULT


@pytest.mark.parametrize("text", ['"just a string"', "42", "true", "null", "3.5"])
def test_bare_scalars_are_failures(text: str):
    assert extract(text, DEFAULT) is DEFAULT


def test_no_structure_returns_default():
    assert extract("not json at all", DEFAULT) is DEFAULT


def test_default_is_returned_verbatim():
    default: list[str] = []
    assert extract("nope", default) is default
    assert extract("nope", None) is None


# ---------------------------------------------------------------------------
# Fences
# ---------------------------------------------------------------------------


def test_json_fence():
    assert extract('```json\n{"a":1}\n```', DEFAULT) == {"a": 1}


def test_bare_fence_with_prose_around_it():
    text = 'Sure thing!\n```\n[{"id": 1}, {"id": 2}]\n```\nAnything else?'
    assert extract(text, DEFAULT) == [{"id": 1}, {"id": 2}]


def test_uppercase_fence_tag():
    assert extract('```JSON\n{"ok": true}\n```', DEFAULT) == {"ok": True}


def test_fence_with_other_language_tag_falls_through_to_scan():
    assert extract('```javascript\n{"a": 2}\n```', DEFAULT) == {"a": 2}


def test_fence_interior_with_trailing_comma():
    assert extract('```json\n{"a": [1, 2,],}\n```', DEFAULT) == {"a": [1, 2]}


# ---------------------------------------------------------------------------
# Bracket scanning
# ---------------------------------------------------------------------------


def test_prose_around_object():
    text = 'Sure! Here is the result: {"score": 42, "ok": true} Hope that helps!'
    assert extract(text, DEFAULT) == {"score": 42, "ok": True}


def test_brace_inside_string_does_not_close_object():
    text = 'Result: {"a": "value with \\"escaped\\" quotes and a } brace inside"} done'
    assert extract(text, DEFAULT) == {"a": 'value with "escaped" quotes and a } brace inside'}


def test_escaped_backslash_before_closing_quote():
    text = 'Path: {"dir": "C:\\\\temp\\\\", "n": 1} ok'
    assert extract(text, DEFAULT) == {"dir": "C:\\temp\\", "n": 1}


def test_first_complete_group_wins():
    text = 'First {"a": 1} then {"b": 2, "c": [1, 2, 3]}'
    assert extract(text, DEFAULT) == {"a": 1}


def test_array_before_object_wins():
    text = 'Items: ["x", "y"] and meta {"count": 2}'
    assert extract(text, DEFAULT) == ["x", "y"]


def test_unparseable_group_is_skipped_for_later_one():
    text = 'Scores [see below]: {"score": 7}'
    assert extract(text, DEFAULT) == {"score": 7}


@pytest.mark.parametrize(
    "text",
    [
        '[it\'s] {"score": 7} [that\'s all]',
        '[Candidate\'s evaluation] {"score": 7} [End of candidate\'s report]',
    ],
)
def test_apostrophes_in_bracketed_prose_do_not_hide_object(text: str):
    assert extract(text, DEFAULT) == {"score": 7}


def test_single_quoted_string_containing_closer():
    assert extract("Result: {'a': 'x}'} end", DEFAULT) == {"a": "x}"}


def test_unterminated_group_then_complete_group():
    text = 'Oops { this never closes {"a": 1}'
    assert extract(text, DEFAULT) == {"a": 1}


def test_mismatched_brackets_return_default():
    assert extract('{"a": [1, 2}', DEFAULT) is DEFAULT


def test_deeply_nested_input_does_not_raise():
    # Balanced, but too deep for the JSON decoder
    text = "x" + "[" * 100_000 + "]" * 100_000
    assert extract(text, DEFAULT) is DEFAULT


def test_scan_is_capped_to_max_chars():
    text = " " * MAX_SCAN_CHARS + 'tail {"a": 1}'
    # Direct parse fails because of the prose, and the object sits past the scan window
    assert extract(text, DEFAULT) is DEFAULT


def test_many_unterminated_openers_return_default():
    assert extract("{" * 50_000, DEFAULT) is DEFAULT


# ---------------------------------------------------------------------------
# Lenient repair
# ---------------------------------------------------------------------------


def test_trailing_commas():
    assert extract('{"a": 1, "b": [1,2,3,],}', DEFAULT) == {"a": 1, "b": [1, 2, 3]}


def test_trailing_comma_inside_string_is_kept():
    assert extract('{"a": "x,]", "b": [1,],}', DEFAULT) == {"a": "x,]", "b": [1]}


def test_single_quotes_converted():
    text = "Here you go: {'name': 'Ada', 'tags': ['a', 'b']}"
    assert extract(text, DEFAULT) == {"name": "Ada", "tags": ["a", "b"]}


def test_single_quoted_value_containing_double_quote():
    assert extract("{'quote': 'she said \"hi\"'}", DEFAULT) == {"quote": 'she said "hi"'}


def test_escaped_single_quote_inside_single_quoted_string():
    assert extract("{'text': 'it\\'s fine'}", DEFAULT) == {"text": "it's fine"}


def test_apostrophe_inside_double_quoted_string_untouched():
    assert extract('Note: {"text": "it\'s fine",}', DEFAULT) == {"text": "it's fine"}


def test_repair_leaves_ambiguous_single_quotes_alone():
    # Unterminated single quote: no conversion, only comma stripping
    assert repair("{\"a\": 1,} it's") == "{\"a\": 1} it's"


def test_repair_is_noop_on_valid_json():
    text = '{"a": [1, 2], "b": "c, ]"}'
    assert repair(text) == text


# ---------------------------------------------------------------------------
# Idempotence
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "text",
    [
        '```json\n{"a":1}\n```',
        "Sure! {'x': [1, 2,], 'y': null}",
        "nothing here",
        "",
        '[{"deep": {"deeper": [true, false]}}]',
    ],
)
def test_re_extracting_serialised_result_is_noop(text: str):
    first = extract(text, DEFAULT)
    assert extract(json.dumps(first), DEFAULT) == first
