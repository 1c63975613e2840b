from __future__ import annotations

from rfpdesk.llm.validators.basic import extract_json_object, validate_non_empty_output


def test_plain_object_is_extracted():
    assert extract_json_object('{"title": "Chairs"}') == {"title": "Chairs"}


def test_fenced_block_wins_over_surrounding_braces():
    text = 'Note {not json}\n```json\n{"a": 1}\n```'
    assert extract_json_object(text) == {"a": 1}


def test_greedy_span_keeps_nested_objects():
    text = 'Result: {"outer": {"inner": [1, 2]}, "ok": true} -- end'
    assert extract_json_object(text) == {"outer": {"inner": [1, 2]}, "ok": True}


def test_arrays_and_garbage_return_none():
    assert extract_json_object("[1, 2, 3]") is None
    assert extract_json_object("no json here") is None
    assert extract_json_object("") is None


def test_empty_output_is_flagged():
    assert validate_non_empty_output("  \n") == (False, "Output is empty.")
    assert validate_non_empty_output("{}") == (True, None)
