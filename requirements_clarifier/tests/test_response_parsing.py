"""
Tests: Structured-data extraction from completion responses.
"""

from requirements_clarifier.services.response_parsing import (
    StructuredResponse,
    UnstructuredResponse,
    parse_response,
    structured_dict,
)


def test_json_fenced_block():
    parsed = parse_response('Sure:\n```json\n{"confidence": 80}\n```\nDone.')
    assert parsed == StructuredResponse({"confidence": 80})


def test_bare_fenced_block():
    assert parse_response("```\n[1, 2]\n```") == StructuredResponse([1, 2])


def test_first_block_wins():
    text = '```json\n{"a": 1}\n```\n```json\n{"b": 2}\n```'
    assert parse_response(text) == StructuredResponse({"a": 1})


def test_invalid_json_is_unstructured():
    text = "```json\n{not json}\n```"
    assert parse_response(text) == UnstructuredResponse(text)


def test_prose_is_unstructured():
    assert parse_response("No conflicts found.") == UnstructuredResponse("No conflicts found.")


def test_structured_dict_ignores_non_objects():
    assert structured_dict("```json\n[1]\n```") == {}
    assert structured_dict('```json\n{"x": true}\n```') == {"x": True}
