from __future__ import annotations

import json

import pytest

from contract_compiler.errors import ParseError
from contract_compiler.schema.inference import infer_schema, infer_schema_from_json
from contract_compiler.schema.jsonschema_adapter import validate_instance

SAMPLE = {
    "name": "marble1",
    "size": 35,
    "price": 1.5,
    "active": True,
    "tags": ["red", "blue"],
    "owner": {"id": "tom"},
    "none": None,
}


def test_infer_scalar_and_nested_types() -> None:
    schema = infer_schema(SAMPLE)

    assert schema == {
        "type": "object",
        "properties": {
            "name": {"type": "string"},
            "size": {"type": "number"},
            "price": {"type": "number"},
            "active": {"type": "boolean"},
            "tags": {"type": "array", "items": {"type": "string"}},
            "owner": {"type": "object", "properties": {"id": {"type": "string"}}},
            "none": {"type": "string"},
        },
    }


def test_inferred_schema_accepts_its_sample() -> None:
    sample = {key: value for key, value in SAMPLE.items() if value is not None}

    validate_instance(infer_schema(sample), sample)


def test_arrays_infer_from_first_element() -> None:
    assert infer_schema([{"a": 1}, "ignored"]) == {
        "type": "array",
        "items": {"type": "object", "properties": {"a": {"type": "number"}}},
    }
    assert infer_schema([]) == {"type": "array"}


def test_foreach_mapping_is_an_array_of_items() -> None:
    mapping = {
        "@foreach($activity[get_1].result, item)": {
            "key": "=$loop.key",
            "owner": {"name": "=$loop.value.owner"},
        }
    }

    assert infer_schema(mapping) == {
        "type": "array",
        "items": {
            "type": "object",
            "properties": {
                "key": {"type": "string"},
                "owner": {"type": "object", "properties": {"name": {"type": "string"}}},
            },
        },
    }


def test_foreach_key_among_others_is_a_plain_property() -> None:
    schema = infer_schema({"@foreach(x)": {"a": "b"}, "other": 1})

    assert schema["type"] == "object"
    assert set(schema["properties"]) == {"@foreach(x)", "other"}


def test_infer_from_json_text() -> None:
    assert infer_schema_from_json(json.dumps(SAMPLE)) == infer_schema(SAMPLE)
    assert infer_schema_from_json(b"[true]") == {"type": "array", "items": {"type": "boolean"}}


def test_infer_from_invalid_json_raises() -> None:
    with pytest.raises(ParseError):
        infer_schema_from_json("{oops")
