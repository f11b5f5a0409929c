"""
Infer a JSON schema from a sample document or a data-mapping expression tree.

Mapping trees express loops as a single ``@foreach(...)`` key whose value is
the per-item mapping, so such objects are read as arrays of that item.
"""

from __future__ import annotations

import json
from typing import Any, Dict

from contract_compiler.errors import ParseError
from contract_compiler.schema.models import JsonSchema

FOREACH_PREFIX = "@foreach("


def infer_schema(value: Any) -> JsonSchema:
    if isinstance(value, (list, tuple)):
        schema: Dict[str, Any] = {"type": "array"}
        if value:
            # arrays are assumed homogeneous
            schema["items"] = infer_schema(value[0])
        return schema
    if isinstance(value, dict):
        if len(value) == 1:
            key, item = next(iter(value.items()))
            if isinstance(key, str) and key.startswith(FOREACH_PREFIX):
                return {"type": "array", "items": infer_schema(item)}
        return {
            "type": "object",
            "properties": {str(k): infer_schema(v) for k, v in value.items()},
        }
    if isinstance(value, bool):
        return {"type": "boolean"}
    if isinstance(value, (int, float)):
        return {"type": "number"}
    return {"type": "string"}


def infer_schema_from_json(text: str | bytes) -> JsonSchema:
    """
    Parse a JSON document and infer its schema.
    """

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON sample: {exc}") from exc
    return infer_schema(data)


__all__ = ["FOREACH_PREFIX", "infer_schema", "infer_schema_from_json"]
