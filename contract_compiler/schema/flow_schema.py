"""
Schema values in the shape the flow engine imports.

Schemas are carried as ``{"type": "json", "value": "<json text>"}`` or as a
``schema://<name>`` reference to an app-level definition. The engine's import
tooling only accepts the properties of an object in flow metadata, and cannot
inline array schemas there, so arrays are exported as app schemas and
referenced by hash.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, Optional, Union

from contract_compiler.schema.models import JsonSchema
from contract_compiler.schema.schema_registry import SchemaRegistry, ref_name

SCHEMA_URI_PREFIX = "schema://"

FlowSchema = Union[str, Dict[str, str]]

STANDARD_CID_ATTRIBUTES = ("id", "mspid", "cn")


def schema_json(schema: Any) -> str:
    return json.dumps(schema, ensure_ascii=False, separators=(",", ":"))


def schema_def(schema: Any) -> Dict[str, str]:
    return {"type": "json", "value": schema_json(schema)}


def schema_uri(ref: str) -> str:
    return SCHEMA_URI_PREFIX + ref_name(ref)


def to_flow_schema(schema: Union[str, JsonSchema, None], registry: SchemaRegistry) -> Optional[FlowSchema]:
    """
    Convert a handler schema into the form used by flow metadata attributes.
    """

    if schema is None:
        return None
    if isinstance(schema, str):
        return schema if schema.startswith(SCHEMA_URI_PREFIX) else None

    schema_type = schema.get("type")
    if schema_type == "array":
        text = schema_json(schema)
        return SCHEMA_URI_PREFIX + registry.register_derived(schema, text)
    if schema_type == "object":
        return schema_def(schema.get("properties") or {})
    return schema_def(schema)


def cid_schema(extra_attributes: Iterable[str] = ()) -> Dict[str, str]:
    """
    Properties of the client identity attribute: the standard id, mspid and
    cn plus any extra attributes configured on the contract, all strings.
    """

    names = list(STANDARD_CID_ATTRIBUTES)
    names.extend(name for name in extra_attributes if name not in names)
    return schema_def({name: {"type": "string"} for name in names})
