"""
Schema annotations attached to each task of a flow.

Inputs are described by the action's explicit schema, else by a schema
inferred from its sample payload, else by a schema inferred from the input
mapping (for object and array mappings only; scalar mappings stay untyped).
Explicit input and ledger schemas must be valid JSON Schema.
Ledger steps also declare the shape of their ``result`` output, selected by
the ``keysOnly``, ``privateHash`` and ``history`` settings.
A sample given next to an explicit schema is checked against it, and a
mismatch is logged.
"""

from __future__ import annotations

import copy
import json
from typing import Any, Dict, Optional

from contract_compiler.errors import SchemaError
from contract_compiler.logger import get_logger
from contract_compiler.registry.activity_registry import ActivityDefinition
from contract_compiler.schema.flow_schema import schema_def
from contract_compiler.schema.inference import infer_schema
from contract_compiler.schema.jsonschema_adapter import (
    ValidationError,
    check_schema,
    format_validation_error,
    validate_instance,
)
from contract_compiler.schema.models import Action, JsonSchema
from contract_compiler.schema.schema_registry import SchemaRegistry

logger = get_logger(__name__)

COMPOSITE_KEY_SAMPLE = [
    {"name": "", "attributes": [""], "keys": [{"name": "", "fields": [""], "key": ""}]}
]

PRIVATE_HASH_SCHEMA: JsonSchema = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {"key": {"type": "string"}, "value": {"type": "string"}},
    },
}


def composite_key_schema() -> JsonSchema:
    return infer_schema(COMPOSITE_KEY_SAMPLE)


def ledger_record_schema(value: Any) -> JsonSchema:
    return {
        "type": "array",
        "items": {
            "type": "object",
            "properties": {"key": {"type": "string"}, "value": value},
        },
    }


def ledger_history_schema(value: Any) -> JsonSchema:
    return ledger_record_schema(
        {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "txID": {"type": "string"},
                    "txTime": {"type": "string"},
                    "isDeleted": {"type": "boolean"},
                    "value": value,
                },
            },
        }
    )


def input_schemas(action: Action, registry: SchemaRegistry) -> Dict[str, Dict[str, str]]:
    schemas: Dict[str, Dict[str, str]] = {}
    if action.input is None:
        return schemas

    for key, value in action.input.json_schema.items():
        schema = registry.expand_document(value)
        _check_declared(schema, f"{_step_label(action)}.{key}")
        if key in action.input.sample:
            _check_sample(action, key, schema)
        schemas[key] = schema_def(schema)

    for key, value in action.input.sample.items():
        if key not in schemas:
            schemas[key] = schema_def(infer_schema(value))

    for key, value in action.input.mapping.items():
        if key in schemas or not isinstance(value, (dict, list)):
            continue
        schemas[key] = schema_def(infer_schema(value))
    return schemas


def _step_label(action: Action) -> str:
    return action.name or action.activity


def _check_declared(schema: Any, label: str) -> None:
    if not isinstance(schema, (dict, bool)):
        raise SchemaError(f"Schema '{label}' must be a JSON object, got {type(schema).__name__}")
    check_schema(schema, name=label)


def _check_sample(action: Action, key: str, schema: JsonSchema) -> None:
    try:
        validate_instance(schema, action.input.sample[key])
    except ValidationError as exc:
        logger.warning(
            "sample input %s of %s does not match its schema: %s",
            key,
            _step_label(action),
            format_validation_error(exc),
        )


def _flag(config: Dict[str, Any], name: str) -> bool:
    return config.get(name) is True


def ledger_output_schema(
    action: Action, activity: ActivityDefinition, registry: SchemaRegistry
) -> Optional[JsonSchema]:
    if not activity.ledger:
        return None
    if _flag(action.config, "keysOnly"):
        return composite_key_schema()
    if _flag(action.config, "privateHash"):
        return copy.deepcopy(PRIVATE_HASH_SCHEMA)
    if not action.ledger:
        return None

    value = registry.expand_document(action.ledger)
    _check_declared(value, f"{_step_label(action)}.ledger")
    if _flag(action.config, "history"):
        return ledger_history_schema(value)
    return ledger_record_schema(value)


def setting_metadata(action: Action, activity: ActivityDefinition) -> Dict[str, Dict[str, str]]:
    """
    Metadata for object and array settings of ledger steps, required by the
    engine's design tooling to render them.
    """

    if not activity.ledger:
        return {}
    return {
        key: {"type": "json", "fe_metadata": json.dumps(value, ensure_ascii=False)}
        for key, value in action.config.items()
        if isinstance(value, (dict, list))
    }


def activity_schemas(
    action: Action, activity: ActivityDefinition, registry: SchemaRegistry
) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    inputs = input_schemas(action, registry)
    if inputs:
        result["input"] = inputs
    output = ledger_output_schema(action, activity, registry)
    if output is not None:
        result["output"] = {"result": schema_def(output)}
    settings = setting_metadata(action, activity)
    if settings:
        result["settings"] = settings
    return result
