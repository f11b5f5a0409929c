"""
Thin layer over `jsonschema` for the schemas a contract declares.

Contract schemas are written against Draft 7, the draft the flow engine's
design tooling reads. Component references (``#/components/schemas/...``) are
left to the schema registry, so metaschema checks only see them as strings.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, List

from jsonschema import ValidationError
from jsonschema.exceptions import SchemaError as JsonSchemaError
from jsonschema.validators import Draft7Validator, validator_for

from contract_compiler.errors import SchemaError
from contract_compiler.schema.models import JsonSchema

DEFAULT_VALIDATOR = Draft7Validator


def _canonical(schema: JsonSchema) -> str:
    return json.dumps(schema, sort_keys=True, separators=(",", ":"))


@lru_cache(maxsize=256)
def _validator_for_text(text: str) -> Draft7Validator:
    schema = json.loads(text)
    return validator_for(schema, default=DEFAULT_VALIDATOR)(schema)


def get_validator(schema: JsonSchema) -> Draft7Validator:
    """
    Compiled validator for `schema`, shared by equal schemas.
    """

    return _validator_for_text(_canonical(schema))


def validate_instance(schema: JsonSchema, instance: Any) -> None:
    """
    Validate a sample document; raises jsonschema's ValidationError.
    """

    get_validator(schema).validate(instance)


def schema_problems(schema: JsonSchema) -> List[str]:
    """
    Every metaschema violation of `schema`, ordered by location.
    """

    validator_cls = validator_for(schema, default=DEFAULT_VALIDATOR)
    meta = validator_cls(validator_cls.META_SCHEMA)
    errors = sorted(meta.iter_errors(schema), key=lambda e: [str(t) for t in e.absolute_path])
    return [format_validation_error(error) for error in errors]


def check_schema(schema: JsonSchema, *, name: str | None = None) -> None:
    """
    Raise SchemaError, listing every problem, when `schema` is not valid JSON Schema.
    """

    validator_cls = validator_for(schema, default=DEFAULT_VALIDATOR)
    try:
        validator_cls.check_schema(schema)
    except JsonSchemaError as exc:
        label = f"Schema '{name}'" if name else "Schema"
        problems = schema_problems(schema) or [format_validation_error(exc)]
        raise SchemaError(f"{label} is not valid JSON Schema: " + "; ".join(problems)) from exc


def format_validation_error(error: ValidationError | JsonSchemaError, *, prefix: str = "$") -> str:
    path = prefix
    for token in error.absolute_path:
        if isinstance(token, int):
            path += f"[{token}]"
        else:
            path += f".{token}"
    return f"{path}: {error.message}"


__all__ = [
    "ValidationError",
    "check_schema",
    "format_validation_error",
    "get_validator",
    "schema_problems",
    "validate_instance",
]
