"""
Stage 1 — Parse JSON into a strongly typed contract Spec and select its contract.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

from pydantic import ValidationError

from contract_compiler.errors import ParseError
from contract_compiler.schema.models import Contract, Spec


def parse_contract_spec(payload: Any) -> Spec:
    """
    Accepts a JSON string or bytes, a path to a JSON file, or an object
    compatible with the Spec definition and returns a validated Spec instance.
    """

    if isinstance(payload, Path):
        try:
            payload = payload.read_text(encoding="utf-8")
        except OSError as exc:
            raise ParseError(f"Cannot read contract file {payload}: {exc}") from exc

    if isinstance(payload, (str, bytes, bytearray)):
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Invalid contract JSON payload: {exc}") from exc
    elif isinstance(payload, Mapping):
        data = payload
    else:
        raise ParseError(
            f"Unsupported payload type {type(payload).__name__}; expected str, bytes, Path or Mapping"
        )

    if not isinstance(data, Mapping):
        raise ParseError(f"Contract spec must be a JSON object, got {type(data).__name__}")

    try:
        return Spec.model_validate(data)
    except ValidationError as exc:
        raise ParseError(f"Contract spec validation failed: {exc}") from exc


def select_contract(spec: Spec, name: Optional[str] = None) -> Tuple[str, Contract]:
    """
    Return the key and definition of the contract to compile.

    A spec must declare exactly one contract unless `name` picks one.
    """

    if not spec.contracts:
        raise ParseError("No contract is defined in the spec")

    if name is not None:
        try:
            return name, spec.contracts[name]
        except KeyError as exc:
            raise ParseError(
                f"Contract '{name}' is not defined; available: {', '.join(spec.contracts)}"
            ) from exc

    if len(spec.contracts) > 1:
        raise ParseError(
            "Spec defines more than one contract "
            f"({', '.join(spec.contracts)}); select one by name"
        )
    return next(iter(spec.contracts.items()))
