"""
Decoding of transaction invocation arguments at the trigger boundary.

A chaincode invocation delivers its arguments as a list of strings. The
handler of each transaction declares the matching argument list either as a
comma-delimited ``name[:default]`` string, where the default literal implies
the type, or as a structured ``[{name, type}]`` list. Values are decoded by
type; a value that cannot be decoded degrades to the type's zero value with a
warning, matching what the flow engine runtime does.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from contract_compiler.errors import ArgumentError
from contract_compiler.logger import get_logger

logger = get_logger(__name__)

_NUMBER_LITERAL = re.compile(r"\d+\.\d*")
_INTEGER_LITERAL = re.compile(r"\d+")

_TRUE_LITERALS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_LITERALS = {"0", "f", "F", "FALSE", "false", "False"}


@dataclass(frozen=True)
class Attribute:
    name: str
    type: str = "string"

    def __str__(self) -> str:
        return f"({self.name}:{self.type})"


def _type_of_default(value: str) -> str:
    if value.lower() in ("true", "false"):
        return "boolean"
    if _NUMBER_LITERAL.search(value):
        return "number"
    if _INTEGER_LITERAL.search(value):
        return "integer"
    return "string"


def parse_delimited_arguments(text: str | None) -> List[Attribute]:
    """
    Parse `name[:default]` entries, e.g. ``"owner,size:0,price:0.0,active:false"``.
    """

    attrs: List[Attribute] = []
    for entry in (text or "").strip().split(","):
        name, _, default = entry.strip().partition(":")
        name = name.strip()
        if not name:
            continue
        attrs.append(Attribute(name=name, type=_type_of_default(default.strip())))
    return attrs


def parse_attribute_arguments(items: Iterable[Any] | None) -> List[Attribute]:
    attrs: List[Attribute] = []
    for item in items or []:
        if isinstance(item, Attribute):
            attrs.append(item)
            continue
        if not isinstance(item, Mapping):
            raise ArgumentError(f"Argument definition must be an object, got {item!r}")
        name = str(item.get("name") or "").strip()
        if not name:
            raise ArgumentError(f"Argument definition has no name: {dict(item)!r}")
        attrs.append(Attribute(name=name, type=str(item.get("type") or "string").strip()))
    return attrs


def handler_arguments(settings: Mapping[str, Any]) -> List[Attribute]:
    """
    Argument list of a trigger handler, in whichever style its settings use.
    """

    if settings.get("arguments") is not None:
        return parse_attribute_arguments(settings["arguments"])
    return parse_delimited_arguments(settings.get("parameters"))


def parse_cid_attributes(text: str | None) -> List[str]:
    return [attr.strip() for attr in (text or "").strip().split(",") if attr.strip()]


def decode_arguments(attrs: Sequence[Attribute], values: Sequence[str]) -> Dict[str, Any]:
    """
    Map positional invocation arguments onto the declared argument list.
    """

    if len(values) != len(attrs):
        raise ArgumentError(
            f"transaction parameters do not match required argument list: "
            f"expected {len(attrs)} ({', '.join(str(a) for a in attrs)}), got {len(values)}"
        )
    return {attr.name: decode_value(value, attr.type, name=attr.name) for attr, value in zip(attrs, values)}


def decode_value(data: str, json_type: str, *, name: str | None = None) -> Any:
    text = data.strip()

    if json_type == "array":
        return _parse_json_literal(data, list, name)

    if json_type == "object":
        return _parse_json_literal(data, dict, name)

    if json_type == "boolean":
        if text in _TRUE_LITERALS:
            return True
        if text in _FALSE_LITERALS:
            return False
        logger.warning("failed to convert parameter %s to boolean: data '%s'", name, data)
        return False

    if json_type == "integer":
        try:
            return int(text, 10)
        except ValueError:
            logger.warning("failed to convert parameter %s to integer: data '%s'", name, data)
            return 0

    if json_type == "number":
        if "." not in text:
            try:
                return int(text, 10)
            except ValueError:
                logger.warning("failed to convert parameter %s to integer: data '%s'", name, data)
                return 0
        try:
            return float(text)
        except ValueError:
            logger.warning("failed to convert parameter %s to float: data '%s'", name, data)
            return 0.0

    return text


def _parse_json_literal(value: str, expected_type: type, name: str | None) -> Any:
    type_name = "object" if expected_type is dict else "array"
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as exc:
        logger.warning("failed to parse parameter %s as JSON %s: data '%s' error %s", name, type_name, value, exc.msg)
        return None
    if not isinstance(parsed, expected_type):
        logger.warning("parameter %s is not a JSON %s: data '%s'", name, type_name, value)
        return None
    return parsed
