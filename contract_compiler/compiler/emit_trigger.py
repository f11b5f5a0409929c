"""
Stage 5 — Emit the transaction trigger: one handler per transaction.

A handler names its transaction, declares the argument list the trigger
decodes invocation arguments with, and points at the transaction's flow.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from contract_compiler.compiler.context import CompilerContext
from contract_compiler.config import ArgumentStyle
from contract_compiler.schema.flow_schema import schema_def, schema_uri
from contract_compiler.schema.models import PRIMITIVE_TYPES, Contract, Parameter, Transaction
from contract_compiler.schema.schema_registry import REF_KEY, SchemaRegistry

TRIGGER_REF = "#transaction"
FLOW_REF = "#flow"

# default literal that tells the runtime how to decode a delimited argument
_TYPE_DEFAULTS = {
    "boolean": "false",
    "integer": "0",
    "number": "0.0",
}


def delimited_argument(param: Parameter) -> str:
    default = _TYPE_DEFAULTS.get(param.json_type or "")
    return f"{param.name}:{default}" if default else param.name


def parameter_definition(transaction: Transaction) -> str:
    """Comma-delimited `name[:default]` list of the transaction parameters."""
    return ",".join(delimited_argument(p) for p in transaction.parameters)


def argument_attributes(transaction: Transaction) -> List[Dict[str, str]]:
    """
    Structured argument list. Only primitive types are typed arguments; any
    other type is passed as a string and decoded by the flow.
    """

    return [
        {"name": p.name, "type": p.json_type if p.json_type in PRIMITIVE_TYPES else "string"}
        for p in transaction.parameters
    ]


def handler_schemas(transaction: Transaction, registry: SchemaRegistry) -> Dict[str, Dict[str, Any]]:
    """
    Raw JSON schemas of the handler output (parameters, transient) and reply
    (returns). A returns `$ref` stays a `schema://` reference.
    """

    result: Dict[str, Dict[str, Any]] = {"output": {}, "reply": {}}

    returns = transaction.returns
    if returns:
        ref = returns.get(REF_KEY)
        if isinstance(ref, str):
            registry.resolve_ref(ref)
            result["reply"]["returns"] = schema_uri(ref)
        else:
            result["reply"]["returns"] = registry.expand_document(returns)

    if transaction.parameters:
        result["output"]["parameters"] = {
            "type": "object",
            "properties": {
                p.name: registry.expand_document(p.json_schema) for p in transaction.parameters
            },
        }

    if transaction.transient:
        result["output"]["transient"] = {
            "type": "object",
            "properties": registry.expand_document(transaction.transient),
        }
    return result


def _as_definitions(schemas: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: value if isinstance(value, str) else schema_def(value)
        for key, value in schemas.items()
    }


def emit_handler(
    transaction: Transaction,
    context: CompilerContext,
    schemas: Optional[Dict[str, Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    settings: Dict[str, Any] = {"name": transaction.name}
    if context.settings.argument_style == ArgumentStyle.attributes:
        settings["arguments"] = argument_attributes(transaction)
    else:
        settings["parameters"] = parameter_definition(transaction)

    handler: Dict[str, Any] = {
        "name": transaction.name,
        "settings": settings,
        "action": {
            "ref": FLOW_REF,
            "settings": {"flowURI": transaction.flow_uri},
            "input": {
                "parameters": "=$.parameters",
                "transient": "=$.transient",
            },
            "output": {
                "message": "=$.message",
                "returns": "=$.returns",
                "status": "=$.status",
            },
        },
    }
    if schemas is not None:
        handler["schemas"] = {
            section: _as_definitions(values) for section, values in schemas.items() if values
        }
    return handler


def emit_trigger(
    contract: Contract,
    context: CompilerContext,
    schemas: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None,
) -> Dict[str, Any]:
    """
    Build the trigger config. `schemas` maps transaction names to the result of
    `handler_schemas` when schema propagation is on.
    """

    trigger_settings: Dict[str, Any] = {}
    if contract.cid:
        trigger_settings["cid"] = contract.cid
    return {
        "id": context.settings.trigger_id,
        "ref": TRIGGER_REF,
        "settings": trigger_settings,
        "handlers": [
            emit_handler(tx, context, None if schemas is None else schemas.get(tx.name))
            for tx in contract.transactions
        ],
    }
