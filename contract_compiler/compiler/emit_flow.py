"""
Stage 4 — Serialize a transaction's task graph into a flow resource.

Tasks and links are emitted by a depth-first walk from the graph root, so the
output order only depends on the order of the rules and actions in the
contract.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from contract_compiler.compiler.context import CompilerContext
from contract_compiler.compiler.graph_builder import Link, TaskGraph, TaskNode
from contract_compiler.compiler.step_schemas import activity_schemas
from contract_compiler.schema.flow_schema import FlowSchema, cid_schema, to_flow_schema
from contract_compiler.schema.models import Contract, Transaction

EXPRESSION_LINK = "expression"
DEFAULT_LINK = "default"


def _wrap_mapping(value: Any) -> Dict[str, Any]:
    return {"mapping": value}


def task_settings(node: TaskNode) -> Optional[Dict[str, Any]]:
    action = node.action
    if action is None or not action.config:
        return None
    return {
        key: _wrap_mapping(value) if isinstance(value, (dict, list)) else value
        for key, value in action.config.items()
    }


def task_input(node: TaskNode) -> Optional[Dict[str, Any]]:
    action = node.action
    if action is None or action.input is None or not action.input.mapping:
        return None
    return {
        key: _wrap_mapping(value) if isinstance(value, dict) else value
        for key, value in action.input.mapping.items()
    }


def emit_task(node: TaskNode, context: CompilerContext) -> Dict[str, Any]:
    activity: Dict[str, Any] = {"ref": node.activity.ref}
    action = node.action

    if node.activity.returns_mappings:
        mappings = action.input.mapping if action is not None and action.input is not None else {}
        activity["settings"] = {"mappings": mappings}
    elif action is not None:
        settings = task_settings(node)
        if settings:
            activity["settings"] = settings
        inputs = task_input(node)
        if inputs:
            activity["input"] = inputs
        if context.include_schemas:
            activity["schemas"] = activity_schemas(action, node.activity, context.schema_registry)

    task: Dict[str, Any] = {"id": node.name, "name": node.name}
    if action is not None and action.description:
        task["description"] = action.description
    task["activity"] = activity
    return task


def emit_link(index: int, source: TaskNode, link: Link) -> Dict[str, Any]:
    result: Dict[str, Any] = {"id": index, "from": source.name, "to": link.target.name}
    if link.expr:
        result["type"] = EXPRESSION_LINK
        result["value"] = link.expr
    else:
        result["type"] = DEFAULT_LINK
    return result


def _attribute(name: str, type_: str, schema: Optional[FlowSchema] = None, value: Any = None) -> Dict[str, Any]:
    attr: Dict[str, Any] = {"name": name, "type": type_}
    if value is not None:
        attr["value"] = value
    if schema is not None:
        attr["schema"] = schema
    return attr


def flow_metadata(
    transaction: Transaction,
    contract: Contract,
    handler_schemas: Optional[Dict[str, Any]],
    context: CompilerContext,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Flow inputs and outputs. Schemas are attached only when the handler
    carries schemas, i.e. when schema propagation is on.
    """

    registry = context.schema_registry
    output_schemas = (handler_schemas or {}).get("output", {})
    reply_schemas = (handler_schemas or {}).get("reply", {})

    inputs: List[Dict[str, Any]] = []
    if transaction.parameters:
        schema = to_flow_schema(output_schemas.get("parameters"), registry) if handler_schemas else None
        inputs.append(_attribute("parameters", "object", schema))
    if transaction.transient:
        schema = to_flow_schema(output_schemas.get("transient"), registry) if handler_schemas else None
        inputs.append(_attribute("transient", "object", schema))

    returns_schema = None
    if handler_schemas is not None:
        inputs.append(_attribute("cid", "object", cid_schema(contract.cid_attributes)))
        inputs.append(_attribute("txID", "string", value=""))
        inputs.append(_attribute("txTime", "string", value=""))
        returns_schema = to_flow_schema(reply_schemas.get("returns"), registry)

    outputs = [
        _attribute("status", "integer", value=0),
        _attribute("message", "string", value=""),
        _attribute("returns", "any", returns_schema),
    ]
    return {"input": inputs, "output": outputs}


def emit_flow(
    transaction: Transaction,
    graph: TaskGraph,
    contract: Contract,
    context: CompilerContext,
    handler_schemas: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    nodes, edges = graph.depth_first()
    data: Dict[str, Any] = {
        "name": transaction.name,
        "metadata": flow_metadata(transaction, contract, handler_schemas, context),
        "tasks": [emit_task(node, context) for node in nodes],
        "links": [emit_link(index, source, link) for index, (source, link) in enumerate(edges)],
    }
    return {"id": transaction.resource_id, "data": data}
