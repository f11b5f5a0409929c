"""
Stage 6 — Assemble the application descriptor from the trigger and one flow
resource per transaction.
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, Optional

from contract_compiler.compiler.context import CompilerContext
from contract_compiler.compiler.emit_flow import emit_flow
from contract_compiler.compiler.emit_trigger import emit_trigger, handler_schemas
from contract_compiler.compiler.graph_builder import build_task_graph
from contract_compiler.errors import ContractCompilerError
from contract_compiler.logger import get_logger
from contract_compiler.schema.flow_schema import schema_def
from contract_compiler.schema.models import Contract, Spec, Transaction

logger = get_logger(__name__)

APP_TYPE = "flogo:app"


def compile_transaction(
    transaction: Transaction,
    contract: Contract,
    context: CompilerContext,
    schemas: Optional[Dict[str, Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Build and serialize the task graph of one transaction into a flow resource.
    """

    graph = build_task_graph(transaction, context.activity_registry)
    resource = emit_flow(transaction, graph, contract, context, handler_schemas=schemas)
    logger.info(
        "compiled transaction %s into %s: %d tasks, %d links, %d branch nodes",
        transaction.name,
        resource["id"],
        len(resource["data"]["tasks"]),
        len(resource["data"]["links"]),
        len(graph.branch_nodes()),
    )
    return resource


def emit_app(spec: Spec, name: str, contract: Contract, context: CompilerContext) -> Dict[str, Any]:
    start_time = time.time()
    logger.info(
        "compiling contract %s (%s) with %d transactions",
        name,
        contract.name,
        len(contract.transactions),
    )

    registry = context.schema_registry
    replaced = registry.expand_refs()
    logger.debug("expanded %d schema documents in %d app schemas", replaced, len(registry))

    schemas: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None
    if context.include_schemas:
        schemas = {tx.name: handler_schemas(tx, registry) for tx in contract.transactions}

    trigger = emit_trigger(contract, context, schemas)

    resources = []
    for tx in contract.transactions:
        try:
            resources.append(
                compile_transaction(tx, contract, context, None if schemas is None else schemas[tx.name])
            )
        except ContractCompilerError as exc:
            logger.error("failed to compile transaction %s: %s", tx.name, exc)
            raise

    app: Dict[str, Any] = {
        "name": name,
        "type": APP_TYPE,
        "version": spec.info.version,
        "description": contract.name,
        "appModel": context.settings.app_model,
        "imports": list(spec.imports),
        "triggers": [trigger],
        "resources": resources,
    }
    if context.include_schemas:
        app["schemas"] = {key: schema_def(doc) for key, doc in registry.definitions().items()}

    logger.info(
        "compiled contract %s: %d resources in %.3fs",
        name,
        len(resources),
        time.time() - start_time,
    )
    return app


def dump_app_config(app: Dict[str, Any]) -> str:
    """Serialize an application descriptor for the flow engine."""
    return json.dumps(app, indent=3, ensure_ascii=False) + "\n"
