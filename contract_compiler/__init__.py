"""
Public entrypoint for compiling smart-contract specs into flow applications.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from contract_compiler.compiler.context import CompilerContext
from contract_compiler.compiler.emit_app import dump_app_config, emit_app
from contract_compiler.compiler.parse import parse_contract_spec, select_contract
from contract_compiler.config import CompilerSettings, settings as default_settings
from contract_compiler.logger import set_log_level
from contract_compiler.registry.activity_registry import ActivityRegistry
from contract_compiler.schema.schema_registry import SchemaRegistry


def compile_contract(
    payload: Any,
    *,
    settings: Optional[CompilerSettings] = None,
    contract_name: Optional[str] = None,
    activity_registry: Optional[ActivityRegistry] = None,
) -> Dict[str, Any]:
    """
    Compile a contract specification into an application descriptor: one
    trigger with a handler per transaction, one flow resource per transaction
    and, with schema propagation on, the app-level schema definitions.
    """

    effective = settings or default_settings
    if settings is not None:
        set_log_level(effective.log_level)
    spec = parse_contract_spec(payload)
    name, contract = select_contract(spec, contract_name)
    context = CompilerContext(
        schema_registry=SchemaRegistry.from_components(
            spec.components, max_passes=effective.max_ref_passes
        ),
        activity_registry=activity_registry or ActivityRegistry(),
        settings=effective,
    )
    return emit_app(spec, name, contract, context)


__all__ = ["compile_contract", "dump_app_config"]
