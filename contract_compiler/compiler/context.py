"""
Container for shared compiler dependencies (registries, settings).

Nothing here is specific to one transaction; per-transaction state lives in
the GraphBuilder created for each transaction.
"""

from __future__ import annotations

from dataclasses import dataclass

from contract_compiler.config import CompilerSettings
from contract_compiler.registry.activity_registry import ActivityRegistry
from contract_compiler.schema.schema_registry import SchemaRegistry


@dataclass(frozen=True)
class CompilerContext:
    schema_registry: SchemaRegistry
    activity_registry: ActivityRegistry
    settings: CompilerSettings

    @property
    def include_schemas(self) -> bool:
        return self.settings.include_schemas
