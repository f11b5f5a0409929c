"""
Type-safe configuration for the contract compiler using Pydantic Settings.

Settings are loaded from environment variables (prefixed ``CONTRACT2FLOW_``)
and an optional ``.env`` file.

Usage:
    from contract_compiler.config import settings

    if settings.include_schemas:
        ...
"""
from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ArgumentStyle(str, Enum):
    """How a trigger handler declares the typed argument list of a transaction."""

    delimited = "delimited"
    attributes = "attributes"


class CompilerSettings(BaseSettings):
    """
    Central configuration for the contract compiler.
    """
    model_config = SettingsConfigDict(
        env_prefix="CONTRACT2FLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ============================================================================
    # Output Shape
    # ============================================================================

    include_schemas: bool = Field(
        default=True,
        description="Attach JSON schemas to handlers, flow metadata and tasks, and export app schemas",
    )
    argument_style: ArgumentStyle = Field(
        default=ArgumentStyle.delimited,
        description="'delimited' emits a 'name:default' parameter string, 'attributes' emits [{name, type}]",
    )
    app_model: str = Field(default="1.1.1", description="Flow engine application model version")
    trigger_id: str = Field(default="fabric_transaction", description="Id of the generated transaction trigger")

    # ============================================================================
    # Schema Resolution
    # ============================================================================

    max_ref_passes: int = Field(
        default=10,
        ge=1,
        description="Upper bound on $ref expansion passes over the schema registry",
    )

    # ============================================================================
    # Logging
    # ============================================================================

    log_level: str = Field(default="INFO", description="Log level for compiler loggers")


# ============================================================================
# Global Settings Instance
# ============================================================================

settings = CompilerSettings()
