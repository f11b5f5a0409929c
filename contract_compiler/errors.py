"""
Shared exception hierarchy for the contract compiler.
"""


class ContractCompilerError(Exception):
    """Base class for all compiler related errors."""


class ParseError(ContractCompilerError):
    """Raised when the contract specification is malformed."""


class ActivityNotFoundError(ParseError):
    """Raised when an action references an activity kind that is not registered."""


class SchemaError(ContractCompilerError):
    """Raised when a reusable schema is inconsistent."""


class UnresolvedRefError(SchemaError):
    """Raised when a `$ref` names a schema that is not in the registry."""


class SchemaCycleError(SchemaError):
    """Raised when schema references form a cycle."""


class GraphError(ContractCompilerError):
    """Raised when a transaction's rules cannot be linked into a task graph."""


class UndefinedPrerequisiteError(GraphError):
    """Raised when a rule condition names an action that has not been defined yet."""


class DuplicateNameError(GraphError):
    """Raised when two actions in a transaction share an explicit name."""


class AmbiguousEntryError(GraphError):
    """Raised when a transaction would have more than one entry point."""


class ArgumentError(ContractCompilerError):
    """Raised when invocation arguments do not match a transaction's argument list."""
