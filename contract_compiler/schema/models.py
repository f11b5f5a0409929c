"""
Pydantic models describing a smart-contract specification.

A specification declares one contract made of transactions. Each transaction
lists its parameters, transient attributes, return schema and an ordered list
of rules; a rule is an optional condition followed by the actions executed
when its branch is taken. Reusable object schemas live under
``components.schemas`` and are referenced as ``#/components/schemas/<name>``.

The models are frozen: the compiler only ever reads them.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


JsonSchema = Dict[str, Any]

PRIMITIVE_TYPES = ("string", "integer", "number", "boolean")

_FIRST_CAP = re.compile(r"([A-Z])([A-Z][a-z])")
_ALL_CAP = re.compile(r"([a-z0-9])([A-Z])")


def to_snake_case(text: str) -> str:
    """
    Convert camel, pascal or kebab case to snake case, e.g. ``HTTPRequest`` ->
    ``http_request``.
    """
    snake = _FIRST_CAP.sub(r"\1_\2", text)
    snake = _ALL_CAP.sub(r"\1_\2", snake)
    return snake.replace("-", "_").lower()


class SpecModel(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )


class Info(SpecModel):
    title: str = ""
    version: str = ""
    description: Optional[str] = None


class Parameter(SpecModel):
    name: str = Field(min_length=1)
    json_schema: JsonSchema = Field(default_factory=dict, alias="schema")
    description: Optional[str] = None
    required: bool = False

    @property
    def json_type(self) -> Optional[str]:
        """Declared JSON type when it is a plain string, else None."""
        value = self.json_schema.get("type")
        if isinstance(value, str) and value:
            return value
        return None


class Condition(SpecModel):
    name: Optional[str] = None
    description: str = ""
    prerequisite: str = ""
    expr: str = ""


class Input(SpecModel):
    json_schema: Dict[str, Any] = Field(default_factory=dict, alias="schema")
    sample: Dict[str, Any] = Field(default_factory=dict)
    mapping: Dict[str, Any] = Field(default_factory=dict)


class Action(SpecModel):
    activity: str = Field(min_length=1)
    description: Optional[str] = None
    name: Optional[str] = None
    ledger: Optional[Dict[str, Any]] = None
    config: Dict[str, Any] = Field(default_factory=dict)
    input: Optional[Input] = None

    @field_validator("name", mode="before")
    @classmethod
    def _blank_name_is_anonymous(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Rule(SpecModel):
    description: Optional[str] = None
    condition: Optional[Condition] = None
    actions: List[Action] = Field(default_factory=list)


class Transaction(SpecModel):
    name: str = Field(min_length=1)
    tag: List[str] = Field(default_factory=list)
    parameters: List[Parameter] = Field(default_factory=list)
    transient: Dict[str, Any] = Field(default_factory=dict)
    returns: Dict[str, Any] = Field(default_factory=dict)
    rules: List[Rule] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_parameter_names(self) -> "Transaction":
        seen: set[str] = set()
        for param in self.parameters:
            if param.name in seen:
                raise ValueError(
                    f"transaction '{self.name}' declares parameter '{param.name}' more than once"
                )
            seen.add(param.name)
        return self

    @property
    def resource_id(self) -> str:
        return "flow:" + to_snake_case(self.name)

    @property
    def flow_uri(self) -> str:
        return "res://" + self.resource_id

    def contains_parameter(self, name: str) -> bool:
        return any(p.name == name for p in self.parameters)


class Contract(SpecModel):
    name: str = ""
    cid: str = ""
    transactions: List[Transaction] = Field(default_factory=list)
    info: Optional[Info] = None

    @model_validator(mode="after")
    def _unique_flow_ids(self) -> "Contract":
        seen: Dict[str, str] = {}
        for tx in self.transactions:
            other = seen.get(tx.resource_id)
            if other is not None:
                raise ValueError(
                    f"transactions '{other}' and '{tx.name}' map to the same flow '{tx.resource_id}'"
                )
            seen[tx.resource_id] = tx.name
        return self

    @property
    def cid_attributes(self) -> List[str]:
        """Extra client-identity attribute names from the comma-separated ``cid``."""
        return [attr.strip() for attr in self.cid.split(",") if attr.strip()]


class Schema(SpecModel):
    id: Optional[str] = Field(default=None, alias="$id")
    properties: Dict[str, Any] = Field(default_factory=dict)
    required: List[str] = Field(default_factory=list)


class Components(SpecModel):
    schemas: Dict[str, Schema] = Field(default_factory=dict)


class Spec(SpecModel):
    info: Info
    imports: List[str] = Field(default_factory=list)
    contracts: Dict[str, Contract] = Field(default_factory=dict)
    components: Optional[Components] = None
