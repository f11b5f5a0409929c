"""
Registry of the step kinds a contract action may use.

Each activity kind is identified in a contract by its flow ref (``#get``,
``#noop``, ...). The graph builder and serializer consult the capability flags
here instead of comparing ref strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from contract_compiler.errors import ActivityNotFoundError


class ActivityKind(str, Enum):
    get = "get"
    put = "put"
    delete = "delete"
    gethistory = "gethistory"
    endorsement = "endorsement"
    setevent = "setevent"
    invokechaincode = "invokechaincode"
    noop = "noop"
    log = "log"
    actreturn = "actreturn"


@dataclass(frozen=True)
class ActivityDefinition:
    kind: ActivityKind
    ref: str
    # may carry several unguarded outgoing links without a branch node
    fans_out: bool = False
    # declares a ledger result schema
    ledger: bool = False
    # input mapping is emitted as the `mappings` setting
    returns_mappings: bool = False

    @property
    def sequence_prefix(self) -> str:
        return self.ref.lstrip("#")


NOOP_REF = "#noop"

BUILTIN_ACTIVITIES: tuple[ActivityDefinition, ...] = (
    ActivityDefinition(ActivityKind.get, "#get", ledger=True),
    ActivityDefinition(ActivityKind.put, "#put", ledger=True),
    ActivityDefinition(ActivityKind.delete, "#delete", ledger=True),
    ActivityDefinition(ActivityKind.gethistory, "#gethistory"),
    ActivityDefinition(ActivityKind.endorsement, "#endorsement"),
    ActivityDefinition(ActivityKind.setevent, "#setevent"),
    ActivityDefinition(ActivityKind.invokechaincode, "#invokechaincode"),
    ActivityDefinition(ActivityKind.noop, NOOP_REF, fans_out=True),
    ActivityDefinition(ActivityKind.log, "#log", fans_out=True),
    ActivityDefinition(ActivityKind.actreturn, "#actreturn", returns_mappings=True),
)


class ActivityRegistry:
    """
    Maps flow refs to activity definitions.
    """

    def __init__(self, initial: Iterable[ActivityDefinition] | None = None) -> None:
        self._activities: Dict[str, ActivityDefinition] = {}
        for definition in BUILTIN_ACTIVITIES if initial is None else initial:
            self.register(definition)

    def register(self, definition: ActivityDefinition) -> None:
        self._activities[definition.ref] = definition

    def get(self, ref: str) -> ActivityDefinition:
        try:
            return self._activities[ref]
        except KeyError as exc:
            raise ActivityNotFoundError(f"Activity '{ref}' is not registered") from exc

    def maybe_get(self, ref: str) -> Optional[ActivityDefinition]:
        return self._activities.get(ref)

    def all(self) -> List[ActivityDefinition]:
        return list(self._activities.values())

    @property
    def noop(self) -> ActivityDefinition:
        return self.get(NOOP_REF)


__all__ = [
    "ActivityDefinition",
    "ActivityKind",
    "ActivityRegistry",
    "BUILTIN_ACTIVITIES",
    "NOOP_REF",
]
