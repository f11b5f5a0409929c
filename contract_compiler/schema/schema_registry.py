"""
Registry of the reusable object schemas declared under ``components.schemas``.

Schemas are keyed by their in-document reference (``#/components/schemas/<name>``)
so that ``{"$ref": ...}`` markers can be looked up by exact match. The
registry expands every reference in place until no marker is left, and can
resolve the references of standalone documents (transaction returns, action
input schemas, ledger schemas) against the expanded entries.

A registry instance belongs to a single compilation: schemas derived while
emitting flows (array schemas exported by hash) are added to it.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, MutableMapping

from contract_compiler.errors import SchemaCycleError, SchemaError, UnresolvedRefError
from contract_compiler.logger import get_logger
from contract_compiler.schema.jsonschema_adapter import check_schema
from contract_compiler.schema.models import Components, JsonSchema

logger = get_logger(__name__)

REF_KEY = "$ref"
REF_PREFIX = "#/components/schemas/"
DEFAULT_MAX_PASSES = 10


def ref_name(ref: str) -> str:
    """Bare schema name of a reference, i.e. its last path segment."""
    return ref[ref.rfind("/") + 1:]


def fnv32(text: str) -> str:
    """32-bit FNV-1 hash of the UTF-8 text, as lowercase hex."""
    value = 0x811C9DC5
    for byte in text.encode("utf-8"):
        value = (value * 0x01000193) & 0xFFFFFFFF
        value ^= byte
    return format(value, "x")


class SchemaRegistry:
    """
    In-memory registry that maps schema references to JSON Schema documents.
    """

    def __init__(
        self,
        initial: MutableMapping[str, JsonSchema] | None = None,
        *,
        max_passes: int = DEFAULT_MAX_PASSES,
    ) -> None:
        self._schemas: Dict[str, JsonSchema] = {
            key: copy.deepcopy(value) for key, value in (initial or {}).items()
        }
        self._derived: Dict[str, JsonSchema] = {}
        self.max_passes = max_passes

    @classmethod
    def from_components(
        cls,
        components: Components | None,
        *,
        max_passes: int = DEFAULT_MAX_PASSES,
    ) -> "SchemaRegistry":
        """
        Build object schemas from the component definitions of a specification.

        Raises SchemaError when a component is not a consistent object schema.
        """

        initial: Dict[str, JsonSchema] = {}
        if components is not None:
            for name, schema in components.schemas.items():
                missing = [key for key in schema.required if key not in schema.properties]
                if missing:
                    raise SchemaError(
                        f"Schema '{name}' requires undeclared properties: {', '.join(missing)}"
                    )
                doc: JsonSchema = {"type": "object", "properties": copy.deepcopy(schema.properties)}
                if schema.required:
                    doc["required"] = list(schema.required)
                check_schema(doc, name=name)
                initial[REF_PREFIX + name] = doc
        return cls(initial, max_passes=max_passes)

    def register(self, schema_id: str, schema: JsonSchema) -> None:
        """
        Register (or override) a schema.
        """
        self._schemas[schema_id] = copy.deepcopy(schema)

    def has_schema(self, schema_id: str) -> bool:
        return schema_id in self._schemas

    def resolve_ref(self, ref: Any) -> JsonSchema:
        if not isinstance(ref, str):
            raise SchemaError(f"Schema reference must be a string, received {ref!r}")
        try:
            return self._schemas[ref]
        except KeyError as exc:
            raise UnresolvedRefError(f"Schema ref '{ref}' is not found") from exc

    # ------------------------------------------------------------------
    # Reference expansion
    # ------------------------------------------------------------------

    def expand_refs(self) -> int:
        """
        Replace every `$ref` in the registry with the referenced schema, one pass
        at a time, until a pass replaces nothing. Returns the number of documents
        changed across all passes, so an already expanded registry returns 0.
        """

        self._check_cycles()
        total = 0
        for attempt in range(1, self.max_passes + 1):
            count = sum(1 for doc in self._schemas.values() if self._expand(doc))
            logger.debug("pass %d replaced schema refs in %d documents", attempt, count)
            if count == 0:
                break
            total += count
        else:
            residual = [key for key, doc in self._schemas.items() if _collect_refs(doc)]
            if residual:
                raise UnresolvedRefError(
                    f"Schema refs remain after {self.max_passes} expansion passes in: "
                    + ", ".join(residual)
                )
        return total

    def _expand(self, node: Any) -> bool:
        replaced = False
        if isinstance(node, dict):
            items = node.items()
        elif isinstance(node, list):
            items = enumerate(node)
        else:
            return False
        for key, value in list(items):
            if isinstance(value, dict) and REF_KEY in value:
                node[key] = copy.deepcopy(self.resolve_ref(value[REF_KEY]))
                replaced = True
            elif self._expand(value):
                replaced = True
        return replaced

    def _check_cycles(self) -> None:
        edges = {key: _collect_refs(doc) for key, doc in self._schemas.items()}
        for targets in edges.values():
            for target in targets:
                self.resolve_ref(target)

        state: Dict[str, int] = {}
        path: List[str] = []

        def visit(key: str) -> None:
            state[key] = 1
            path.append(key)
            for target in edges.get(key, []):
                if state.get(target) == 1:
                    cycle = path[path.index(target):] + [target]
                    raise SchemaCycleError(
                        "Schema refs form a cycle: " + " -> ".join(ref_name(k) for k in cycle)
                    )
                if target not in state:
                    visit(target)
            path.pop()
            state[key] = 2

        for key in edges:
            if key not in state:
                visit(key)

    def expand_document(self, doc: Any) -> Any:
        """
        Return a copy of a standalone document with every `$ref` resolved against
        the registry. Fails on missing targets and on cyclic references.
        """

        return self._resolve(doc, ())

    def _resolve(self, node: Any, stack: tuple[str, ...]) -> Any:
        if isinstance(node, list):
            return [self._resolve(item, stack) for item in node]
        if not isinstance(node, dict):
            return node
        if REF_KEY in node:
            ref = node[REF_KEY]
            target = self.resolve_ref(ref)
            if ref in stack:
                cycle = stack[stack.index(ref):] + (ref,)
                raise SchemaCycleError(
                    "Schema refs form a cycle: " + " -> ".join(ref_name(k) for k in cycle)
                )
            return self._resolve(target, stack + (ref,))
        return {key: self._resolve(value, stack) for key, value in node.items()}

    # ------------------------------------------------------------------
    # Exported definitions
    # ------------------------------------------------------------------

    def register_derived(self, schema: JsonSchema, text: str) -> str:
        """
        Register a schema exported by hash of its JSON text; returns the key.
        """
        key = fnv32(text)
        self._derived[key] = copy.deepcopy(schema)
        return key

    def definitions(self) -> Dict[str, JsonSchema]:
        """
        Named schemas keyed by bare name, followed by derived schemas keyed by hash.
        """
        result = {ref_name(key): copy.deepcopy(doc) for key, doc in self._schemas.items()}
        for key, doc in self._derived.items():
            result[key] = copy.deepcopy(doc)
        return result

    def __len__(self) -> int:
        return len(self._schemas)


def _collect_refs(node: Any) -> List[str]:
    refs: List[str] = []
    if isinstance(node, dict):
        if REF_KEY in node and isinstance(node[REF_KEY], str):
            refs.append(node[REF_KEY])
        for key, value in node.items():
            if key != REF_KEY:
                refs.extend(_collect_refs(value))
    elif isinstance(node, list):
        for item in node:
            refs.extend(_collect_refs(item))
    return refs


def registry_from_mapping(schemas: Mapping[str, JsonSchema], **kwargs: Any) -> SchemaRegistry:
    """Build a registry from bare-named schemas, keyed as component references."""
    return SchemaRegistry({REF_PREFIX + name: doc for name, doc in schemas.items()}, **kwargs)
