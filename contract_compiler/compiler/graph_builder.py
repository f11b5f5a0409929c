"""
Stage 3 — Link a transaction's rules into a task graph.

Every action becomes a node named by its explicit name or by
``<activity>_<n>``. A rule whose condition names a prerequisite is attached
below that prerequisite; when the prerequisite cannot carry several unguarded
links itself, a single no-op branch node is inserted under it and every rule
branching from it fans out from that node. A rule whose prerequisite is empty
branches from a no-op start node that becomes the graph root.

A GraphBuilder holds the symbol table and sequence counters of one
transaction and is used for exactly one build.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from contract_compiler.errors import (
    AmbiguousEntryError,
    DuplicateNameError,
    UndefinedPrerequisiteError,
)
from contract_compiler.registry.activity_registry import ActivityDefinition, ActivityRegistry
from contract_compiler.schema.models import Action, Rule, Transaction


@dataclass(eq=False)
class Link:
    target: "TaskNode"
    expr: Optional[str] = None


@dataclass(eq=False)
class TaskNode:
    name: str
    activity: ActivityDefinition
    action: Optional[Action] = None
    links: List[Link] = field(default_factory=list)
    # no-op node inserted below this one for branching rules
    branch_point: Optional["TaskNode"] = None
    linked: bool = False

    @property
    def synthetic(self) -> bool:
        return self.action is None

    def link_to(self, target: "TaskNode", expr: Optional[str] = None) -> Link:
        link = Link(target=target, expr=expr or None)
        self.links.append(link)
        return link


@dataclass(frozen=True)
class TaskGraph:
    transaction: str
    root: Optional[TaskNode]
    nodes: Dict[str, TaskNode]

    def branch_nodes(self) -> List[TaskNode]:
        return [node for node in self.nodes.values() if node.synthetic]

    def depth_first(self) -> Tuple[List[TaskNode], List[Tuple[TaskNode, Link]]]:
        """
        Nodes in depth-first pre-order from the root, each once, and every edge
        in the order it is reached.
        """

        tasks: List[TaskNode] = []
        edges: List[Tuple[TaskNode, Link]] = []
        if self.root is None:
            return tasks, edges

        seen = {self.root}
        tasks.append(self.root)
        stack: List[Tuple[TaskNode, Iterator[Link]]] = [(self.root, iter(self.root.links))]
        while stack:
            node, pending = stack[-1]
            link = next(pending, None)
            if link is None:
                stack.pop()
                continue
            edges.append((node, link))
            if link.target in seen:
                continue
            seen.add(link.target)
            tasks.append(link.target)
            stack.append((link.target, iter(link.target.links)))
        return tasks, edges


def placeholder_expr(description: str) -> str:
    """Always-false expression that carries the condition text for a user to edit."""
    return '"changeme" == ' + json.dumps(description or "", ensure_ascii=False)


class GraphBuilder:
    def __init__(self, transaction: Transaction, activities: ActivityRegistry) -> None:
        self.transaction = transaction
        self._activities = activities
        self._nodes: Dict[str, TaskNode] = {}
        self._sequence: Dict[str, int] = {}
        self._root: Optional[TaskNode] = None
        self._start: Optional[TaskNode] = None
        self._built = False

    def build(self) -> TaskGraph:
        if self._built:
            raise RuntimeError("GraphBuilder instances build a single graph")
        self._built = True

        self._preregister()
        for rule in self.transaction.rules:
            self._link_rule(rule)
        return TaskGraph(transaction=self.transaction.name, root=self._root, nodes=dict(self._nodes))

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    def _preregister(self) -> None:
        for rule in self.transaction.rules:
            for action in rule.actions:
                activity = self._activities.get(action.activity)
                if action.name is None:
                    continue
                if action.name in self._nodes:
                    raise DuplicateNameError(
                        f"Action name '{action.name}' is used more than once "
                        f"in transaction '{self.transaction.name}'"
                    )
                self._nodes[action.name] = TaskNode(action.name, activity, action)

                prefix = activity.sequence_prefix
                match = re.fullmatch(re.escape(prefix) + r"_(\d+)", action.name)
                if match:
                    seq = int(match.group(1))
                    if self._sequence.get(prefix, 0) < seq:
                        self._sequence[prefix] = seq

    def next_name(self, activity: ActivityDefinition) -> str:
        prefix = activity.sequence_prefix
        while True:
            seq = self._sequence.get(prefix, 0) + 1
            self._sequence[prefix] = seq
            name = f"{prefix}_{seq}"
            # an explicit name may follow another kind's pattern
            if name not in self._nodes:
                return name

    def _new_noop(self) -> TaskNode:
        activity = self._activities.noop
        node = TaskNode(self.next_name(activity), activity, linked=True)
        self._nodes[node.name] = node
        return node

    # ------------------------------------------------------------------
    # Linking
    # ------------------------------------------------------------------

    def resolve_branch(self, prerequisite: str) -> TaskNode:
        """
        Return the node that a rule branching from `prerequisite` attaches to.
        """

        if not prerequisite:
            if self._start is None:
                if self._root is not None:
                    raise AmbiguousEntryError(
                        f"Transaction '{self.transaction.name}' branches from the start "
                        f"after '{self._root.name}' was already used as its entry point"
                    )
                self._start = self._new_noop()
                self._root = self._start
            return self._start

        node = self._nodes.get(prerequisite)
        if node is None or not node.linked:
            raise UndefinedPrerequisiteError(
                f"Prerequisite action '{prerequisite}' is not defined before it is "
                f"referenced in transaction '{self.transaction.name}'"
            )
        if node.activity.fans_out:
            return node
        if node.branch_point is None:
            noop = self._new_noop()
            node.link_to(noop)
            node.branch_point = noop
        return node.branch_point

    def _link_rule(self, rule: Rule) -> None:
        prev: Optional[TaskNode] = None
        expr: Optional[str] = None
        if rule.condition is not None:
            prev = self.resolve_branch(rule.condition.prerequisite)
            expr = rule.condition.expr or placeholder_expr(
                rule.condition.description or rule.description or ""
            )
        for action in rule.actions:
            prev = self._link_action(action, prev, expr)
            # only the edge entering the rule carries its condition
            expr = None

    def _link_action(self, action: Action, prev: Optional[TaskNode], expr: Optional[str]) -> TaskNode:
        if action.name is None:
            activity = self._activities.get(action.activity)
            node = TaskNode(self.next_name(activity), activity, action)
            self._nodes[node.name] = node
        else:
            node = self._nodes[action.name]

        if prev is None:
            if self._root is not None:
                raise AmbiguousEntryError(
                    f"Transaction '{self.transaction.name}' has more than one entry point: "
                    f"'{self._root.name}' and '{node.name}'"
                )
            self._root = node
        else:
            prev.link_to(node, expr)
        node.linked = True
        return node


def build_task_graph(transaction: Transaction, activities: ActivityRegistry) -> TaskGraph:
    return GraphBuilder(transaction, activities).build()
