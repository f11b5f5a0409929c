from __future__ import annotations

import pytest

from contract_compiler.compiler.graph_builder import GraphBuilder, build_task_graph
from contract_compiler.errors import (
    ActivityNotFoundError,
    AmbiguousEntryError,
    DuplicateNameError,
    GraphError,
    UndefinedPrerequisiteError,
)
from contract_compiler.registry.activity_registry import ActivityDefinition, ActivityKind, ActivityRegistry
from contract_compiler.tests.factories import action, make_transaction, rule


def _edges(graph) -> list[tuple[str, str, str | None]]:
    _, edges = graph.depth_first()
    return [(source.name, link.target.name, link.expr) for source, link in edges]


def test_sequential_actions_get_generated_names(activities: ActivityRegistry) -> None:
    tx = make_transaction([rule(action("#get"), action("#put"), action("#get"), action("#actreturn"))])

    graph = build_task_graph(tx, activities)
    nodes, _ = graph.depth_first()

    assert [n.name for n in nodes] == ["get_1", "put_1", "get_2", "actreturn_1"]
    assert graph.root is nodes[0]
    assert _edges(graph) == [
        ("get_1", "put_1", None),
        ("put_1", "get_2", None),
        ("get_2", "actreturn_1", None),
    ]


def test_generated_names_skip_explicit_sequence_names(activities: ActivityRegistry) -> None:
    tx = make_transaction(
        [
            rule(action("#get"), action("#put")),
            rule(action("#get", name="get_7"), prerequisite="put_1", expr="true"),
            rule(action("#get"), prerequisite="get_7", expr="true"),
        ]
    )

    graph = build_task_graph(tx, activities)

    assert set(graph.nodes) >= {"get_8", "get_9", "get_7", "put_1"}
    assert "get_1" not in graph.nodes


def test_generated_name_never_reuses_other_kind_pattern(activities: ActivityRegistry) -> None:
    # an explicit #put named like a #get sequence name
    tx = make_transaction([rule(action("#put", name="get_1"), action("#get"))])

    graph = build_task_graph(tx, activities)

    assert [n.name for n in graph.depth_first()[0]] == ["get_1", "get_2"]
    assert graph.nodes["get_1"].activity.ref == "#put"


def test_rules_sharing_prerequisite_fan_out_from_one_branch_node(activities: ActivityRegistry) -> None:
    tx = make_transaction(
        [
            rule(action("#get", name="lookup")),
            rule(action("#put"), prerequisite="lookup", expr="a"),
            rule(action("#delete"), prerequisite="lookup", expr="b"),
            rule(action("#actreturn"), prerequisite="lookup", expr="c"),
        ]
    )

    graph = build_task_graph(tx, activities)
    branches = graph.branch_nodes()

    assert len(branches) == 1
    branch = branches[0]
    assert branch.name == "noop_1"
    assert [link.target.name for link in graph.nodes["lookup"].links] == ["noop_1"]
    assert [(link.target.name, link.expr) for link in branch.links] == [
        ("put_1", "a"),
        ("delete_1", "b"),
        ("actreturn_1", "c"),
    ]


def test_fan_out_kinds_need_no_branch_node(activities: ActivityRegistry) -> None:
    tx = make_transaction(
        [
            rule(action("#log", name="audit")),
            rule(action("#put"), prerequisite="audit", expr="x > 1"),
            rule(action("#delete"), prerequisite="audit", expr="x <= 1"),
        ]
    )

    graph = build_task_graph(tx, activities)

    assert graph.branch_nodes() == []
    assert [(link.target.name, link.expr) for link in graph.nodes["audit"].links] == [
        ("put_1", "x > 1"),
        ("delete_1", "x <= 1"),
    ]


def test_distinct_prerequisites_get_one_branch_node_each(activities: ActivityRegistry) -> None:
    tx = make_transaction(
        [
            rule(action("#get", name="first"), action("#get", name="second")),
            rule(action("#put"), prerequisite="first", expr="a"),
            rule(action("#put"), prerequisite="second", expr="b"),
        ]
    )

    graph = build_task_graph(tx, activities)

    assert [n.name for n in graph.branch_nodes()] == ["noop_1", "noop_2"]
    assert graph.nodes["first"].branch_point is graph.nodes["noop_1"]
    assert graph.nodes["second"].branch_point is graph.nodes["noop_2"]
    # the branch node is added after the existing sequence link
    assert [link.target.name for link in graph.nodes["first"].links] == ["second", "noop_1"]


def test_start_branches_share_a_start_node(activities: ActivityRegistry) -> None:
    tx = make_transaction(
        [
            rule(action("#get"), prerequisite="", expr="$flow.parameters.kind == 'a'"),
            rule(action("#put"), prerequisite="", description="kind is b"),
        ]
    )

    graph = build_task_graph(tx, activities)

    assert graph.root is graph.nodes["noop_1"]
    assert graph.root.synthetic
    assert _edges(graph) == [
        ("noop_1", "get_1", "$flow.parameters.kind == 'a'"),
        ("noop_1", "put_1", '"changeme" == "kind is b"'),
    ]


def test_condition_expression_only_on_first_edge(activities: ActivityRegistry) -> None:
    tx = make_transaction(
        [
            rule(action("#get", name="lookup")),
            rule(action("#put"), action("#setevent"), action("#actreturn"), prerequisite="lookup", expr="ok"),
        ]
    )

    graph = build_task_graph(tx, activities)

    assert _edges(graph) == [
        ("lookup", "noop_1", None),
        ("noop_1", "put_1", "ok"),
        ("put_1", "setevent_1", None),
        ("setevent_1", "actreturn_1", None),
    ]


def test_prerequisite_may_name_generated_action(activities: ActivityRegistry) -> None:
    tx = make_transaction([rule(action("#get")), rule(action("#put"), prerequisite="get_1", expr="ok")])

    graph = build_task_graph(tx, activities)

    assert graph.nodes["get_1"].branch_point is graph.nodes["noop_1"]


def test_undefined_prerequisite_is_rejected(activities: ActivityRegistry) -> None:
    tx = make_transaction([rule(action("#get")), rule(action("#put"), prerequisite="missing", expr="x")])

    with pytest.raises(UndefinedPrerequisiteError) as excinfo:
        build_task_graph(tx, activities)

    assert "missing" in str(excinfo.value)
    assert "testTx" in str(excinfo.value)


def test_prerequisite_defined_in_a_later_rule_is_rejected(activities: ActivityRegistry) -> None:
    tx = make_transaction(
        [
            rule(action("#get")),
            rule(action("#put"), prerequisite="later", expr="x"),
            rule(action("#delete", name="later"), prerequisite="get_1", expr="y"),
        ]
    )

    with pytest.raises(UndefinedPrerequisiteError):
        build_task_graph(tx, activities)


def test_duplicate_explicit_names_are_rejected(activities: ActivityRegistry) -> None:
    tx = make_transaction(
        [
            rule(action("#get", name="read")),
            rule(action("#put", name="read"), prerequisite="read", expr="x"),
        ]
    )

    with pytest.raises(DuplicateNameError):
        build_task_graph(tx, activities)


def test_second_entry_point_is_rejected(activities: ActivityRegistry) -> None:
    tx = make_transaction([rule(action("#get")), rule(action("#put"))])

    with pytest.raises(AmbiguousEntryError):
        build_task_graph(tx, activities)


def test_start_branch_after_unconditioned_root_is_rejected(activities: ActivityRegistry) -> None:
    tx = make_transaction([rule(action("#get")), rule(action("#put"), prerequisite="", expr="x")])

    with pytest.raises(GraphError):
        build_task_graph(tx, activities)


def test_unknown_activity_is_rejected(activities: ActivityRegistry) -> None:
    tx = make_transaction([rule(action("#mystery"))])

    with pytest.raises(ActivityNotFoundError):
        build_task_graph(tx, activities)


def test_transaction_without_rules_has_empty_graph(activities: ActivityRegistry) -> None:
    graph = build_task_graph(make_transaction([]), activities)

    assert graph.root is None
    assert graph.nodes == {}
    assert graph.depth_first() == ([], [])


def test_builders_do_not_share_state(activities: ActivityRegistry) -> None:
    tx = make_transaction([rule(action("#get")), rule(action("#put"), prerequisite="get_1", expr="x")])

    first = build_task_graph(tx, activities)
    second = build_task_graph(tx, activities)

    assert list(first.nodes) == list(second.nodes) == ["get_1", "noop_1", "put_1"]
    assert first.nodes["get_1"] is not second.nodes["get_1"]


def test_builder_is_single_use(activities: ActivityRegistry) -> None:
    builder = GraphBuilder(make_transaction([rule(action("#get"))]), activities)
    builder.build()

    with pytest.raises(RuntimeError):
        builder.build()


def test_registered_activity_kinds_can_be_used() -> None:
    activities = ActivityRegistry(
        [ActivityDefinition(ActivityKind.noop, "#noop", fans_out=True), ActivityDefinition(ActivityKind.get, "#read")]
    )

    assert activities.maybe_get("#get") is None
    activities.register(ActivityDefinition(ActivityKind.put, "#write", ledger=True))
    assert [a.ref for a in activities.all()] == ["#noop", "#read", "#write"]

    graph = build_task_graph(make_transaction([rule(action("#read"), action("#write"))]), activities)

    assert list(graph.nodes) == ["read_1", "write_1"]
    assert graph.nodes["write_1"].activity is activities.maybe_get("#write")
