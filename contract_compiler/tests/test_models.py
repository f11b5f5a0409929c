from __future__ import annotations

from typing import Any

import pytest

from contract_compiler.compiler.parse import parse_contract_spec
from contract_compiler.errors import ParseError
from contract_compiler.schema.models import Action, Contract, Parameter, to_snake_case
from contract_compiler.tests.factories import make_transaction


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", ""),
        ("already_snake", "already_snake"),
        ("A", "a"),
        ("AA", "aa"),
        ("AaAa", "aa_aa"),
        ("HTTPRequest", "http_request"),
        ("BatteryLifeValue", "battery_life_value"),
        ("Id0Value", "id0_value"),
        ("ID0Value", "id0_value"),
        ("initMarble", "init_marble"),
        ("transfer-marble", "transfer_marble"),
    ],
)
def test_to_snake_case(text: str, expected: str) -> None:
    assert to_snake_case(text) == expected


def test_transaction_resource_ids() -> None:
    tx = make_transaction([], name="transferMarblesBasedOnColor")

    assert tx.resource_id == "flow:transfer_marbles_based_on_color"
    assert tx.flow_uri == "res://flow:transfer_marbles_based_on_color"


def test_parameter_json_type() -> None:
    assert Parameter.model_validate({"name": "size", "schema": {"type": "integer"}}).json_type == "integer"
    assert Parameter.model_validate({"name": "tags", "schema": {"type": ["string", "null"]}}).json_type is None
    assert Parameter(name="raw").json_type is None


def test_blank_action_name_is_anonymous() -> None:
    assert Action.model_validate({"activity": "#get", "name": "  "}).name is None
    assert Action.model_validate({"activity": "#get", "name": "read"}).name == "read"


def test_contains_parameter() -> None:
    tx = make_transaction([], parameters=[{"name": "owner"}])

    assert tx.contains_parameter("owner")
    assert not tx.contains_parameter("size")


def test_cid_attributes() -> None:
    assert Contract(cid=" alias ,email,").cid_attributes == ["alias", "email"]
    assert Contract().cid_attributes == []


def _spec(transactions: list[dict[str, Any]]) -> dict[str, Any]:
    return {"info": {"title": "t", "version": "1"}, "contracts": {"cc": {"transactions": transactions}}}


def test_duplicate_parameter_names_are_rejected() -> None:
    spec = _spec([{"name": "tx", "parameters": [{"name": "a"}, {"name": "a"}]}])

    with pytest.raises(ParseError) as excinfo:
        parse_contract_spec(spec)

    assert "parameter 'a'" in str(excinfo.value)


def test_transactions_mapping_to_one_flow_are_rejected() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_contract_spec(_spec([{"name": "getMarble"}, {"name": "get_marble"}]))

    assert "flow:get_marble" in str(excinfo.value)


def test_action_needs_activity() -> None:
    with pytest.raises(ParseError):
        parse_contract_spec(_spec([{"name": "tx", "rules": [{"actions": [{"name": "a"}]}]}]))
