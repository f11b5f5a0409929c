from __future__ import annotations

import pytest
from pydantic import ValidationError

from contract_compiler.config import ArgumentStyle, CompilerSettings


def test_defaults() -> None:
    settings = CompilerSettings(_env_file=None)

    assert settings.include_schemas is True
    assert settings.argument_style == ArgumentStyle.delimited
    assert settings.app_model == "1.1.1"
    assert settings.trigger_id == "fabric_transaction"
    assert settings.max_ref_passes == 10


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CONTRACT2FLOW_ARGUMENT_STYLE", "attributes")
    monkeypatch.setenv("CONTRACT2FLOW_INCLUDE_SCHEMAS", "false")
    monkeypatch.setenv("CONTRACT2FLOW_MAX_REF_PASSES", "3")

    settings = CompilerSettings(_env_file=None)

    assert settings.argument_style == ArgumentStyle.attributes
    assert settings.include_schemas is False
    assert settings.max_ref_passes == 3


def test_max_ref_passes_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        CompilerSettings(_env_file=None, max_ref_passes=0)
