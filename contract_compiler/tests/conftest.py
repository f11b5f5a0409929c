from __future__ import annotations

import copy
from typing import Any

import pytest

from contract_compiler.registry.activity_registry import ActivityRegistry
from contract_compiler.tests.factories import SAMPLE_CONTRACT


@pytest.fixture
def sample_contract() -> dict[str, Any]:
    return copy.deepcopy(SAMPLE_CONTRACT)


@pytest.fixture
def activities() -> ActivityRegistry:
    return ActivityRegistry()
