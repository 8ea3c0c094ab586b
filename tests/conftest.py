"""Shared pytest fixtures for typestate tests."""

import sys
import types
import uuid
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from typestate.core import ir


def _field(name: str, type_expr: str = "str", **kwargs: object) -> ir.FieldSpec:
    """Build a FieldSpec with a string storage type."""
    return ir.FieldSpec(name=name, storage_type=type_expr, **kwargs)


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def user_struct() -> ir.StructSpec:
    """Two required fields and one optional field with a default."""
    return ir.StructSpec(
        name="User",
        fields=[
            _field("name", required=True),
            _field("email", required=True),
            _field("age", "int", default_expression="0"),
        ],
    )


@pytest.fixture
def optional_only_struct() -> ir.StructSpec:
    """No required fields: one state, build available immediately."""
    return ir.StructSpec(
        name="RetryPolicy",
        fields=[_field("retries", "int", default_expression="3")],
    )


@pytest.fixture
def config_struct() -> ir.StructSpec:
    """Struct named Config with required host and port."""
    return ir.StructSpec(
        name="Config",
        fields=[
            _field("host", required=True),
            _field("port", "int", required=True),
            _field("timeout", "float", default_expression="30.0"),
            _field("tags", "list[str]"),
        ],
    )


@pytest.fixture
def load_generated() -> Iterator[Callable[[str], types.ModuleType]]:
    """
    Execute generated source as a throwaway module.

    The module is registered in sys.modules while the test runs so that
    dataclasses can resolve string annotations.
    """
    names: list[str] = []

    def _load(source: str) -> types.ModuleType:
        name = f"typestate_generated_{uuid.uuid4().hex}"
        module = types.ModuleType(name)
        sys.modules[name] = module
        names.append(name)
        exec(compile(source, f"<{name}>", "exec"), module.__dict__)
        return module

    yield _load

    for name in names:
        sys.modules.pop(name, None)
