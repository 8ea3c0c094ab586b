"""Tests for the generation pipeline."""

import pytest

from typestate.core import ir
from typestate.core.errors import SchemaConflictError
from typestate.core.pipeline import generate, generate_all, generate_or_raise
from typestate.core.validator import ConflictRule


def _field(name: str, type_expr: str = "str", **kwargs: object) -> ir.FieldSpec:
    return ir.FieldSpec(name=name, storage_type=type_expr, **kwargs)


@pytest.fixture
def broken_struct() -> ir.StructSpec:
    return ir.StructSpec(
        name="Broken",
        fields=[_field("id", "int", required=True, default_expression="0")],
    )


def test_generate_valid(user_struct: ir.StructSpec) -> None:
    result = generate(user_struct)

    assert result.ok
    assert result.conflicts == []
    assert result.declarations is not None
    assert result.declarations.struct_name == "User"


def test_generate_conflicts_yield_no_declarations(broken_struct: ir.StructSpec) -> None:
    result = generate(broken_struct)

    assert not result.ok
    assert result.declarations is None
    assert [c.rule for c in result.conflicts] == [ConflictRule.REQUIRED_WITH_DEFAULT]


def test_batch_structs_are_independent(
    user_struct: ir.StructSpec, broken_struct: ir.StructSpec, config_struct: ir.StructSpec
) -> None:
    results = generate_all([user_struct, broken_struct, config_struct])

    assert [r.struct_name for r in results] == ["User", "Broken", "Config"]
    assert [r.ok for r in results] == [True, False, True]


def test_generate_or_raise(broken_struct: ir.StructSpec, user_struct: ir.StructSpec) -> None:
    assert generate_or_raise(user_struct).struct_name == "User"

    with pytest.raises(SchemaConflictError) as exc_info:
        generate_or_raise(broken_struct)

    assert exc_info.value.struct_name == "Broken"
    assert len(exc_info.value.conflicts) == 1
    assert "required_with_default" in str(exc_info.value)
