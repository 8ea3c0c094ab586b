"""Tests for the typestate IR models."""

import pytest
from pydantic import ValidationError

from typestate.core import ir
from typestate.core.strings import is_identifier, snake_to_pascal


def _field(name: str, type_expr: str = "str", **kwargs: object) -> ir.FieldSpec:
    return ir.FieldSpec(name=name, storage_type=type_expr, **kwargs)


class TestTypeRef:
    def test_coerces_string(self) -> None:
        field = _field("tags", "list[str]")
        assert field.storage_type == ir.TypeRef(expr="list[str]")
        assert str(field.storage_type) == "list[str]"

    def test_rejects_invalid_expression(self) -> None:
        with pytest.raises(ValidationError):
            ir.TypeRef(expr="list[")

    @pytest.mark.parametrize(
        "expr, optional, inner",
        [
            ("int", False, "int"),
            ("int | None", True, "int"),
            ("None | int", True, "int"),
            ("Optional[Path]", True, "Path"),
            ("str | int | None", True, "str | int"),
            ("list[int | None]", False, "list[int | None]"),
            ("Union[int, None]", True, "int"),
        ],
    )
    def test_optionality(self, expr: str, optional: bool, inner: str) -> None:
        ref = ir.TypeRef(expr=expr)
        assert ref.is_optional is optional
        assert ref.inner == inner

    @pytest.mark.parametrize(
        "expr, union",
        [
            ("int", False),
            ("int | None", False),
            ("int | str", True),
            ("int | str | None", True),
            ("Union[int, str]", True),
            ("Optional[int]", False),
            ("list[int | str]", False),
        ],
    )
    def test_is_union(self, expr: str, union: bool) -> None:
        assert ir.TypeRef(expr=expr).is_union is union

    @pytest.mark.parametrize(
        "expr, constructor",
        [
            ("int", "int"),
            ("list[str]", "list"),
            ("Path | None", "Path"),
            ("pathlib.Path", "pathlib.Path"),
        ],
    )
    def test_constructor(self, expr: str, constructor: str) -> None:
        assert ir.TypeRef(expr=expr).constructor == constructor


class TestStructSpec:
    def test_required_and_optional_fields(self, config_struct: ir.StructSpec) -> None:
        assert [f.name for f in config_struct.required_fields] == ["host", "port"]
        assert [f.name for f in config_struct.optional_fields] == ["timeout", "tags"]

    def test_generated_names(self, user_struct: ir.StructSpec) -> None:
        assert user_struct.builder_name == "UserBuilder"
        assert user_struct.state_base_name == "UserState"

    def test_models_are_frozen(self, user_struct: ir.StructSpec) -> None:
        with pytest.raises(ValidationError):
            user_struct.name = "Other"  # type: ignore[misc]

    def test_entry_point_requires_single_claim(self) -> None:
        single = ir.StructSpec(name="S", fields=[_field("a", required=True, is_entry_point=True)])
        double = ir.StructSpec(
            name="S",
            fields=[
                _field("a", required=True, is_entry_point=True),
                _field("b", required=True, is_entry_point=True),
            ],
        )
        assert single.entry_point is not None
        assert single.entry_point.name == "a"
        assert double.entry_point is None

    def test_get_field(self, user_struct: ir.StructSpec) -> None:
        assert user_struct.get_field("email") is not None
        assert user_struct.get_field("missing") is None


class TestSetterNames:
    def test_plain_field_name(self) -> None:
        struct = ir.StructSpec(name="S", fields=[_field("host")])
        assert struct.effective_setter_name(struct.fields[0]) == "host"

    def test_struct_prefix(self) -> None:
        struct = ir.StructSpec(name="S", fields=[_field("host")], struct_setter_prefix="with_")
        assert struct.effective_setter_name(struct.fields[0]) == "with_host"

    def test_field_prefix_wins(self) -> None:
        struct = ir.StructSpec(
            name="S",
            fields=[_field("host", setter_prefix_override="set_")],
            struct_setter_prefix="with_",
        )
        assert struct.effective_setter_name(struct.fields[0]) == "set_host"

    def test_custom_name_used_verbatim(self) -> None:
        struct = ir.StructSpec(
            name="S",
            fields=[_field("host", setter_name_override="hostname", setter_prefix_override="set_")],
            struct_setter_prefix="with_",
        )
        assert struct.effective_setter_name(struct.fields[0]) == "hostname"

    def test_effective_auto_convert(self) -> None:
        struct = ir.StructSpec(
            name="S",
            fields=[_field("a"), _field("b", auto_convert=False)],
            struct_auto_convert=True,
        )
        assert struct.effective_auto_convert(struct.fields[0])
        assert not struct.effective_auto_convert(struct.fields[1])


class TestStrings:
    @pytest.mark.parametrize(
        "name, expected",
        [("api_key", "ApiKey"), ("_private_field", "PrivateField"), ("x2", "X2"), ("name", "Name")],
    )
    def test_snake_to_pascal(self, name: str, expected: str) -> None:
        assert snake_to_pascal(name) == expected

    def test_is_identifier(self) -> None:
        assert is_identifier("name")
        assert not is_identifier("")
        assert not is_identifier("class")
        assert not is_identifier("2x")
