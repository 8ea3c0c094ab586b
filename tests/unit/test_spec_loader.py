"""Tests for loading schema documents."""

import json
from pathlib import Path

import pytest

from typestate.core import ir
from typestate.core.errors import SchemaLoadError
from typestate.core.spec_loader import load_schema, parse_field, parse_schema


class TestYamlFixture:
    @pytest.fixture
    def structs(self, fixtures_dir: Path) -> list[ir.StructSpec]:
        return load_schema(fixtures_dir / "shop.yaml")

    def test_struct_names(self, structs: list[ir.StructSpec]) -> None:
        assert [s.name for s in structs] == ["Customer", "Order"]

    def test_customer(self, structs: list[ir.StructSpec]) -> None:
        customer = structs[0]

        assert customer.doc == "A shop customer."
        assert customer.type_imports == ["from decimal import Decimal"]
        assert [f.name for f in customer.required_fields] == ["name", "email"]

        email = customer.get_field("email")
        assert email is not None
        assert email.converter == ir.Converter(
            parameter="raw", parameter_type="str", body="raw.strip().lower()"
        )
        assert email.declared_attributes == ("required", "converter")

        credit = customer.get_field("credit")
        assert credit is not None
        assert credit.default_expression == "Decimal('0')"

    def test_order_struct_attributes(self, structs: list[ir.StructSpec]) -> None:
        order = structs[1]

        assert order.struct_setter_prefix == "with_"
        assert order.build_method_name == "place"
        assert order.declared_attributes == ("setter_prefix", "build_method")
        assert order.entry_point is not None
        assert order.entry_point.name == "order_id"
        assert order.get_field("quantity").auto_convert is True  # type: ignore[union-attr]
        assert order.get_field("note").storage_type.is_optional  # type: ignore[union-attr]


def test_json_document(tmp_path: Path) -> None:
    path = tmp_path / "point.json"
    path.write_text(
        json.dumps(
            {
                "structs": [
                    {
                        "name": "Point",
                        "attributes": {"const": True},
                        "fields": [
                            {"name": "x", "type": "int", "attributes": ["required"]},
                            {"name": "y", "type": "int", "attributes": [{"default": 0}]},
                        ],
                    }
                ]
            }
        )
    )
    [point] = load_schema(path)

    assert point.const_mode
    assert point.get_field("y").default_expression == "0"  # type: ignore[union-attr]


def test_toml_document(tmp_path: Path) -> None:
    path = tmp_path / "box.toml"
    path.write_text(
        """
[[structs]]
name = "Box"
generics = [{ name = "T", bound = "Hashable" }]
visibility = "private"

[[structs.fields]]
name = "item"
type = "T"
attributes = ["required", { setter_name = "put" }]
"""
    )
    [box] = load_schema(path)

    assert box.visibility == ir.Visibility.PRIVATE
    assert box.generic_parameters == [ir.GenericParam(name="T", bound="Hashable")]
    assert box.fields[0].setter_name_override == "put"


def test_duplicate_attributes_are_kept() -> None:
    field = parse_field(
        {"name": "a", "type": "int", "attributes": [{"default": 1}, {"default": 2}]}
    )
    assert field.declared_attributes == ("default", "default")


def test_function_converter() -> None:
    field = parse_field(
        {
            "name": "delay",
            "type": "float",
            "attributes": [{"converter": {"function": "parse", "module": "myapp.units", "type": "str"}}],
        }
    )
    assert field.converter is not None
    assert not field.converter.is_inline
    assert field.converter.parameter is None


def test_string_defaults_are_expressions() -> None:
    field = parse_field({"name": "host", "type": "str", "attributes": [{"default": "'localhost'"}]})
    assert field.default_expression == "'localhost'"


def test_empty_document(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_schema(path) == []


class TestLoadErrors:
    def test_unknown_field_attribute(self) -> None:
        with pytest.raises(SchemaLoadError, match="Unknown field attribute 'requried'"):
            parse_schema(
                {"structs": [{"name": "S", "fields": [{"name": "a", "type": "int", "attributes": ["requried"]}]}]}
            )

    def test_unknown_struct_attribute(self) -> None:
        with pytest.raises(SchemaLoadError, match="Unknown struct attribute"):
            parse_schema({"structs": [{"name": "S", "attributes": ["frozen"], "fields": []}]})

    def test_field_without_type(self) -> None:
        with pytest.raises(SchemaLoadError, match="'name' and a 'type'"):
            parse_schema({"structs": [{"name": "S", "fields": [{"name": "a"}]}]})

    def test_bad_type_expression(self) -> None:
        with pytest.raises(SchemaLoadError, match="Invalid field"):
            parse_field({"name": "a", "type": "list["})

    def test_wrong_value_type(self) -> None:
        with pytest.raises(SchemaLoadError, match="expects a boolean"):
            parse_field({"name": "a", "type": "int", "attributes": [{"required": "yes"}]})

    def test_unsupported_suffix(self, tmp_path: Path) -> None:
        path = tmp_path / "schema.txt"
        path.write_text("structs: []")
        with pytest.raises(SchemaLoadError, match="Unsupported schema format"):
            load_schema(path)

    def test_malformed_yaml_carries_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("structs: [unclosed")
        with pytest.raises(SchemaLoadError) as exc_info:
            load_schema(path)

        assert exc_info.value.context is not None
        assert exc_info.value.context.file == path
        assert "Malformed schema document" in str(exc_info.value)

    def test_error_context_names_field(self, tmp_path: Path) -> None:
        path = tmp_path / "s.yaml"
        path.write_text("structs:\n  - name: S\n    fields:\n      - {name: a, type: int, attributes: [bogus]}\n")
        with pytest.raises(SchemaLoadError) as exc_info:
            load_schema(path)

        assert "struct S, field a" in str(exc_info.value)
