"""Tests for typestate.toml loading."""

from pathlib import Path

import pytest

from typestate.core import ir
from typestate.core.errors import ManifestError
from typestate.core.manifest import DefaultsConfig, apply_defaults, load_manifest


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "typestate.toml"
    path.write_text(content)
    return path


def test_load_manifest(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
[project]
name = "shop"

[generate]
schemas = ["schemas/*.yaml", "extra.json"]
output = "src/shop/builders.py"
header = false

[defaults]
setter_prefix = "with_"
build_method = "create"
""",
    )
    manifest = load_manifest(path)

    assert manifest.name == "shop"
    assert manifest.root == tmp_path
    assert manifest.generate.schemas == ["schemas/*.yaml", "extra.json"]
    assert manifest.generate.header is False
    assert manifest.output_path == tmp_path / "src/shop/builders.py"
    assert manifest.defaults.setter_prefix == "with_"
    assert manifest.defaults.auto_convert is None


def test_defaults_when_sections_missing(tmp_path: Path) -> None:
    manifest = load_manifest(_write(tmp_path, ""))

    assert manifest.name == tmp_path.name
    assert manifest.generate.schemas == []
    assert manifest.generate.header is True
    assert manifest.output_path is None


def test_schema_paths_expand_globs(tmp_path: Path) -> None:
    schemas = tmp_path / "schemas"
    schemas.mkdir()
    (schemas / "b.yaml").write_text("structs: []")
    (schemas / "a.yaml").write_text("structs: []")
    path = _write(tmp_path, '[generate]\nschemas = ["schemas/*.yaml", "schemas/a.yaml"]\n')

    assert load_manifest(path).schema_paths() == [schemas / "a.yaml", schemas / "b.yaml"]


def test_missing_manifest(tmp_path: Path) -> None:
    with pytest.raises(ManifestError, match="not found"):
        load_manifest(tmp_path / "typestate.toml")


def test_malformed_manifest(tmp_path: Path) -> None:
    with pytest.raises(ManifestError, match="Malformed"):
        load_manifest(_write(tmp_path, "[generate\n"))


def test_wrongly_typed_default(tmp_path: Path) -> None:
    with pytest.raises(ManifestError, match="auto_convert must be a boolean"):
        load_manifest(_write(tmp_path, '[defaults]\nauto_convert = "yes"\n'))


class TestApplyDefaults:
    def test_fills_undeclared_attributes(self) -> None:
        struct = ir.StructSpec(name="S", fields=[ir.FieldSpec(name="a", storage_type="int")])
        updated = apply_defaults(
            struct, DefaultsConfig(setter_prefix="with_", auto_convert=True, build_method="create")
        )

        assert updated.struct_setter_prefix == "with_"
        assert updated.struct_auto_convert is True
        assert updated.build_method_name == "create"
        assert struct.struct_setter_prefix is None

    def test_declared_attributes_win(self) -> None:
        struct = ir.StructSpec(
            name="S",
            fields=[ir.FieldSpec(name="a", storage_type="int")],
            build_method_name="finish",
            declared_attributes=("build_method",),
        )
        updated = apply_defaults(struct, DefaultsConfig(build_method="create"))

        assert updated.build_method_name == "finish"

    def test_no_defaults_returns_same_struct(self) -> None:
        struct = ir.StructSpec(name="S", fields=[ir.FieldSpec(name="a", storage_type="int")])
        assert apply_defaults(struct, DefaultsConfig()) is struct
