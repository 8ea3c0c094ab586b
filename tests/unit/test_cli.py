"""Tests for the typestate CLI commands."""

import json
import shutil
import tomllib
from pathlib import Path

import pytest
from typer.testing import CliRunner

from typestate.cli import app

runner = CliRunner()


@pytest.fixture
def shop_schema(fixtures_dir: Path) -> Path:
    return fixtures_dir / "shop.yaml"


@pytest.fixture
def broken_schema(fixtures_dir: Path) -> Path:
    return fixtures_dir / "broken.yaml"


class TestValidateCommand:
    def test_valid_schema(self, shop_schema: Path) -> None:
        result = runner.invoke(app, ["validate", str(shop_schema)])

        assert result.exit_code == 0
        assert "2 struct(s) valid" in result.output

    def test_conflicts_exit_nonzero(self, broken_schema: Path) -> None:
        result = runner.invoke(app, ["validate", str(broken_schema)])

        assert result.exit_code == 1
        assert "required_with_default" in result.output
        assert "skip_setter_with_setter_name" in result.output

    def test_json_format(self, broken_schema: Path) -> None:
        result = runner.invoke(app, ["validate", str(broken_schema), "--format", "json"])

        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["structs"] == ["Account"]
        assert {c["rule"] for c in data["conflicts"]} == {
            "required_with_default",
            "skip_setter_with_setter_name",
        }
        assert all(c["struct"] == "Account" for c in data["conflicts"])

    def test_missing_schema_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["validate", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1
        assert "Cannot read schema" in result.output


class TestGenerateCommand:
    def test_writes_module(self, shop_schema: Path, tmp_path: Path, load_generated) -> None:
        output = tmp_path / "out" / "builders.py"
        result = runner.invoke(app, ["generate", str(shop_schema), "--output", str(output)])

        assert result.exit_code == 0
        assert output.exists()

        module = load_generated(output.read_text())
        customer = module.CustomerBuilder.new().name("Ann").email("  ANN@Example.com ").build()
        assert customer.email == "ann@example.com"
        assert customer.tags == []

        order = module.OrderBuilder.with_order_id(7).with_quantity("3").place()
        assert order == module.Order(order_id=7, quantity=3, note=None)

    def test_stdout(self, shop_schema: Path) -> None:
        result = runner.invoke(app, ["generate", str(shop_schema), "--no-header"])

        assert result.exit_code == 0
        assert "AUTO-GENERATED" not in result.output
        assert "class CustomerBuilder:" in result.output

    def test_conflicts_write_nothing(
        self, shop_schema: Path, broken_schema: Path, tmp_path: Path
    ) -> None:
        output = tmp_path / "builders.py"
        result = runner.invoke(
            app, ["generate", str(shop_schema), str(broken_schema), "-o", str(output)]
        )

        assert result.exit_code == 1
        assert "1 of 3 struct(s) rejected" in result.output
        assert not output.exists()

    def test_from_manifest(self, shop_schema: Path, tmp_path: Path) -> None:
        (tmp_path / "schemas").mkdir()
        shutil.copy(shop_schema, tmp_path / "schemas" / "shop.yaml")
        manifest = tmp_path / "typestate.toml"
        manifest.write_text(
            '[generate]\nschemas = ["schemas/*.yaml"]\noutput = "gen/builders.py"\n\n'
            '[defaults]\nbuild_method = "create"\n'
        )

        result = runner.invoke(app, ["generate", "--manifest", str(manifest)])

        assert result.exit_code == 0
        content = (tmp_path / "gen" / "builders.py").read_text()
        # Customer takes the manifest default; Order declares its own.
        assert "def create(self) -> Customer:" in content
        assert "def place(self) -> Order:" in content

    def test_no_schemas(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["generate"])

        assert result.exit_code == 1
        assert "No schema files given" in result.output


class TestInspectCommand:
    def test_inspect_struct(self, shop_schema: Path) -> None:
        result = runner.invoke(app, ["inspect", str(shop_schema), "--struct", "Order"])

        assert result.exit_code == 0
        assert "Order: 4 state(s)" in result.output
        assert "Customer" not in result.output

    def test_unknown_struct(self, shop_schema: Path) -> None:
        result = runner.invoke(app, ["inspect", str(shop_schema), "-s", "Nope"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_invalid_struct(self, broken_schema: Path) -> None:
        result = runner.invoke(app, ["inspect", str(broken_schema)])

        assert result.exit_code == 1
        assert "required_with_default" in result.output


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "typestate version" in result.output


def test_version_matches_pyproject() -> None:
    pyproject = Path(__file__).resolve().parents[2] / "pyproject.toml"
    with pyproject.open("rb") as f:
        expected = tomllib.load(f)["project"]["version"]

    result = runner.invoke(app, ["--version"])
    assert f"typestate version {expected}" in result.output
