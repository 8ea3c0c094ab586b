"""Package version: pyproject.toml in a source checkout, else installed metadata."""

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _read_version() -> str:
    if _PYPROJECT.is_file():
        with _PYPROJECT.open("rb") as f:
            project = tomllib.load(f).get("project", {})
        if project.get("name") == "typestate" and "version" in project:
            return str(project["version"])
    try:
        return version("typestate")
    except PackageNotFoundError:
        return "0.0.0+unknown"


__version__ = _read_version()
