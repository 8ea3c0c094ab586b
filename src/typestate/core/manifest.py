"""
Project manifest (typestate.toml).

Example:

    [project]
    name = "shop"

    [generate]
    schemas = ["schemas/*.yaml"]
    output = "src/shop/builders.py"
    header = true

    [defaults]
    setter_prefix = "with_"
    build_method = "create"
"""

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ErrorContext, ManifestError
from .ir import StructSpec

logger = logging.getLogger(__name__)

MANIFEST_NAME = "typestate.toml"


@dataclass
class GenerateConfig:
    """Where schemas are read from and where the module is written."""

    schemas: list[str] = field(default_factory=list)  # files or globs, relative to the manifest
    output: str | None = None  # None writes to stdout
    header: bool = True


@dataclass
class DefaultsConfig:
    """Struct-level defaults for structs that do not declare the attribute."""

    setter_prefix: str | None = None
    auto_convert: bool | None = None
    build_method: str | None = None


@dataclass
class Manifest:
    """Parsed typestate.toml."""

    name: str
    root: Path
    generate: GenerateConfig = field(default_factory=GenerateConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)

    def schema_paths(self) -> list[Path]:
        """Resolve schema entries (files or globs) to sorted, unique paths."""
        paths: list[Path] = []
        for entry in self.generate.schemas:
            if any(ch in entry for ch in "*?["):
                matches = sorted(self.root.glob(entry))
                if not matches:
                    logger.warning("Schema pattern %s matched no files", entry)
                candidates = matches
            else:
                candidates = [self.root / entry]
            for p in candidates:
                if p not in paths:
                    paths.append(p)
        return paths

    @property
    def output_path(self) -> Path | None:
        if self.generate.output is None:
            return None
        return self.root / self.generate.output


def load_manifest(path: Path) -> Manifest:
    """
    Load typestate.toml.

    Raises:
        ManifestError: missing file, bad TOML, or wrongly typed values
    """
    if not path.exists():
        raise ManifestError(f"Manifest not found: {path}")
    try:
        data = tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as e:
        raise ManifestError(f"Malformed manifest: {e}", ErrorContext(file=path)) from e

    project = data.get("project", {})
    gen = data.get("generate", {})
    defaults = data.get("defaults", {})

    try:
        generate = GenerateConfig(
            schemas=[str(s) for s in gen.get("schemas", [])],
            output=gen.get("output"),
            header=bool(gen.get("header", True)),
        )
        defaults_config = DefaultsConfig(
            setter_prefix=defaults.get("setter_prefix"),
            auto_convert=defaults.get("auto_convert"),
            build_method=defaults.get("build_method"),
        )
    except (TypeError, AttributeError) as e:
        raise ManifestError(f"Invalid manifest: {e}", ErrorContext(file=path)) from e

    for key in ("setter_prefix", "build_method"):
        value = getattr(defaults_config, key)
        if value is not None and not isinstance(value, str):
            raise ManifestError(f"[defaults] {key} must be a string", ErrorContext(file=path))
    if defaults_config.auto_convert is not None and not isinstance(
        defaults_config.auto_convert, bool
    ):
        raise ManifestError("[defaults] auto_convert must be a boolean", ErrorContext(file=path))

    return Manifest(
        name=project.get("name", path.parent.name),
        root=path.parent,
        generate=generate,
        defaults=defaults_config,
    )


def apply_defaults(struct: StructSpec, defaults: DefaultsConfig) -> StructSpec:
    """
    Fill struct-level attributes the struct did not declare itself.

    Explicit struct attributes always win over manifest defaults.
    """
    declared = set(struct.declared_attributes)
    update: dict[str, object] = {}
    if defaults.setter_prefix is not None and "setter_prefix" not in declared:
        update["struct_setter_prefix"] = defaults.setter_prefix
    if defaults.auto_convert is not None and "auto_convert" not in declared:
        update["struct_auto_convert"] = defaults.auto_convert
    if defaults.build_method is not None and "build_method" not in declared:
        update["build_method_name"] = defaults.build_method
    if not update:
        return struct
    return struct.model_copy(update=update)
