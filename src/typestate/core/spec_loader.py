"""
Schema document loader.

Reads already-structured schema documents (YAML, JSON, or TOML) into
StructSpecs. Attributes are given as a list so repeated attributes survive
loading and can be rejected by the validator:

    structs:
      - name: Config
        attributes: [const, {build_method: create}]
        imports: ["from pathlib import Path"]
        fields:
          - name: host
            type: str
            attributes: [required, {setter_name: hostname}]
          - name: retries
            type: int
            attributes: [{default: 3}]

String defaults are Python expressions (``default: "'localhost'"`` for a
string literal); other scalars are rendered with ``repr``.
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .errors import make_load_error
from .ir import Converter, FieldSpec, GenericParam, StructSpec, Visibility

logger = logging.getLogger(__name__)

SCHEMA_SUFFIXES = {".yaml", ".yml", ".json", ".toml"}


def load_schema(path: Path) -> list[StructSpec]:
    """
    Load every struct declared in a schema document.

    Raises:
        SchemaLoadError: unreadable document, unknown attributes, bad values
    """
    data = read_document(path)
    structs = parse_schema(data, file=path)
    logger.debug("Loaded %d struct(s) from %s", len(structs), path)
    return structs


def read_document(path: Path) -> dict[str, Any]:
    """Read a YAML, JSON, or TOML document into a mapping."""
    if path.suffix not in SCHEMA_SUFFIXES:
        raise make_load_error(
            f"Unsupported schema format '{path.suffix}' (expected one of "
            f"{', '.join(sorted(SCHEMA_SUFFIXES))})",
            file=path,
        )
    try:
        text = path.read_text()
    except OSError as e:
        raise make_load_error(f"Cannot read schema: {e}", file=path) from e

    try:
        if path.suffix == ".json":
            data = json.loads(text)
        elif path.suffix == ".toml":
            data = tomllib.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        raise make_load_error(f"Malformed schema document: {e}", file=path) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise make_load_error("Schema document must be a mapping with a 'structs' list", file=path)
    return data


def parse_schema(data: dict[str, Any], file: Path | None = None) -> list[StructSpec]:
    """Turn a schema mapping into StructSpecs."""
    raw_structs = data.get("structs", [])
    if not isinstance(raw_structs, list):
        raise make_load_error("'structs' must be a list", file=file)
    return [parse_struct(raw, file=file) for raw in raw_structs]


def parse_struct(raw: dict[str, Any], file: Path | None = None) -> StructSpec:
    """Turn one struct mapping into a StructSpec."""
    if not isinstance(raw, dict) or "name" not in raw:
        raise make_load_error("Each struct needs a 'name'", file=file)
    name = str(raw["name"])

    values: dict[str, Any] = {}
    declared = []
    for attr, value in _attribute_items(raw.get("attributes", []), file, name, None):
        declared.append(attr)
        if attr == "const":
            values["const_mode"] = _as_bool(value, attr, file, name, None)
        elif attr == "auto_convert":
            values["struct_auto_convert"] = _as_bool(value, attr, file, name, None)
        elif attr == "build_method":
            values["build_method_name"] = _as_str(value, attr, file, name, None)
        elif attr == "setter_prefix":
            values["struct_setter_prefix"] = _as_str(value, attr, file, name, None)
        else:
            raise make_load_error(f"Unknown struct attribute '{attr}'", file=file, struct=name)

    raw_fields = raw.get("fields", [])
    if not isinstance(raw_fields, list):
        raise make_load_error("'fields' must be a list", file=file, struct=name)

    try:
        return StructSpec(
            name=name,
            visibility=Visibility(raw.get("visibility", Visibility.PUBLIC)),
            generic_parameters=[GenericParam.model_validate(g) for g in raw.get("generics", [])],
            fields=[parse_field(f, file=file, struct=name) for f in raw_fields],
            type_imports=list(raw.get("imports", [])),
            doc=raw.get("doc"),
            declared_attributes=tuple(declared),
            **values,
        )
    except (PydanticValidationError, ValueError) as e:
        raise make_load_error(f"Invalid struct: {e}", file=file, struct=name) from e


def parse_field(raw: dict[str, Any], file: Path | None = None, struct: str | None = None) -> FieldSpec:
    """Turn one field mapping into a FieldSpec."""
    if not isinstance(raw, dict) or "name" not in raw or "type" not in raw:
        raise make_load_error("Each field needs a 'name' and a 'type'", file=file, struct=struct)
    name = str(raw["name"])

    values: dict[str, Any] = {}
    declared = []
    for attr, value in _attribute_items(raw.get("attributes", []), file, struct, name):
        declared.append(attr)
        if attr == "required":
            values["required"] = _as_bool(value, attr, file, struct, name)
        elif attr == "skip_setter":
            values["skip_setter"] = _as_bool(value, attr, file, struct, name)
        elif attr == "entry_point":
            values["is_entry_point"] = _as_bool(value, attr, file, struct, name)
        elif attr == "auto_convert":
            values["auto_convert"] = _as_bool(value, attr, file, struct, name)
        elif attr == "default":
            values["default_expression"] = value if isinstance(value, str) else repr(value)
        elif attr == "setter_name":
            values["setter_name_override"] = _as_str(value, attr, file, struct, name)
        elif attr == "setter_prefix":
            values["setter_prefix_override"] = _as_str(value, attr, file, struct, name)
        elif attr == "converter":
            values["converter"] = _parse_converter(value, file, struct, name)
        else:
            raise make_load_error(
                f"Unknown field attribute '{attr}'", file=file, struct=struct, field=name
            )

    try:
        return FieldSpec(
            name=name,
            storage_type=raw["type"],
            doc=raw.get("doc"),
            declared_attributes=tuple(declared),
            **values,
        )
    except PydanticValidationError as e:
        raise make_load_error(f"Invalid field: {e}", file=file, struct=struct, field=name) from e


def _parse_converter(
    value: Any, file: Path | None, struct: str | None, field: str | None
) -> Converter:
    if not isinstance(value, dict):
        raise make_load_error(
            "converter must be a mapping with 'type' and either 'body' or 'function'",
            file=file,
            struct=struct,
            field=field,
        )
    unknown = set(value) - {"parameter", "type", "body", "function", "module"}
    if unknown:
        raise make_load_error(
            f"Unknown converter keys: {', '.join(sorted(unknown))}",
            file=file,
            struct=struct,
            field=field,
        )
    if "type" not in value:
        raise make_load_error(
            "converter needs the 'type' it accepts", file=file, struct=struct, field=field
        )
    try:
        return Converter(
            parameter_type=value["type"],
            parameter=value.get("parameter", "value" if "body" in value else None),
            body=value.get("body"),
            function=value.get("function"),
            module=value.get("module"),
        )
    except PydanticValidationError as e:
        raise make_load_error(
            f"Invalid converter: {e}", file=file, struct=struct, field=field
        ) from e


def _attribute_items(
    raw: Any, file: Path | None, struct: str | None, field: str | None
) -> list[tuple[str, Any]]:
    """
    Normalize an attribute list into (name, value) pairs.

    Items are flag names (value True) or single-key mappings. A plain
    mapping is accepted too, for formats where lists of mixed items are
    awkward.
    """
    if isinstance(raw, dict):
        return list(raw.items())
    if not isinstance(raw, list):
        raise make_load_error("'attributes' must be a list", file=file, struct=struct, field=field)

    items: list[tuple[str, Any]] = []
    for item in raw:
        if isinstance(item, str):
            items.append((item, True))
        elif isinstance(item, dict) and len(item) == 1:
            items.append(next(iter(item.items())))
        else:
            raise make_load_error(
                f"Attribute must be a name or a single-key mapping, got {item!r}",
                file=file,
                struct=struct,
                field=field,
            )
    return items


def _as_bool(value: Any, attr: str, file: Path | None, struct: str | None, field: str | None) -> bool:
    if isinstance(value, bool):
        return value
    raise make_load_error(
        f"Attribute '{attr}' expects a boolean, got {value!r}", file=file, struct=struct, field=field
    )


def _as_str(value: Any, attr: str, file: Path | None, struct: str | None, field: str | None) -> str:
    if isinstance(value, str):
        return value
    raise make_load_error(
        f"Attribute '{attr}' expects a string, got {value!r}", file=file, struct=struct, field=field
    )
