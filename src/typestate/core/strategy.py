"""
Setter strategies.

Every field resolves to exactly one way of turning a setter argument into
the stored value. The validator's conflict rules and the resolution
planner both dispatch on this variant instead of re-reading the raw
attribute flags.
"""

from __future__ import annotations

from enum import StrEnum

from .ir import FieldSpec, StructSpec


class SetterStrategy(StrEnum):
    """How a field's setter produces the stored value."""

    EXACT = "exact"  # argument has the storage type
    AUTO_CONVERT = "auto_convert"  # argument passed through the type's constructor
    CONVERTER = "converter"  # custom transformation
    SKIP = "skip"  # no setter; only the default populates the field


def classify_field(struct: StructSpec, field: FieldSpec) -> SetterStrategy:
    """
    Resolve a field's strategy.

    Precedence: skip_setter, then an explicit converter, then the
    effective auto-convert flag (field override, else struct default),
    then exact-type assignment. An inherited struct default only applies
    to fields whose type can be constructed from the argument; an
    explicit field flag always applies and is checked by the validator.
    """
    if field.skip_setter:
        return SetterStrategy.SKIP
    if field.converter is not None:
        return SetterStrategy.CONVERTER
    if field.auto_convert is not None:
        return SetterStrategy.AUTO_CONVERT if field.auto_convert else SetterStrategy.EXACT
    if struct.struct_auto_convert and is_constructible(struct, field):
        return SetterStrategy.AUTO_CONVERT
    return SetterStrategy.EXACT


def is_constructible(struct: StructSpec, field: FieldSpec) -> bool:
    """
    Check if the storage type names a single callable type.

    Unions (other than with None) and the struct's own type parameters
    cannot be called to produce a value.
    """
    storage = field.storage_type
    return not storage.is_union and storage.constructor not in struct.generic_names


def has_setter(field: FieldSpec) -> bool:
    """Check if a setter is generated for the field."""
    return not field.skip_setter
