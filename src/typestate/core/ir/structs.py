"""
Struct definitions for typestate IR.

A StructSpec is the complete, already-parsed description of one target
record type. It is immutable once built and is the only input the
validator, lattice builder, and planner read.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from .fields import FieldSpec
from .types import GenericParam

DEFAULT_BUILD_METHOD = "build"


class Visibility(StrEnum):
    """Export visibility of the generated classes."""

    PUBLIC = "public"  # listed in the module's __all__
    PRIVATE = "private"  # generated but not exported


class StructSpec(BaseModel):
    """
    Specification for a target record type and its builder.

    Attributes:
        name: Record class name
        visibility: Whether generated classes are exported
        generic_parameters: Type parameters of the record
        fields: Ordered fields (declaration order fixes naming)
        struct_setter_prefix: Default setter prefix for all fields
        struct_auto_convert: Default auto-convert behaviour for all fields
        build_method_name: Name of the completion operation
        const_mode: Generate only pure, immutable operations
        type_imports: Import statements the storage types need
        doc: Optional record documentation
        declared_attributes: Struct attribute names in the order the frontend saw them
    """

    name: str
    visibility: Visibility = Visibility.PUBLIC
    generic_parameters: list[GenericParam] = Field(default_factory=list)
    fields: list[FieldSpec] = Field(default_factory=list)
    struct_setter_prefix: str | None = None
    struct_auto_convert: bool = False
    build_method_name: str = DEFAULT_BUILD_METHOD
    const_mode: bool = False
    type_imports: list[str] = Field(default_factory=list)
    doc: str | None = None
    declared_attributes: tuple[str, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True)

    @property
    def required_fields(self) -> list[FieldSpec]:
        """Required fields in declaration order."""
        return [f for f in self.fields if f.required]

    @property
    def optional_fields(self) -> list[FieldSpec]:
        """Optional fields in declaration order."""
        return [f for f in self.fields if not f.required]

    @property
    def entry_point(self) -> FieldSpec | None:
        """The entry-point field, if exactly one field claims the role."""
        candidates = [f for f in self.fields if f.is_entry_point]
        return candidates[0] if len(candidates) == 1 else None

    @property
    def builder_name(self) -> str:
        """Name of the namespace class holding the entry operations."""
        return f"{self.name}Builder"

    @property
    def state_base_name(self) -> str:
        """Prefix shared by every generated state class."""
        return f"{self.name}State"

    @property
    def generic_names(self) -> set[str]:
        return {p.name for p in self.generic_parameters}

    def get_field(self, name: str) -> FieldSpec | None:
        """Get a field by name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def effective_setter_prefix(self, field: FieldSpec) -> str | None:
        """Field-level prefix wins over the struct-level prefix."""
        if field.setter_prefix_override is not None:
            return field.setter_prefix_override
        return self.struct_setter_prefix

    def effective_setter_name(self, field: FieldSpec) -> str:
        """
        Resolve the setter name for a field.

        A custom setter name is used verbatim; otherwise the effective
        prefix (if any) is prepended to the field name.
        """
        if field.setter_name_override is not None:
            return field.setter_name_override
        prefix = self.effective_setter_prefix(field)
        if prefix:
            return f"{prefix}{field.name}"
        return field.name

    def effective_auto_convert(self, field: FieldSpec) -> bool:
        """Field override, else struct default."""
        if field.auto_convert is not None:
            return field.auto_convert
        return self.struct_auto_convert
