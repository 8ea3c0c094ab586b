"""
Field definitions for typestate IR.

A FieldSpec carries one record field plus every per-field construction
attribute the frontend resolved for it.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .types import TypeRef


class Converter(BaseModel):
    """
    A single-parameter transformation from a caller-supplied value to the
    field's storage type.

    Two shapes are accepted:

    - inline: ``parameter``, ``parameter_type`` and an expression ``body``
      over the parameter, e.g. ``value: str -> value.strip().lower()``
    - reference: ``function`` naming an existing callable (optionally
      imported from ``module``) and the ``parameter_type`` it accepts

    Attributes:
        parameter: Parameter name of an inline converter
        parameter_type: Type the setter accepts
        body: Expression producing the stored value (inline only)
        function: Callable name (reference only)
        module: Module to import ``function`` from (reference only)
    """

    parameter_type: TypeRef
    parameter: str | None = None
    body: str | None = None
    function: str | None = None
    module: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_inline(self) -> bool:
        """Check if this converter is an inline transformation."""
        return self.function is None


class FieldSpec(BaseModel):
    """
    Specification for a single field of the target record.

    Attributes:
        name: Field identifier
        storage_type: Type stored on the record
        required: Whether the field must be supplied before completion
        default_expression: Python expression materializing the default
        converter: Custom transformation applied by the setter
        auto_convert: Implicit-conversion setter (None inherits the struct default)
        setter_name_override: Custom setter name
        setter_prefix_override: Prefix overriding the struct prefix
        skip_setter: No setter is emitted; the default populates the field
        is_entry_point: This field's setter replaces the zero-argument initializer
        doc: Optional field documentation carried into generated docstrings
        declared_attributes: Attribute names in the order the frontend saw them
    """

    name: str
    storage_type: TypeRef
    required: bool = False
    default_expression: str | None = None
    converter: Converter | None = None
    auto_convert: bool | None = None
    setter_name_override: str | None = None
    setter_prefix_override: str | None = None
    skip_setter: bool = False
    is_entry_point: bool = False
    doc: str | None = None
    declared_attributes: tuple[str, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True)

    @property
    def is_optional(self) -> bool:
        """Check if the field never participates in builder state."""
        return not self.required

    @property
    def has_custom_default(self) -> bool:
        """Check if an explicit default expression was given."""
        return self.default_expression is not None
