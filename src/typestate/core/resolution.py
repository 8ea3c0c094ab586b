"""
Value resolution planning.

For every field, decide how a setter argument becomes the stored value
and how the field's default is materialized. Precedence: explicit
converter, then effective auto-convert, then exact-type assignment.

In const mode, inline converters are lifted into standalone module-level
functions. Whether such a body is actually pure is not checked here; a
type checker or the code's own runtime behaviour reports that downstream.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .ir import FieldSpec, HelperFunctionDecl, ParameterDecl, StructSpec
from .strategy import SetterStrategy, classify_field

logger = logging.getLogger(__name__)

DEFAULT_PARAMETER = "value"
AUTO_CONVERT_PARAMETER_TYPE = "Any"


@dataclass(frozen=True)
class ValuePlan:
    """
    Resolution of one field.

    Attributes:
        field: The field
        strategy: Resolved setter strategy
        parameter: Setter parameter (None when the setter is skipped)
        value_expression: Expression over ``parameter.name`` producing the stored value
        default_expression: Expression materializing the default (None for required fields)
        explicit_default: The default came from the schema, not generic construction
        const_safe: Setter and default are usable in const mode
        helper: Synthesized converter function (const mode, inline converters)
        imports: Import statements the plan's expressions need
    """

    field: FieldSpec
    strategy: SetterStrategy
    parameter: ParameterDecl | None
    value_expression: str | None
    default_expression: str | None
    explicit_default: bool
    const_safe: bool
    helper: HelperFunctionDecl | None = None
    imports: tuple[str, ...] = ()


class ResolutionPlanner:
    """Builds ValuePlans for every field of a struct."""

    def __init__(self, struct: StructSpec):
        self.struct = struct

    def plan_all(self) -> dict[str, ValuePlan]:
        """Plan every field, keyed by field name, in declaration order."""
        return {f.name: self.plan(f) for f in self.struct.fields}

    def plan(self, field: FieldSpec) -> ValuePlan:
        strategy = classify_field(self.struct, field)
        default, explicit = self._plan_default(field)
        helper = None
        imports: tuple[str, ...] = ()

        if strategy == SetterStrategy.SKIP:
            parameter = None
            value_expr = None
        elif strategy == SetterStrategy.CONVERTER:
            parameter, value_expr, helper, imports = self._plan_converter(field)
        elif strategy == SetterStrategy.AUTO_CONVERT:
            parameter = ParameterDecl(name=DEFAULT_PARAMETER, type_expr=AUTO_CONVERT_PARAMETER_TYPE)
            value_expr = auto_convert_expression(field, DEFAULT_PARAMETER)
        else:
            parameter = ParameterDecl(name=DEFAULT_PARAMETER, type_expr=field.storage_type.expr)
            value_expr = DEFAULT_PARAMETER

        const_safe = strategy != SetterStrategy.AUTO_CONVERT and (field.required or explicit)
        plan = ValuePlan(
            field=field,
            strategy=strategy,
            parameter=parameter,
            value_expression=value_expr,
            default_expression=default,
            explicit_default=explicit,
            const_safe=const_safe,
            helper=helper,
            imports=imports,
        )
        logger.debug(
            "Field %s.%s: strategy=%s const_safe=%s",
            self.struct.name,
            field.name,
            strategy.value,
            const_safe,
        )
        return plan

    def _plan_default(self, field: FieldSpec) -> tuple[str | None, bool]:
        if field.required:
            return None, False
        if field.default_expression is not None:
            return field.default_expression.strip(), True
        # Generic default construction; rejected earlier in const mode.
        return generic_default(field), False

    def _plan_converter(
        self, field: FieldSpec
    ) -> tuple[ParameterDecl, str, HelperFunctionDecl | None, tuple[str, ...]]:
        conv = field.converter
        assert conv is not None
        param_type = conv.parameter_type.expr

        if not conv.is_inline:
            parameter = ParameterDecl(name=DEFAULT_PARAMETER, type_expr=param_type)
            function = conv.function or ""
            imports: tuple[str, ...] = ()
            if conv.module:
                imports = (f"from {conv.module} import {function.split('.')[0]}",)
            return parameter, f"{function}({DEFAULT_PARAMETER})", None, imports

        param_name = conv.parameter or DEFAULT_PARAMETER
        body = (conv.body or "").strip()
        if self.struct.const_mode:
            helper = HelperFunctionDecl(
                name=converter_function_name(self.struct, field),
                parameter=ParameterDecl(name=param_name, type_expr=param_type),
                returns=field.storage_type.expr,
                body=body,
                field=field.name,
            )
            parameter = ParameterDecl(name=DEFAULT_PARAMETER, type_expr=param_type)
            return parameter, f"{helper.name}({DEFAULT_PARAMETER})", helper, ()

        parameter = ParameterDecl(name=param_name, type_expr=param_type)
        return parameter, f"({body})", None, ()


def generic_default(field: FieldSpec) -> str:
    """
    Default-construction expression for a field's storage type.

    Types admitting None default to ``None``; everything else calls the
    type's constructor with no arguments (``list[str]`` -> ``list()``).
    """
    if field.storage_type.is_optional:
        return "None"
    return f"{field.storage_type.constructor}()"


def auto_convert_expression(field: FieldSpec, parameter: str) -> str:
    """
    Expression passing the setter argument through the type's constructor.

    Optional storage types let ``None`` through unconverted.
    """
    call = f"{field.storage_type.constructor}({parameter})"
    if field.storage_type.is_optional:
        return f"(None if {parameter} is None else {call})"
    return call


def converter_function_name(struct: StructSpec, field: FieldSpec) -> str:
    """
    Name of the synthesized const-mode converter for a field.

    The struct name is used as written, so distinct structs never share
    a helper.
    """
    return f"_{struct.name}_convert_{field.name}"


def plan_struct(struct: StructSpec) -> dict[str, ValuePlan]:
    """Plan every field of a struct."""
    return ResolutionPlanner(struct).plan_all()
