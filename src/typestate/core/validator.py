"""
Schema validation for typestate StructSpecs.

Checks a populated StructSpec for internal consistency before any
generation runs. Every rule is evaluated and every conflict collected, so
the caller can report the whole batch at once. A struct with any
conflict produces no declarations.

Field-level rules are predicates over the field's SetterStrategy plus its
raw attributes. Adding a new setter behaviour means extending
SetterStrategy and this table, not threading new flags through the checks.
"""

from __future__ import annotations

import ast
import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from .ir import FieldSpec, StructSpec
from .strategy import SetterStrategy, classify_field, has_setter, is_constructible
from .strings import is_dotted_name, is_identifier, is_identifier_prefix

logger = logging.getLogger(__name__)

# Names that would collide with the receiver of generated methods.
RESERVED_FIELD_NAMES = frozenset({"self"})


class ConflictRule(StrEnum):
    """Identifiers of the validation rules."""

    # Attribute combinations on one field
    REQUIRED_WITH_DEFAULT = "required_with_default"
    REQUIRED_SKIP_SETTER = "required_skip_setter"
    SKIP_SETTER_WITH_SETTER_NAME = "skip_setter_with_setter_name"
    SKIP_SETTER_WITH_SETTER_PREFIX = "skip_setter_with_setter_prefix"
    SKIP_SETTER_WITH_AUTO_CONVERT = "skip_setter_with_auto_convert"
    SKIP_SETTER_WITH_CONVERTER = "skip_setter_with_converter"
    CONVERTER_WITH_AUTO_CONVERT = "converter_with_auto_convert"
    AUTO_CONVERT_NOT_CONSTRUCTIBLE = "auto_convert_not_constructible"
    DUPLICATE_ATTRIBUTE = "duplicate_attribute"

    # Entry point
    ENTRY_POINT_OPTIONAL = "entry_point_optional"
    ENTRY_POINT_SKIP_SETTER = "entry_point_skip_setter"
    MULTIPLE_ENTRY_POINTS = "multiple_entry_points"

    # Const mode
    CONST_AUTO_CONVERT = "const_auto_convert"
    CONST_MISSING_DEFAULT = "const_missing_default"

    # Generic default construction
    GENERIC_MISSING_DEFAULT = "generic_missing_default"

    # Struct shape and naming
    NO_FIELDS = "no_fields"
    DUPLICATE_FIELD = "duplicate_field"
    INVALID_IDENTIFIER = "invalid_identifier"
    SETTER_NAME_CONFLICT = "setter_name_conflict"
    BUILD_METHOD_CONFLICT = "build_method_conflict"

    # Expressions
    INVALID_CONVERTER = "invalid_converter"
    INVALID_DEFAULT = "invalid_default"


class Conflict(BaseModel):
    """
    A single validation conflict.

    Carries enough to render a diagnostic without re-deriving the reason.
    """

    rule: ConflictRule
    struct: str
    field: str | None = None
    message: str
    note: str | None = None
    help: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def target(self) -> str:
        """Dotted name of the offending struct or field."""
        if self.field:
            return f"{self.struct}.{self.field}"
        return self.struct

    def format(self) -> str:
        """Single-line rendering: ``[rule] Target: message``."""
        return f"[{self.rule.value}] {self.target}: {self.message}"

    def format_long(self) -> str:
        """Multi-line rendering with note and help lines."""
        lines = [self.format()]
        if self.note:
            lines.append(f"  note: {self.note}")
        if self.help:
            lines.append(f"  help: {self.help}")
        return "\n".join(lines)


@dataclass
class ValidationResult:
    """Result of validating one StructSpec."""

    struct_name: str
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.conflicts

    def for_rule(self, rule: ConflictRule) -> list[Conflict]:
        """Get conflicts raised by one rule."""
        return [c for c in self.conflicts if c.rule == rule]


@dataclass(frozen=True)
class FieldRule:
    """A field-level conflict rule."""

    rule: ConflictRule
    applies: Callable[[StructSpec, FieldSpec, SetterStrategy], bool]
    message: str
    note: str | None = None
    help: str | None = None


# Rules over a single field. ``{field}`` in message/help is filled in.
FIELD_RULES: tuple[FieldRule, ...] = (
    FieldRule(
        ConflictRule.REQUIRED_WITH_DEFAULT,
        lambda s, f, st: f.required and f.default_expression is not None,
        "required field '{field}' cannot have a default value",
        note="required fields must be supplied by the caller",
        help="remove the default or make the field optional",
    ),
    FieldRule(
        ConflictRule.REQUIRED_SKIP_SETTER,
        lambda s, f, st: f.required and st == SetterStrategy.SKIP,
        "required field '{field}' cannot skip its setter",
        note="a required field without a setter could never be supplied",
        help="remove skip_setter or make the field optional",
    ),
    FieldRule(
        ConflictRule.SKIP_SETTER_WITH_SETTER_NAME,
        lambda s, f, st: st == SetterStrategy.SKIP and f.setter_name_override is not None,
        "field '{field}': setter_name is incompatible with skip_setter",
        note="no setter is generated to carry the custom name",
        help="remove one of these attributes",
    ),
    FieldRule(
        ConflictRule.SKIP_SETTER_WITH_SETTER_PREFIX,
        lambda s, f, st: st == SetterStrategy.SKIP and f.setter_prefix_override is not None,
        "field '{field}': setter_prefix is incompatible with skip_setter",
        note="no setter is generated to carry the prefix",
        help="remove one of these attributes",
    ),
    FieldRule(
        ConflictRule.SKIP_SETTER_WITH_AUTO_CONVERT,
        lambda s, f, st: st == SetterStrategy.SKIP and f.auto_convert is not None,
        "field '{field}': auto_convert is incompatible with skip_setter",
        note="no setter is generated to convert its argument",
        help="remove one of these attributes",
    ),
    FieldRule(
        ConflictRule.SKIP_SETTER_WITH_CONVERTER,
        lambda s, f, st: st == SetterStrategy.SKIP and f.converter is not None,
        "field '{field}': converter is incompatible with skip_setter",
        note="no setter is generated to apply the converter",
        help="remove one of these attributes",
    ),
    FieldRule(
        ConflictRule.CONVERTER_WITH_AUTO_CONVERT,
        lambda s, f, st: st == SetterStrategy.CONVERTER and f.auto_convert is not None,
        "field '{field}': converter is incompatible with auto_convert",
        note="a setter has exactly one value-production strategy",
        help="use either the custom converter or auto_convert, not both",
    ),
    FieldRule(
        ConflictRule.AUTO_CONVERT_NOT_CONSTRUCTIBLE,
        lambda s, f, st: st == SetterStrategy.AUTO_CONVERT and not is_constructible(s, f),
        "field '{field}': auto_convert needs a single constructible storage type",
        note="unions and type parameters cannot be called to convert the argument",
        help="remove auto_convert from '{field}' or use a converter",
    ),
    FieldRule(
        ConflictRule.ENTRY_POINT_OPTIONAL,
        lambda s, f, st: f.is_entry_point and not f.required,
        "entry_point can only be used on required fields, but '{field}' is optional",
        note="optional fields cannot be builder entry points",
        help="mark '{field}' as required or remove entry_point",
    ),
    FieldRule(
        ConflictRule.ENTRY_POINT_SKIP_SETTER,
        lambda s, f, st: f.is_entry_point and st == SetterStrategy.SKIP,
        "entry_point field '{field}' cannot skip its setter",
        note="the entry point is the field's setter",
        help="remove skip_setter or entry_point",
    ),
    FieldRule(
        ConflictRule.CONST_AUTO_CONVERT,
        lambda s, f, st: s.const_mode and f.auto_convert is True,
        "field '{field}': auto_convert cannot be used in const mode",
        note="implicit conversion dispatches through the type's constructor, which is not pure",
        help="remove auto_convert from '{field}' or turn off const mode",
    ),
    FieldRule(
        ConflictRule.CONST_MISSING_DEFAULT,
        lambda s, f, st: s.const_mode and not f.required and f.default_expression is None,
        "const mode requires an explicit default for field '{field}'",
        note="generic default construction is not guaranteed to be constant",
        help="add an explicit default to field '{field}'",
    ),
    FieldRule(
        ConflictRule.GENERIC_MISSING_DEFAULT,
        lambda s, f, st: (
            not s.const_mode
            and not f.required
            and f.default_expression is None
            and not f.storage_type.is_optional
            and not is_constructible(s, f)
        ),
        "optional field '{field}' needs an explicit default",
        note="its type is a union or a type parameter, which cannot be default-constructed",
        help="add an explicit default to field '{field}' or make its type optional",
    ),
)


class StructValidator:
    """
    Validates StructSpecs before generation.

    Usage:
        validator = StructValidator()
        result = validator.validate(struct)
        if not result.valid:
            for conflict in result.conflicts:
                print(conflict.format())
    """

    def validate(self, struct: StructSpec) -> ValidationResult:
        """Run every rule against the struct and collect all conflicts."""
        result = ValidationResult(struct_name=struct.name)

        self._check_struct_shape(struct, result)
        self._check_struct_attributes(struct, result)
        for f in struct.fields:
            self._check_field(struct, f, result)
        self._check_entry_points(struct, result)
        self._check_setter_names(struct, result)

        if result.conflicts:
            logger.debug(
                "Struct %s: %d conflict(s): %s",
                struct.name,
                len(result.conflicts),
                ", ".join(c.rule.value for c in result.conflicts),
            )
        return result

    # -------------------------------------------------------------------------
    # Struct-level checks
    # -------------------------------------------------------------------------

    def _check_struct_shape(self, struct: StructSpec, result: ValidationResult) -> None:
        if not is_identifier(struct.name):
            self._add(
                result,
                struct,
                ConflictRule.INVALID_IDENTIFIER,
                f"struct name '{struct.name}' is not a valid Python identifier",
            )

        if not struct.fields:
            self._add(
                result,
                struct,
                ConflictRule.NO_FIELDS,
                f"struct '{struct.name}' has no fields",
                note="builder generation requires at least one field to be meaningful",
                help="add some fields to the struct",
            )

        names = Counter(f.name for f in struct.fields)
        for name, count in names.items():
            if count > 1:
                self._add(
                    result,
                    struct,
                    ConflictRule.DUPLICATE_FIELD,
                    f"field '{name}' is declared {count} times",
                    field=name,
                )

        for param in struct.generic_parameters:
            if not is_identifier(param.name):
                self._add(
                    result,
                    struct,
                    ConflictRule.INVALID_IDENTIFIER,
                    f"generic parameter '{param.name}' is not a valid Python identifier",
                )

    def _check_struct_attributes(self, struct: StructSpec, result: ValidationResult) -> None:
        for attr in _duplicates(struct.declared_attributes):
            self._add(
                result,
                struct,
                ConflictRule.DUPLICATE_ATTRIBUTE,
                f"duplicate struct attribute '{attr}'",
                help=f"only one '{attr}' is allowed per struct",
            )

        if not is_identifier(struct.build_method_name):
            self._add(
                result,
                struct,
                ConflictRule.INVALID_IDENTIFIER,
                f"build method name '{struct.build_method_name}' is not a valid Python identifier",
                help="example: build_method = \"create\"",
            )

        prefix = struct.struct_setter_prefix
        if prefix is not None and not is_identifier_prefix(prefix):
            self._add(
                result,
                struct,
                ConflictRule.INVALID_IDENTIFIER,
                f"invalid setter prefix '{prefix}'",
                help="use a valid identifier prefix like 'with_' or 'set_'",
            )

        if struct.const_mode and struct.struct_auto_convert:
            self._add(
                result,
                struct,
                ConflictRule.CONST_AUTO_CONVERT,
                "struct-level auto_convert cannot be used in const mode",
                note="implicit conversion dispatches through the type's constructor, which is not pure",
                help="remove auto_convert from the struct or turn off const mode",
            )

    def _check_entry_points(self, struct: StructSpec, result: ValidationResult) -> None:
        entries = [f.name for f in struct.fields if f.is_entry_point]
        if len(entries) > 1:
            self._add(
                result,
                struct,
                ConflictRule.MULTIPLE_ENTRY_POINTS,
                f"only one field can be the entry point, but found on: {', '.join(entries)}",
                note="the builder can only have one entry point",
                help="remove entry_point from all but one field",
            )

    def _check_setter_names(self, struct: StructSpec, result: ValidationResult) -> None:
        seen: dict[str, str] = {}
        for f in struct.fields:
            if not has_setter(f):
                continue
            setter = struct.effective_setter_name(f)
            if not is_identifier(setter):
                # reported by the field checks
                continue
            if setter in seen:
                self._add(
                    result,
                    struct,
                    ConflictRule.SETTER_NAME_CONFLICT,
                    f"setter name '{setter}' is used by both field '{f.name}' and field '{seen[setter]}'",
                    field=f.name,
                    note="each setter method must have a unique name",
                    help="set a unique setter_name on one of the fields",
                )
            else:
                seen[setter] = f.name

            if setter == struct.build_method_name:
                self._add(
                    result,
                    struct,
                    ConflictRule.BUILD_METHOD_CONFLICT,
                    f"build method name '{setter}' conflicts with the setter for field '{f.name}'",
                    field=f.name,
                    note="the build method and setter methods must have unique names",
                    help="change the build method name or the setter name",
                )

    # -------------------------------------------------------------------------
    # Field-level checks
    # -------------------------------------------------------------------------

    def _check_field(self, struct: StructSpec, f: FieldSpec, result: ValidationResult) -> None:
        if not is_identifier(f.name):
            self._add(
                result,
                struct,
                ConflictRule.INVALID_IDENTIFIER,
                f"field name '{f.name}' is not a valid Python identifier",
                field=f.name,
            )
        elif f.name in RESERVED_FIELD_NAMES:
            self._add(
                result,
                struct,
                ConflictRule.INVALID_IDENTIFIER,
                f"field name '{f.name}' is reserved",
                field=f.name,
                note="state classes take every stored field as a keyword argument of __init__",
                help="rename the field",
            )

        for attr in _duplicates(f.declared_attributes):
            self._add(
                result,
                struct,
                ConflictRule.DUPLICATE_ATTRIBUTE,
                f"duplicate attribute '{attr}' on field '{f.name}'",
                field=f.name,
                help=f"only one '{attr}' is allowed per field",
            )

        strategy = classify_field(struct, f)
        for rule in FIELD_RULES:
            if rule.applies(struct, f, strategy):
                self._add(
                    result,
                    struct,
                    rule.rule,
                    rule.message.format(field=f.name),
                    field=f.name,
                    note=rule.note,
                    help=rule.help.format(field=f.name) if rule.help else None,
                )

        self._check_field_names(struct, f, result)
        self._check_field_expressions(struct, f, result)

    def _check_field_names(self, struct: StructSpec, f: FieldSpec, result: ValidationResult) -> None:
        if f.setter_name_override is not None and not is_identifier(f.setter_name_override):
            self._add(
                result,
                struct,
                ConflictRule.INVALID_IDENTIFIER,
                f"invalid setter name '{f.setter_name_override}'",
                field=f.name,
                help="setter names must be valid, non-keyword Python identifiers",
            )

        prefix = f.setter_prefix_override
        if prefix is not None and not is_identifier_prefix(prefix):
            self._add(
                result,
                struct,
                ConflictRule.INVALID_IDENTIFIER,
                f"invalid setter prefix '{prefix}'",
                field=f.name,
                help="use a valid identifier prefix like 'with_' or 'set_'",
            )

        if (
            has_setter(f)
            and f.setter_name_override is None
            and is_identifier(f.name)
            and (prefix is None or is_identifier_prefix(prefix))
            and not is_identifier(struct.effective_setter_name(f))
        ):
            self._add(
                result,
                struct,
                ConflictRule.INVALID_IDENTIFIER,
                f"setter name '{struct.effective_setter_name(f)}' is not a valid Python identifier",
                field=f.name,
            )

    def _check_field_expressions(
        self, struct: StructSpec, f: FieldSpec, result: ValidationResult
    ) -> None:
        if f.default_expression is not None and not _is_expression(f.default_expression):
            self._add(
                result,
                struct,
                ConflictRule.INVALID_DEFAULT,
                f"default for field '{f.name}' is not a valid Python expression: {f.default_expression!r}",
                field=f.name,
            )

        conv = f.converter
        if conv is None:
            return
        if conv.is_inline:
            problems = []
            if not conv.parameter or not is_identifier(conv.parameter) or conv.parameter == "self":
                problems.append("a valid parameter name")
            if not conv.body or not _is_expression(conv.body):
                problems.append("a body that is a single Python expression")
            if problems:
                self._add(
                    result,
                    struct,
                    ConflictRule.INVALID_CONVERTER,
                    f"inline converter for field '{f.name}' needs {' and '.join(problems)}",
                    field=f.name,
                    help="example: converter = {parameter: value, type: str, body: value.strip()}",
                )
        else:
            if not is_dotted_name(conv.function or ""):
                self._add(
                    result,
                    struct,
                    ConflictRule.INVALID_CONVERTER,
                    f"converter function '{conv.function}' for field '{f.name}' is not a dotted name",
                    field=f.name,
                )
            if conv.body is not None:
                self._add(
                    result,
                    struct,
                    ConflictRule.INVALID_CONVERTER,
                    f"converter for field '{f.name}' names a function and also has a body",
                    field=f.name,
                    help="give either a function reference or an inline body",
                )

    @staticmethod
    def _add(
        result: ValidationResult,
        struct: StructSpec,
        rule: ConflictRule,
        message: str,
        field: str | None = None,
        note: str | None = None,
        help: str | None = None,
    ) -> None:
        result.conflicts.append(
            Conflict(
                rule=rule,
                struct=struct.name,
                field=field,
                message=message,
                note=note,
                help=help,
            )
        )


def validate_struct(struct: StructSpec) -> ValidationResult:
    """Validate a StructSpec with the default validator."""
    return StructValidator().validate(struct)


def _duplicates(names: tuple[str, ...]) -> list[str]:
    counts = Counter(names)
    return [name for name, count in counts.items() if count > 1]


def _is_expression(text: str) -> bool:
    try:
        ast.parse(text.strip(), mode="eval")
    except SyntaxError:
        return False
    return True
