"""
Python renderer for typestate declarations.

Turns DeclarationSets into a Python module. Each builder state becomes its
own class and only the terminal state's class defines the build method,
so a type checker rejects ``build()`` on an incomplete builder.

Key features:
- Dataclass records (frozen in const mode)
- Slotted state classes with keyword-only constructors
- Entry namespace class per struct (``ConfigBuilder.new()``)
- Generic records and states via TypeVar
"""

from __future__ import annotations

import logging

from typestate.core.errors import RenderError
from typestate.core.ir import (
    BuilderDecl,
    DeclarationSet,
    HelperFunctionDecl,
    InitSource,
    OperationDecl,
    OperationKind,
    RecordDecl,
    SlotInit,
    StateDecl,
    Visibility,
)

logger = logging.getLogger(__name__)

# Markers for the generated header
HEADER_START = "# === AUTO-GENERATED BY TYPESTATE ============================================"
HEADER_END = "# =========================================================================="

INDENT = "    "


class PythonRenderer:
    """
    Render declaration sets as a single Python module.

    The module contains, in order:
    1. Auto-generated header (source and struct list)
    2. Imports and ``__all__``
    3. TypeVars and synthesized helper functions
    4. Per struct: record, entry namespace, state classes
    """

    def render_module(
        self,
        declaration_sets: list[DeclarationSet],
        header: bool = True,
        source: str | None = None,
    ) -> str:
        """
        Generate complete module content.

        Args:
            declaration_sets: Declarations of every struct in the module
            header: Emit the auto-generated header comment
            source: Schema path shown in the header

        Returns:
            Python source text
        """
        self._check_unique_names(declaration_sets)
        typevars = self._collect_typevars(declaration_sets)

        parts = []
        if header:
            parts.append(self._render_header(declaration_sets, source))
        parts.append(self._render_imports(declaration_sets, typevars))
        parts.append(self._render_all(declaration_sets))
        if typevars:
            parts.append(self._render_typevars(typevars))

        helpers = [h for ds in declaration_sets for h in ds.helpers]
        for helper in helpers:
            parts.append(self._render_helper(helper))

        for ds in declaration_sets:
            parts.append(self._render_record(ds.record, ds))
            parts.append(self._render_builder(ds.builder, ds))
            for state in ds.states:
                parts.append(self._render_state(state, ds))

        logger.debug(
            "Rendered %d struct(s), %d helper(s)", len(declaration_sets), len(helpers)
        )
        return "\n\n".join(p.rstrip("\n") for p in parts) + "\n"

    # -------------------------------------------------------------------------
    # Module preamble
    # -------------------------------------------------------------------------

    def _render_header(self, declaration_sets: list[DeclarationSet], source: str | None) -> str:
        lines = [HEADER_START]
        if source:
            lines.append(f"# Source: {source}")
        lines.append("# Structs:")
        for ds in declaration_sets:
            mode = " (const)" if ds.const_mode else ""
            lines.append(f"#   - {ds.struct_name}: {len(ds.states)} state(s){mode}")
        lines.append("# Regenerate with `typestate generate`; manual edits will be lost.")
        lines.append(HEADER_END)
        return "\n".join(lines)

    def _render_imports(
        self, declaration_sets: list[DeclarationSet], typevars: dict[str, str | None]
    ) -> str:
        typing_names = set()
        if typevars:
            typing_names.update({"Generic", "TypeVar"})
        if any(self._uses_any(ds) for ds in declaration_sets):
            typing_names.add("Any")

        lines = ["from __future__ import annotations", "", "from dataclasses import dataclass"]
        if typing_names:
            lines.append(f"from typing import {', '.join(sorted(typing_names))}")

        extra: list[str] = []
        for ds in declaration_sets:
            for line in ds.imports:
                if line not in extra:
                    extra.append(line)
        if extra:
            lines.append("")
            lines.extend(extra)
        return "\n".join(lines)

    def _render_all(self, declaration_sets: list[DeclarationSet]) -> str:
        names = [
            name
            for ds in declaration_sets
            if ds.visibility == Visibility.PUBLIC
            for name in ds.class_names
        ]
        if not names:
            return "__all__: list[str] = []"
        lines = ["__all__ = ["]
        lines.extend(f'{INDENT}"{name}",' for name in names)
        lines.append("]")
        return "\n".join(lines)

    def _render_typevars(self, typevars: dict[str, str | None]) -> str:
        lines = []
        for name, bound in typevars.items():
            if bound:
                lines.append(f'{name} = TypeVar("{name}", bound="{bound}")')
            else:
                lines.append(f'{name} = TypeVar("{name}")')
        return "\n".join(lines)

    def _render_helper(self, helper: HelperFunctionDecl) -> str:
        param = helper.parameter
        return "\n".join(
            [
                "",
                f"def {helper.name}({param.name}: {param.type_expr}) -> {helper.returns}:",
                f'{INDENT}"""Converter for `{helper.field}`."""',
                f"{INDENT}return {helper.body}",
            ]
        )

    # -------------------------------------------------------------------------
    # Classes
    # -------------------------------------------------------------------------

    def _render_record(self, record: RecordDecl, ds: DeclarationSet) -> str:
        decorator = "@dataclass(frozen=True)" if record.frozen else "@dataclass"
        lines = ["", decorator, f"class {record.name}{self._generic_base(ds)}:"]
        lines.append(f"{INDENT}{_docstring(record.doc or f'{record.name} record.')}")
        lines.append("")
        for slot in record.fields:
            lines.append(f"{INDENT}{slot.name}: {slot.type_expr}")
        return "\n".join(lines)

    def _render_builder(self, builder: BuilderDecl, ds: DeclarationSet) -> str:
        lines = [
            "",
            f"class {builder.name}:",
            f'{INDENT}"""Entry points for building {ds.struct_name}."""',
            "",
            f"{INDENT}__slots__ = ()",
        ]
        for op in builder.operations:
            lines.append("")
            lines.extend(self._render_operation(op, ds))
        return "\n".join(lines)

    def _render_state(self, state: StateDecl, ds: DeclarationSet) -> str:
        lines = ["", f"class {state.name}{self._generic_base(ds)}:"]
        lines.append(f"{INDENT}{_docstring(self._state_doc(state, ds))}")
        lines.append("")

        slot_attrs = ", ".join(f'"_{s.name}"' for s in state.slots)
        if len(state.slots) == 1:
            slot_attrs += ","
        lines.append(f"{INDENT}__slots__ = ({slot_attrs})")
        lines.append("")

        if state.slots:
            params = ", ".join(f"{s.name}: {s.type_expr}" for s in state.slots)
            lines.append(f"{INDENT}def __init__(self, *, {params}) -> None:")
            for s in state.slots:
                lines.append(f"{INDENT * 2}self._{s.name} = {s.name}")
        else:
            lines.append(f"{INDENT}def __init__(self) -> None:")
            lines.append(f"{INDENT * 2}pass")

        for op in state.operations:
            lines.append("")
            lines.extend(self._render_operation(op, ds))
        return "\n".join(lines)

    def _state_doc(self, state: StateDecl, ds: DeclarationSet) -> str:
        if not state.set_fields and not state.missing_fields:
            return f"Builder for {ds.struct_name}; ready to build."
        parts = []
        if state.set_fields:
            parts.append("set: " + ", ".join(state.set_fields))
        if state.missing_fields:
            parts.append("missing: " + ", ".join(state.missing_fields))
        return f"Builder state for {ds.struct_name} ({'; '.join(parts)})."

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def _render_operation(self, op: OperationDecl, ds: DeclarationSet) -> list[str]:
        returns = op.returns + self._generic_args(ds)
        params = []
        if not op.is_static:
            params.append("self")
        if op.parameter is not None:
            params.append(f"{op.parameter.name}: {op.parameter.type_expr}")

        lines = []
        if op.is_static:
            lines.append(f"{INDENT}@staticmethod")
        lines.append(f"{INDENT}def {op.name}({', '.join(params)}) -> {returns}:")
        if op.doc:
            lines.append(f"{INDENT * 2}{_docstring(op.doc)}")

        if op.in_place:
            for init in op.inits:
                lines.append(f"{INDENT * 2}self._{init.slot} = {self._init_value(init)}")
            lines.append(f"{INDENT * 2}return self")
            return lines

        lines.extend(self._render_construct(op.returns, op.inits, INDENT * 2))
        return lines

    def _render_construct(self, cls: str, inits: list[SlotInit], indent: str) -> list[str]:
        if not inits:
            return [f"{indent}return {cls}()"]
        args = [f"{init.slot}={self._init_value(init)}" for init in inits]
        single = f"{indent}return {cls}({', '.join(args)})"
        if len(inits) <= 2 and len(single) <= 100:
            return [single]
        lines = [f"{indent}return {cls}("]
        lines.extend(f"{indent}{INDENT}{arg}," for arg in args)
        lines.append(f"{indent})")
        return lines

    @staticmethod
    def _init_value(init: SlotInit) -> str:
        if init.source == InitSource.CARRIED:
            return f"self._{init.slot}"
        if init.expression is None:
            raise RenderError(f"Slot '{init.slot}' has no value expression")
        return init.expression

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _generic_args(ds: DeclarationSet) -> str:
        if not ds.generic_parameters:
            return ""
        return "[" + ", ".join(p.name for p in ds.generic_parameters) + "]"

    def _generic_base(self, ds: DeclarationSet) -> str:
        if not ds.generic_parameters:
            return ""
        return f"(Generic{self._generic_args(ds)})"

    @staticmethod
    def _uses_any(ds: DeclarationSet) -> bool:
        ops = list(ds.builder.operations) + [op for s in ds.states for op in s.operations]
        return any(
            op.parameter is not None and op.parameter.type_expr == "Any"
            for op in ops
            if op.kind != OperationKind.COMPLETION
        )

    @staticmethod
    def _collect_typevars(declaration_sets: list[DeclarationSet]) -> dict[str, str | None]:
        typevars: dict[str, str | None] = {}
        for ds in declaration_sets:
            for param in ds.generic_parameters:
                if param.name in typevars and typevars[param.name] != param.bound:
                    raise RenderError(
                        f"TypeVar '{param.name}' is declared with different bounds "
                        f"({typevars[param.name]!r} and {param.bound!r}); "
                        "rename it in one of the structs"
                    )
                typevars[param.name] = param.bound
        return typevars

    @staticmethod
    def _check_unique_names(declaration_sets: list[DeclarationSet]) -> None:
        seen: set[str] = set()
        for ds in declaration_sets:
            for name in ds.class_names:
                if name in seen:
                    raise RenderError(f"Class '{name}' would be generated twice in one module")
                seen.add(name)
            for helper in ds.helpers:
                if helper.name in seen:
                    raise RenderError(
                        f"Function '{helper.name}' would be generated twice in one module"
                    )
                seen.add(helper.name)


def render_module(
    declaration_sets: list[DeclarationSet], header: bool = True, source: str | None = None
) -> str:
    """Render declaration sets with the default renderer."""
    return PythonRenderer().render_module(declaration_sets, header=header, source=source)


def _docstring(text: str) -> str:
    return '"""' + text.replace('"""', '\\"\\"\\"') + '"""'
