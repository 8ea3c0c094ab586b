"""
Emission engine.

Walks the state lattice of a validated struct and produces the
declarations for the record, the entry namespace, every state class, and
any synthesized helper functions. The engine is a pure function of
(struct, lattice, plans): it keeps no state between calls.
"""

from __future__ import annotations

import logging

from .ir import (
    BuilderDecl,
    DeclarationSet,
    FieldSpec,
    HelperFunctionDecl,
    InitSource,
    OperationDecl,
    OperationKind,
    RecordDecl,
    SlotDecl,
    SlotInit,
    StateDecl,
    StructSpec,
)
from .lattice import StateId, StateLattice, TransitionEdge
from .resolution import ValuePlan

logger = logging.getLogger(__name__)

INITIALIZER_NAME = "new"


class Emitter:
    """
    Produces a DeclarationSet for one struct.

    Usage:
        emitter = Emitter(struct, lattice, plans)
        declarations = emitter.emit()
    """

    def __init__(self, struct: StructSpec, lattice: StateLattice, plans: dict[str, ValuePlan]):
        self.struct = struct
        self.lattice = lattice
        self.plans = plans

    def emit(self) -> DeclarationSet:
        states = [self._emit_state(state_id) for state_id in self.lattice.reachable()]
        declarations = DeclarationSet(
            struct_name=self.struct.name,
            visibility=self.struct.visibility,
            generic_parameters=list(self.struct.generic_parameters),
            const_mode=self.struct.const_mode,
            imports=self._imports(),
            record=self._emit_record(),
            builder=self._emit_builder(),
            states=states,
            helpers=self._helpers(),
        )
        logger.debug(
            "Struct %s: emitted %d state(s), %d operation(s), %d helper(s)",
            self.struct.name,
            len(states),
            sum(len(s.operations) for s in states),
            len(declarations.helpers),
        )
        return declarations

    # -------------------------------------------------------------------------
    # Record and entry namespace
    # -------------------------------------------------------------------------

    def _emit_record(self) -> RecordDecl:
        return RecordDecl(
            name=self.struct.name,
            fields=[self._slot(f) for f in self.struct.fields],
            frozen=self.struct.const_mode,
            doc=self.struct.doc,
        )

    def _emit_builder(self) -> BuilderDecl:
        initial = self.lattice.initial
        target = self.lattice.name_of(initial)
        entry = self.struct.entry_point

        if entry is None:
            operation = OperationDecl(
                kind=OperationKind.INITIALIZER,
                name=INITIALIZER_NAME,
                returns=target,
                inits=self._initial_inits(initial, None),
                is_static=True,
                doc=f"Start building a {self.struct.name}.",
            )
        else:
            plan = self.plans[entry.name]
            operation = OperationDecl(
                kind=OperationKind.ENTRY_POINT,
                name=self.struct.effective_setter_name(entry),
                returns=target,
                field=entry.name,
                parameter=plan.parameter,
                inits=self._initial_inits(initial, plan),
                is_static=True,
                doc=f"Start building a {self.struct.name} with `{entry.name}` set.",
            )
        return BuilderDecl(name=self.struct.builder_name, operations=[operation])

    def _initial_inits(self, state: StateId, entry_plan: ValuePlan | None) -> list[SlotInit]:
        inits = []
        for f in self._slot_fields(state):
            plan = self.plans[f.name]
            if entry_plan is not None and f.name == entry_plan.field.name:
                inits.append(
                    SlotInit(
                        slot=f.name,
                        source=InitSource.ARGUMENT,
                        expression=entry_plan.value_expression,
                    )
                )
            else:
                inits.append(
                    SlotInit(
                        slot=f.name,
                        source=InitSource.DEFAULT,
                        expression=plan.default_expression,
                    )
                )
        return inits

    # -------------------------------------------------------------------------
    # States
    # -------------------------------------------------------------------------

    def _emit_state(self, state_id: StateId) -> StateDecl:
        state = self.lattice.states[state_id]
        operations = [self._emit_edge(edge) for edge in self.lattice.edges_from(state_id)]
        if state_id == self.lattice.terminal:
            operations.append(self._emit_completion(state_id))

        return StateDecl(
            state_id=state_id,
            name=state.name,
            set_fields=list(state.set_fields),
            missing_fields=list(state.missing_fields),
            slots=[self._slot(f) for f in self._slot_fields(state_id)],
            operations=operations,
            is_initial=state_id == self.lattice.initial,
            is_terminal=state_id == self.lattice.terminal,
        )

    def _emit_edge(self, edge: TransitionEdge) -> OperationDecl:
        field = edge.field
        plan = self.plans[field.name]
        name = self.struct.effective_setter_name(field)
        target = self.lattice.name_of(edge.target)

        if edge.is_self_loop and not self.struct.const_mode:
            return OperationDecl(
                kind=OperationKind.SELF_LOOP,
                name=name,
                returns=target,
                field=field.name,
                parameter=plan.parameter,
                inits=[
                    SlotInit(
                        slot=field.name,
                        source=InitSource.ARGUMENT,
                        expression=plan.value_expression,
                    )
                ],
                in_place=True,
                doc=f"Set `{field.name}`.",
            )

        inits = []
        for f in self._slot_fields(edge.target):
            if f.name == field.name:
                inits.append(
                    SlotInit(
                        slot=f.name,
                        source=InitSource.ARGUMENT,
                        expression=plan.value_expression,
                    )
                )
            else:
                inits.append(SlotInit(slot=f.name, source=InitSource.CARRIED))

        if edge.is_self_loop:
            kind = OperationKind.SELF_LOOP
            doc = f"Set `{field.name}`."
        else:
            kind = OperationKind.TRANSITION
            doc = f"Set the required field `{field.name}`."
        return OperationDecl(
            kind=kind,
            name=name,
            returns=target,
            field=field.name,
            parameter=plan.parameter,
            inits=inits,
            doc=doc,
        )

    def _emit_completion(self, state_id: StateId) -> OperationDecl:
        return OperationDecl(
            kind=OperationKind.COMPLETION,
            name=self.struct.build_method_name,
            returns=self.struct.name,
            inits=[
                SlotInit(slot=f.name, source=InitSource.CARRIED)
                for f in self._slot_fields(state_id)
            ],
            doc=f"Build the {self.struct.name}.",
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _slot_fields(self, state_id: StateId) -> list[FieldSpec]:
        """Fields stored in a state: optional ones plus set required ones."""
        return [
            f
            for f in self.struct.fields
            if not f.required or self.lattice.is_set(state_id, f.name)
        ]

    @staticmethod
    def _slot(field: FieldSpec) -> SlotDecl:
        return SlotDecl(name=field.name, type_expr=field.storage_type.expr, required=field.required)

    def _helpers(self) -> list[HelperFunctionDecl]:
        return [p.helper for p in self.plans.values() if p.helper is not None]

    def _imports(self) -> list[str]:
        imports: list[str] = []
        for line in self.struct.type_imports:
            if line not in imports:
                imports.append(line)
        for plan in self.plans.values():
            for line in plan.imports:
                if line not in imports:
                    imports.append(line)
        return imports


def emit_declarations(
    struct: StructSpec, lattice: StateLattice, plans: dict[str, ValuePlan]
) -> DeclarationSet:
    """Emit the declarations for a validated struct."""
    return Emitter(struct, lattice, plans).emit()
