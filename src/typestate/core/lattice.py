"""
State lattice for type-state builders.

A builder state records which required fields have been supplied. With
``n`` required fields there are ``2**n`` states, each identified by an
integer bitset (bit ``i`` is the ``i``-th required field in declaration
order). States live in a flat tuple indexed by that integer, so names,
edges and lookups never depend on how subsets happen to be enumerated.

Optional fields never participate in state: their setters are self-loops.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from functools import cached_property

from .ir import FieldSpec, StructSpec
from .strategy import has_setter
from .strings import snake_to_pascal

logger = logging.getLogger(__name__)

StateId = int


@dataclass(frozen=True)
class State:
    """One node of the lattice."""

    id: StateId
    name: str
    set_fields: tuple[str, ...]
    missing_fields: tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return not self.set_fields


@dataclass(frozen=True)
class TransitionEdge:
    """
    A setter operation between two states.

    Required-field edges satisfy ``target == source | bit(field)``;
    optional-field edges are self-loops (``target == source``).
    """

    source: StateId
    field: FieldSpec
    target: StateId

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target


class StateLattice:
    """
    The complete state space of one struct's builder.

    Usage:
        lattice = build_lattice(struct)
        for state in lattice.states:
            print(state.name, [e.field.name for e in lattice.edges_from(state.id)])
    """

    def __init__(self, struct: StructSpec):
        self.struct = struct
        self.required: tuple[FieldSpec, ...] = tuple(struct.required_fields)
        self.optional: tuple[FieldSpec, ...] = tuple(struct.optional_fields)
        self._bits = {f.name: 1 << i for i, f in enumerate(self.required)}
        self.states: tuple[State, ...] = tuple(
            self._make_state(state_id) for state_id in range(self.size)
        )

    @property
    def size(self) -> int:
        """Number of states (``2**n``)."""
        return 1 << len(self.required)

    @property
    def terminal(self) -> StateId:
        """The all-set state."""
        return self.size - 1

    @property
    def initial(self) -> StateId:
        """
        The state entry operations return.

        All-unset, unless an entry-point field exists, in which case that
        field's bit is already set.
        """
        entry = self.struct.entry_point
        if entry is not None and entry.name in self._bits:
            return self._bits[entry.name]
        return 0

    def bit(self, field_name: str) -> int:
        """Bit of a required field."""
        return self._bits[field_name]

    def is_set(self, state: StateId, field_name: str) -> bool:
        """Check if a required field is set in a state."""
        return bool(state & self._bits[field_name])

    def name_of(self, state: StateId) -> str:
        return self.states[state].name

    def transition(self, state: StateId, field_name: str) -> StateId:
        """
        State reached by setting a field.

        Optional fields (and already-set required fields) leave the state
        unchanged.
        """
        return state | self._bits.get(field_name, 0)

    @cached_property
    def edges(self) -> tuple[TransitionEdge, ...]:
        """
        All setter edges, grouped by source state.

        Within a state, edges follow field declaration order: one edge per
        unset required field and one self-loop per optional field.
        Fields without a setter contribute no edges.
        """
        return tuple(edge for state in self.states for edge in self._edges_for(state.id))

    def edges_from(self, state: StateId) -> list[TransitionEdge]:
        return [e for e in self.edges if e.source == state]

    def reachable(self) -> list[StateId]:
        """
        States reachable from the initial state, in StateId order.

        Every state whose bits include the initial state's bits is
        reachable, since required fields can be set in any order.
        """
        start = self.initial
        return [s.id for s in self.states if s.id & start == start]

    def set_fields(self, state: StateId) -> list[FieldSpec]:
        return [f for f in self.required if self.is_set(state, f.name)]

    def walk(self, field_names: list[str], start: StateId | None = None) -> StateId:
        """Apply setters in order from ``start`` (default: initial)."""
        state = self.initial if start is None else start
        for name in field_names:
            state = self.transition(state, name)
        return state

    def __iter__(self) -> Iterator[State]:
        return iter(self.states)

    def __len__(self) -> int:
        return self.size

    def _make_state(self, state_id: StateId) -> State:
        markers = []
        set_names = []
        missing_names = []
        for f in self.required:
            pascal = snake_to_pascal(f.name)
            if state_id & self._bits[f.name]:
                markers.append(f"Has{pascal}")
                set_names.append(f.name)
            else:
                markers.append(f"Missing{pascal}")
                missing_names.append(f.name)

        base = self.struct.state_base_name
        name = f"{base}_{'_'.join(markers)}" if markers else base
        return State(
            id=state_id,
            name=name,
            set_fields=tuple(set_names),
            missing_fields=tuple(missing_names),
        )

    def _edges_for(self, state: StateId) -> Iterator[TransitionEdge]:
        for f in self.struct.fields:
            if not has_setter(f):
                continue
            if f.required:
                if not self.is_set(state, f.name):
                    yield TransitionEdge(state, f, state | self._bits[f.name])
            else:
                yield TransitionEdge(state, f, state)


def build_lattice(struct: StructSpec) -> StateLattice:
    """Build the state lattice for a validated struct."""
    lattice = StateLattice(struct)
    logger.debug(
        "Struct %s: %d required field(s), %d state(s), initial=%s, terminal=%s",
        struct.name,
        len(lattice.required),
        lattice.size,
        lattice.name_of(lattice.initial),
        lattice.name_of(lattice.terminal),
    )
    return lattice
