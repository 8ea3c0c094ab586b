"""
Output declarations produced by the emission engine.

These are structured, language-neutral descriptions of the generated
classes and operations. The Python renderer turns them into source text;
tests inspect them directly.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from .structs import Visibility
from .types import GenericParam


class ParameterDecl(BaseModel):
    """A single operation parameter."""

    name: str
    type_expr: str

    model_config = ConfigDict(frozen=True)


class SlotDecl(BaseModel):
    """A stored value on a state class or the record."""

    name: str
    type_expr: str
    required: bool = False

    model_config = ConfigDict(frozen=True)


class InitSource(StrEnum):
    """Where a slot of the returned object gets its value."""

    CARRIED = "carried"  # copied from the current state
    ARGUMENT = "argument"  # the operation's resolved parameter
    DEFAULT = "default"  # the field's resolved default


class SlotInit(BaseModel):
    """
    Initialization of one slot of the object an operation returns.

    Attributes:
        slot: Slot (field) name
        source: Where the value comes from
        expression: Value expression for ARGUMENT and DEFAULT sources
    """

    slot: str
    source: InitSource
    expression: str | None = None

    model_config = ConfigDict(frozen=True)


class OperationKind(StrEnum):
    """Kinds of generated operations."""

    INITIALIZER = "initializer"  # zero-argument entry
    ENTRY_POINT = "entry_point"  # single-argument static entry
    TRANSITION = "transition"  # sets a required field, changes state
    SELF_LOOP = "self_loop"  # sets an optional field, same state
    COMPLETION = "completion"  # terminal state only, produces the record


class OperationDecl(BaseModel):
    """
    A generated method.

    Attributes:
        kind: Operation kind
        name: Method name
        returns: Name of the class the method returns
        field: Field set by the operation (None for initializer/completion)
        parameter: Parameter accepted (None for initializer/completion)
        inits: Slot initializations of the returned object
        is_static: Static method (entry operations)
        in_place: Mutates the receiver and returns it (non-const self-loops)
        doc: Docstring for the generated method
    """

    kind: OperationKind
    name: str
    returns: str
    field: str | None = None
    parameter: ParameterDecl | None = None
    inits: list[SlotInit] = Field(default_factory=list)
    is_static: bool = False
    in_place: bool = False
    doc: str = ""

    model_config = ConfigDict(frozen=True)

    def init_for(self, slot: str) -> SlotInit | None:
        """Get the initialization of a slot."""
        for init in self.inits:
            if init.slot == slot:
                return init
        return None


class StateDecl(BaseModel):
    """
    One builder state: storage shape plus outgoing operations.

    Attributes:
        state_id: Bitset over required fields
        name: Canonical state class name
        set_fields: Required fields set in this state
        missing_fields: Required fields still missing
        slots: Stored values (optional fields plus set required fields)
        operations: Transition, self-loop and (terminal only) completion operations
        is_initial: Entry operations return this state
        is_terminal: All required fields are set
    """

    state_id: int
    name: str
    set_fields: list[str] = Field(default_factory=list)
    missing_fields: list[str] = Field(default_factory=list)
    slots: list[SlotDecl] = Field(default_factory=list)
    operations: list[OperationDecl] = Field(default_factory=list)
    is_initial: bool = False
    is_terminal: bool = False

    model_config = ConfigDict(frozen=True)

    def get_operation(self, name: str) -> OperationDecl | None:
        """Get an operation by method name."""
        for op in self.operations:
            if op.name == name:
                return op
        return None

    @property
    def completion(self) -> OperationDecl | None:
        for op in self.operations:
            if op.kind == OperationKind.COMPLETION:
                return op
        return None


class RecordDecl(BaseModel):
    """The target record class."""

    name: str
    fields: list[SlotDecl] = Field(default_factory=list)
    frozen: bool = False
    doc: str | None = None

    model_config = ConfigDict(frozen=True)


class BuilderDecl(BaseModel):
    """Namespace class carrying the entry operations."""

    name: str
    operations: list[OperationDecl] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class HelperFunctionDecl(BaseModel):
    """A synthesized module-level function (const-mode converters)."""

    name: str
    parameter: ParameterDecl
    returns: str
    body: str
    field: str

    model_config = ConfigDict(frozen=True)


class DeclarationSet(BaseModel):
    """
    Everything generated for one StructSpec.

    Attributes:
        struct_name: Record name
        visibility: Export visibility
        generic_parameters: Type parameters threaded through every class
        const_mode: Whether the set was generated in const mode
        imports: Import statements the generated code needs
        record: The record class
        builder: The entry namespace class
        states: State classes, ordered by StateId
        helpers: Synthesized helper functions
    """

    struct_name: str
    visibility: Visibility = Visibility.PUBLIC
    generic_parameters: list[GenericParam] = Field(default_factory=list)
    const_mode: bool = False
    imports: list[str] = Field(default_factory=list)
    record: RecordDecl
    builder: BuilderDecl
    states: list[StateDecl] = Field(default_factory=list)
    helpers: list[HelperFunctionDecl] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def get_state(self, name: str) -> StateDecl | None:
        """Get a state declaration by class name."""
        for state in self.states:
            if state.name == name:
                return state
        return None

    @property
    def initial_state(self) -> StateDecl:
        return next(s for s in self.states if s.is_initial)

    @property
    def terminal_state(self) -> StateDecl:
        return next(s for s in self.states if s.is_terminal)

    @property
    def class_names(self) -> list[str]:
        """Every class name this set defines, record first."""
        return [self.record.name, self.builder.name] + [s.name for s in self.states]
