"""
Generation pipeline.

validate -> build lattice -> plan values -> emit declarations, once per
StructSpec. A struct with conflicts yields its conflicts and no
declarations; other structs in the same batch are unaffected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .emitter import emit_declarations
from .errors import SchemaConflictError
from .ir import DeclarationSet, StructSpec
from .lattice import build_lattice
from .resolution import plan_struct
from .validator import Conflict, StructValidator

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Outcome of one generation pass."""

    struct_name: str
    declarations: DeclarationSet | None = None
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.declarations is not None and not self.conflicts


def generate(struct: StructSpec, validator: StructValidator | None = None) -> GenerationResult:
    """
    Run one generation pass for a struct.

    Returns:
        GenerationResult with either declarations or conflicts, never both
    """
    validation = (validator or StructValidator()).validate(struct)
    if not validation.valid:
        logger.info(
            "Struct %s rejected with %d conflict(s)", struct.name, len(validation.conflicts)
        )
        return GenerationResult(struct_name=struct.name, conflicts=validation.conflicts)

    lattice = build_lattice(struct)
    plans = plan_struct(struct)
    declarations = emit_declarations(struct, lattice, plans)
    logger.info("Struct %s: generated %d state(s)", struct.name, len(declarations.states))
    return GenerationResult(struct_name=struct.name, declarations=declarations)


def generate_all(structs: list[StructSpec]) -> list[GenerationResult]:
    """Generate every struct independently, preserving input order."""
    validator = StructValidator()
    return [generate(s, validator) for s in structs]


def generate_or_raise(struct: StructSpec) -> DeclarationSet:
    """
    Generate declarations, raising on conflicts.

    Raises:
        SchemaConflictError: carrying every conflict found
    """
    result = generate(struct)
    if result.declarations is None:
        raise SchemaConflictError(struct.name, result.conflicts)
    return result.declarations
