"""Core typestate functionality: schema IR, validator, lattice, planner, emitter, pipeline."""

from . import ir
from .emitter import Emitter, emit_declarations
from .errors import (
    ErrorContext,
    ManifestError,
    RenderError,
    SchemaConflictError,
    SchemaLoadError,
    TypestateError,
)
from .lattice import State, StateLattice, TransitionEdge, build_lattice
from .manifest import Manifest, apply_defaults, load_manifest
from .pipeline import GenerationResult, generate, generate_all, generate_or_raise
from .resolution import ResolutionPlanner, ValuePlan, plan_struct
from .spec_loader import load_schema, parse_schema
from .strategy import SetterStrategy, classify_field
from .validator import Conflict, ConflictRule, StructValidator, ValidationResult, validate_struct

__all__ = [
    "ir",
    # Errors
    "TypestateError",
    "SchemaLoadError",
    "SchemaConflictError",
    "RenderError",
    "ManifestError",
    "ErrorContext",
    # Validation
    "Conflict",
    "ConflictRule",
    "StructValidator",
    "ValidationResult",
    "validate_struct",
    # Lattice
    "State",
    "StateLattice",
    "TransitionEdge",
    "build_lattice",
    # Resolution
    "SetterStrategy",
    "classify_field",
    "ResolutionPlanner",
    "ValuePlan",
    "plan_struct",
    # Emission
    "Emitter",
    "emit_declarations",
    # Pipeline
    "GenerationResult",
    "generate",
    "generate_all",
    "generate_or_raise",
    # Loading
    "load_schema",
    "parse_schema",
    "Manifest",
    "load_manifest",
    "apply_defaults",
]
