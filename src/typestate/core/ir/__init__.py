"""
typestate Intermediate Representation (IR) types.

Input side: the schema model (StructSpec, FieldSpec, ...), populated by a
frontend and immutable afterwards.

Output side: declarations produced by the emission engine.
"""

from .declarations import (
    BuilderDecl,
    DeclarationSet,
    HelperFunctionDecl,
    InitSource,
    OperationDecl,
    OperationKind,
    ParameterDecl,
    RecordDecl,
    SlotDecl,
    SlotInit,
    StateDecl,
)
from .fields import Converter, FieldSpec
from .structs import DEFAULT_BUILD_METHOD, StructSpec, Visibility
from .types import GenericParam, TypeRef

__all__ = [
    # Schema model
    "Converter",
    "FieldSpec",
    "GenericParam",
    "StructSpec",
    "TypeRef",
    "Visibility",
    "DEFAULT_BUILD_METHOD",
    # Declarations
    "BuilderDecl",
    "DeclarationSet",
    "HelperFunctionDecl",
    "InitSource",
    "OperationDecl",
    "OperationKind",
    "ParameterDecl",
    "RecordDecl",
    "SlotDecl",
    "SlotInit",
    "StateDecl",
]
