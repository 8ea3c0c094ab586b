"""
typestate - compile-time checked builders for Python records.

Derives a type-state builder from a declarative record schema: one class
per combination of supplied required fields, so calling ``build()`` before
every required field is set is rejected by the type checker.
"""

from __future__ import annotations

from ._version import __version__
from .core import ir
from .core.errors import (
    ManifestError,
    RenderError,
    SchemaConflictError,
    SchemaLoadError,
    TypestateError,
)
from .core.pipeline import generate, generate_all, generate_or_raise
from .render import render_module

__all__ = [
    "__version__",
    "ir",
    "generate",
    "generate_all",
    "generate_or_raise",
    "render_module",
    "TypestateError",
    "SchemaLoadError",
    "SchemaConflictError",
    "RenderError",
    "ManifestError",
]
