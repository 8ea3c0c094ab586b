"""
Renderers for typestate declarations.

Declarations are language-neutral; renderers turn them into source text.
"""

from typestate.render.python import PythonRenderer, render_module

__all__ = [
    "PythonRenderer",
    "render_module",
]
