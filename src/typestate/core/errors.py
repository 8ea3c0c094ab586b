"""
Error types for typestate schema loading, validation, and rendering.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .validator import Conflict


class TypestateError(Exception):
    """Base exception for all typestate errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class SchemaLoadError(TypestateError):
    """
    Raised when a schema document cannot be turned into a StructSpec.

    Examples:
    - Unreadable or malformed YAML/JSON/TOML
    - Unknown attribute names
    - Attribute values of the wrong shape
    """

    pass


class SchemaConflictError(TypestateError):
    """
    Raised when a StructSpec fails validation and the caller asked for an
    exception instead of a conflict list.

    The full batch of conflicts is kept on ``conflicts`` so the caller can
    render every diagnostic, not just the first.
    """

    def __init__(
        self,
        struct_name: str,
        conflicts: list[Conflict],
        context: Optional["ErrorContext"] = None,
    ):
        self.struct_name = struct_name
        self.conflicts = list(conflicts)
        lines = [f"Struct '{struct_name}' has {len(self.conflicts)} conflict(s):"]
        lines.extend(f"  - {c.format()}" for c in self.conflicts)
        super().__init__("\n".join(lines), context)


class RenderError(TypestateError):
    """
    Raised when declarations cannot be rendered into a Python module.

    Examples:
    - Two structs in one module declare the same TypeVar with different bounds
    - Two structs in one module share a name
    """

    pass


class ManifestError(TypestateError):
    """Raised when typestate.toml is missing or malformed."""

    pass


@dataclass
class ErrorContext:
    """
    Context information for an error, including source location.

    Attributes:
        file: Path to the schema document where the error occurred
        struct: Optional struct name within the document
        field: Optional field name within the struct
    """

    file: Path
    struct: str | None = None
    field: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "schema.yaml: struct Config, field host"
        """
        location = str(self.file)
        parts = []
        if self.struct:
            parts.append(f"struct {self.struct}")
        if self.field:
            parts.append(f"field {self.field}")
        if parts:
            location += ": " + ", ".join(parts)
        return location


def make_load_error(
    message: str,
    file: Path | None = None,
    struct: str | None = None,
    field: str | None = None,
) -> SchemaLoadError:
    """
    Helper to create a SchemaLoadError with optional context.

    Args:
        message: Error description
        file: Optional schema document path
        struct: Optional struct name
        field: Optional field name

    Returns:
        SchemaLoadError with context if a file is known
    """
    if file is not None:
        return SchemaLoadError(message, ErrorContext(file=file, struct=struct, field=field))
    return SchemaLoadError(message)
