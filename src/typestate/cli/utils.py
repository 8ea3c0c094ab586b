"""
Shared CLI utilities: schema discovery, diagnostics printing, version info.
"""

from __future__ import annotations

import logging
import platform
from pathlib import Path

import typer
from rich.console import Console
from rich.text import Text

from typestate._version import __version__
from typestate.core.ir import StructSpec
from typestate.core.manifest import MANIFEST_NAME, Manifest, apply_defaults, load_manifest
from typestate.core.spec_loader import load_schema
from typestate.core.validator import Conflict

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"typestate version {__version__}")
        typer.echo(f"  Python:   {platform.python_implementation()} {platform.python_version()}")
        typer.echo(f"  Platform: {platform.system()} {platform.release()}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route library logging to stderr; DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def resolve_manifest(manifest: str | None, schemas: list[Path]) -> Manifest | None:
    """
    Find the manifest to use.

    An explicit --manifest is always loaded. Without one, the manifest in
    the current directory is used only when no schema paths were given.
    """
    if manifest is not None:
        return load_manifest(Path(manifest).resolve())
    default = Path.cwd() / MANIFEST_NAME
    if not schemas and default.exists():
        return load_manifest(default)
    return None


def load_structs(schemas: list[Path], manifest: Manifest | None) -> list[StructSpec]:
    """Load structs from explicit schema paths, else from the manifest."""
    paths = list(schemas)
    if not paths and manifest is not None:
        paths = manifest.schema_paths()
    if not paths:
        typer.echo(
            f"No schema files given and no {MANIFEST_NAME} with [generate] schemas found.",
            err=True,
        )
        raise typer.Exit(code=1)

    structs: list[StructSpec] = []
    for path in paths:
        structs.extend(load_schema(path))
    if manifest is not None:
        structs = [apply_defaults(s, manifest.defaults) for s in structs]
    return structs


def print_conflicts(conflicts: list[Conflict]) -> None:
    """Print conflicts with their note/help lines."""
    for conflict in conflicts:
        err_console.print(Text(f"✗ {conflict.format()}", style="bold red"))
        if conflict.note:
            err_console.print(Text(f"    note: {conflict.note}", style="bright_black"))
        if conflict.help:
            err_console.print(Text(f"    help: {conflict.help}", style="cyan"))


def print_success(message: str) -> None:
    console.print(Text(f"✓ {message}", style="bold green"))
