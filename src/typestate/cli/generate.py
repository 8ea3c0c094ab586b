"""
CLI commands for builder generation.

Commands:
- validate: Check schemas and report every conflict
- generate: Render the builder module
- inspect: Show a struct's state lattice
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
from rich.table import Table

from typestate.cli.utils import (
    console,
    load_structs,
    print_conflicts,
    print_success,
    resolve_manifest,
)
from typestate.core.errors import TypestateError
from typestate.core.lattice import build_lattice
from typestate.core.pipeline import generate_all
from typestate.core.validator import StructValidator
from typestate.render import render_module

logger = logging.getLogger(__name__)


def validate_command(
    schemas: list[Path] | None = typer.Argument(
        None, help="Schema files (default: from typestate.toml)"
    ),
    manifest: str | None = typer.Option(None, "--manifest", "-m", help="Path to typestate.toml"),
    format: str = typer.Option("human", "--format", "-f", help="Output format: 'human' or 'json'"),
) -> None:
    """
    Validate schemas without generating code.

    Exits with code 1 when any struct has conflicts.
    """
    schemas = schemas or []
    try:
        structs = load_structs(schemas, resolve_manifest(manifest, schemas))
    except TypestateError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    validator = StructValidator()
    conflicts = [c for s in structs for c in validator.validate(s).conflicts]

    if format == "json":
        typer.echo(
            json.dumps(
                {
                    "structs": [s.name for s in structs],
                    "conflicts": [c.model_dump(mode="json") for c in conflicts],
                },
                indent=2,
            )
        )
    elif conflicts:
        print_conflicts(conflicts)
    else:
        print_success(f"{len(structs)} struct(s) valid")

    if conflicts:
        raise typer.Exit(code=1)


def generate_command(
    schemas: list[Path] | None = typer.Argument(
        None, help="Schema files (default: from typestate.toml)"
    ),
    output: str | None = typer.Option(
        None, "--output", "-o", help="Output module path (default: manifest output or stdout)"
    ),
    manifest: str | None = typer.Option(None, "--manifest", "-m", help="Path to typestate.toml"),
    no_header: bool = typer.Option(False, "--no-header", help="Omit the generated header"),
) -> None:
    """
    Generate a Python module with type-state builders.

    Nothing is written when any struct has conflicts.
    """
    schemas = schemas or []
    try:
        mf = resolve_manifest(manifest, schemas)
        structs = load_structs(schemas, mf)
        results = generate_all(structs)
        failed = [r for r in results if not r.ok]
        if failed:
            for result in failed:
                print_conflicts(result.conflicts)
            typer.echo(f"{len(failed)} of {len(results)} struct(s) rejected", err=True)
            raise typer.Exit(code=1)

        header = not no_header and (mf.generate.header if mf else True)
        source = ", ".join(str(p) for p in schemas) if schemas else None
        content = render_module(
            [r.declarations for r in results if r.declarations is not None],
            header=header,
            source=source,
        )
    except TypestateError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    output_path = Path(output) if output else (mf.output_path if mf else None)
    if output_path is None:
        typer.echo(content, nl=False)
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content)
    logger.info("Wrote %s", output_path)
    print_success(f"Generated {output_path} ({len(results)} struct(s))")


def inspect_command(
    schema: Path = typer.Argument(..., help="Schema file"),
    struct: str | None = typer.Option(None, "--struct", "-s", help="Struct to inspect"),
) -> None:
    """
    Show the state lattice of a struct: states, setters, and transitions.
    """
    try:
        structs = load_structs([schema], None)
    except TypestateError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if struct is not None:
        structs = [s for s in structs if s.name == struct]
        if not structs:
            typer.echo(f"Struct '{struct}' not found in {schema}", err=True)
            raise typer.Exit(code=1)

    validator = StructValidator()
    for spec in structs:
        validation = validator.validate(spec)
        if not validation.valid:
            print_conflicts(validation.conflicts)
            raise typer.Exit(code=1)

        lattice = build_lattice(spec)
        table = Table(title=f"{spec.name}: {lattice.size} state(s)")
        table.add_column("State", style="cyan", no_wrap=True)
        table.add_column("Setters")
        table.add_column("")
        for state in lattice.states:
            marks = []
            if state.id == lattice.initial:
                marks.append("initial")
            if state.id == lattice.terminal:
                marks.append("terminal")
            setters = [
                f"{spec.effective_setter_name(e.field)} -> "
                + ("self" if e.is_self_loop else lattice.name_of(e.target))
                for e in lattice.edges_from(state.id)
            ]
            if state.id == lattice.terminal:
                setters.append(f"{spec.build_method_name}() -> {spec.name}")
            table.add_row(state.name, "\n".join(setters), ", ".join(marks))
        console.print(table)
