"""
typestate CLI.

Commands:
- validate: check schemas, report conflicts
- generate: render builders into a Python module
- inspect: show a struct's state lattice
"""

from __future__ import annotations

import typer

from typestate._version import __version__
from typestate.cli.generate import generate_command, inspect_command, validate_command
from typestate.cli.utils import configure_logging, version_callback

app = typer.Typer(
    help="""typestate – compile-time checked builders for Python records

Reads record schemas (YAML, JSON, TOML) and generates one builder class per
combination of supplied required fields.
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """typestate CLI main callback for global options."""
    configure_logging(verbose)


app.command(name="validate")(validate_command)
app.command(name="generate")(generate_command)
app.command(name="inspect")(inspect_command)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the CLI."""
    app(args=argv)


__all__ = [
    "__version__",
    "app",
    "main",
]
