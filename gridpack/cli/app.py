"""Main Typer application — imports and registers all CLI commands.

Entry point: ``gridpack`` (configured via pyproject.toml console_scripts).

Commands: build, inspect, split-args.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from gridpack import __version__
from gridpack.cli.commands.build import build_cmd
from gridpack.cli.commands.inspect_cmd import inspect_cmd
from gridpack.config import settings
from gridpack.core.errors import InvalidRequest
from gridpack.core.tokenizer import split_args

app = typer.Typer(
    name="gridpack",
    help="gridpack: standalone Python runtime artifacts for compute grids.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="build", help="Build a standalone runtime archive.")(build_cmd)
app.command(name="inspect", help="Show the manifest of a built archive.")(inspect_cmd)


def configure_logging(level: str) -> None:
    """Route library logging through Rich on stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"gridpack {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (default: GRIDPACK_LOG_LEVEL or INFO).",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the gridpack version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Configure logging before any command runs."""
    configure_logging(log_level or settings.log_level)


@app.command(
    name="split-args",
    help="Show how --pip-args text is tokenized. Text may start with an option name.",
    context_settings={"ignore_unknown_options": True},
)
def split_args_cmd(
    text: str = typer.Argument(..., help="Argument string as given to --pip-args."),
) -> None:
    """Print one token per line, bracketed so empty tokens are visible."""
    console = Console()
    try:
        tokens = split_args(text)
    except InvalidRequest as exc:
        console.print(f"[bold red]{exc.code}:[/bold red] {escape(exc.message)}")
        raise typer.Exit(code=1)
    for token in tokens:
        console.print(f"[{token}]", markup=False)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
