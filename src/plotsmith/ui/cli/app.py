"""Typer application wiring for the plotsmith CLI.

Pandoc runs filters as ``plotsmith <output-format>`` with the document on
stdin, so :func:`main` routes any invocation that does not name a
subcommand to ``filter``.
"""

from __future__ import annotations

import json
from pathlib import Path
import sys
from typing import Annotated

from rich import box
from rich.console import Console
from rich.table import Table
import typer

from plotsmith.core.config import DEFAULT_CONFIG_FILENAME, Configuration, load_configuration
from plotsmith.core.document import InvalidDocumentError
from plotsmith.core.exceptions import ConfigurationError, exception_hint
from plotsmith.rendering import process_document
from plotsmith.toolkits import registry
from plotsmith.version import get_version

from .diagnostics import CliEmitter
from .state import debug_enabled, emit_error, get_cli_state, set_cli_state


DIAGNOSTICS_PANEL = "Diagnostics"
RENDERING_PANEL = "Rendering"


app = typer.Typer(
    help="Render plotting code blocks of Pandoc documents into figures.",
    context_settings={"help_option_names": ["--help"]},
    no_args_is_help=False,
)


ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help=f"YAML configuration file. Defaults to '{DEFAULT_CONFIG_FILENAME}' when present.",
        dir_okay=False,
        rich_help_panel=RENDERING_PANEL,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Show tracebacks, failure cause chains and toolkit output.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"plotsmith {get_version()}")
        raise typer.Exit(code=0)


@app.callback()
def _app_root(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show the plotsmith version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Render plotting code blocks of Pandoc documents into figures."""


def _load_configuration(path: Path | None) -> Configuration:
    if path is None:
        default = Path(DEFAULT_CONFIG_FILENAME)
        return load_configuration(default if default.is_file() else None)
    return load_configuration(path)


@app.command(name="filter")
def filter_command(
    target_format: Annotated[
        str | None,
        typer.Argument(
            metavar="FORMAT",
            help="Output format passed by pandoc. Accepted for compatibility and ignored.",
        ),
    ] = None,
    config: ConfigOption = None,
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers",
            "-j",
            min=1,
            help="Number of figures rendered concurrently.",
            rich_help_panel=RENDERING_PANEL,
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Render every figure even when a cached output exists.",
            rich_help_panel=RENDERING_PANEL,
        ),
    ] = False,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
) -> None:
    """Read a Pandoc JSON document on stdin and write the rendered one to stdout."""
    state = set_cli_state(verbosity=verbose, debug=debug)

    try:
        configuration = _load_configuration(config)
        overrides: dict[str, object] = {}
        if workers is not None:
            overrides["workers"] = workers
        if force:
            overrides["force"] = True
        if overrides:
            configuration = configuration.evolve(**overrides)
    except ConfigurationError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=2) from exc

    try:
        document = json.load(sys.stdin)
    except json.JSONDecodeError as exc:
        emit_error(f"Input is not a Pandoc JSON document: {exc}", exception=exc)
        raise typer.Exit(code=2) from exc

    emitter = CliEmitter(state)
    try:
        outcome = process_document(
            document, configuration, version=get_version(), emitter=emitter
        )
    except InvalidDocumentError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=2) from exc

    json.dump(outcome.document, sys.stdout, ensure_ascii=False)
    sys.stdout.flush()

    if not outcome.ok:
        count = len(outcome.failures)
        noun = "figure" if count == 1 else "figures"
        emit_error(f"{count} {noun} failed to render.")
        raise typer.Exit(code=1)


@app.command(name="toolkits")
def toolkits_command(
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
) -> None:
    """List the supported toolkits and whether they can be used."""
    set_cli_state(verbosity=verbose)
    try:
        configuration = _load_configuration(config)
    except ConfigurationError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=2) from exc

    table = Table(title="Toolkits", box=box.SQUARE, show_edge=True, header_style="bold cyan")
    table.add_column("Class", no_wrap=True)
    table.add_column("Toolkit")
    table.add_column("Executable", overflow="fold")
    table.add_column("Formats")
    table.add_column("Available", justify="center")
    for toolkit in registry:
        available = toolkit.is_available(configuration)
        table.add_row(
            toolkit.tag,
            toolkit.name,
            toolkit.resolve_executable(configuration),
            ", ".join(fmt.value for fmt in toolkit.supported_formats),
            "[green]yes[/]" if available else "[red]no[/]",
        )
    Console().print(table)


_COMMANDS = frozenset({"filter", "toolkits"})


def main(argv: list[str] | None = None) -> None:
    """Entry point compatible with console scripts and pandoc's ``--filter``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or (args[0] not in _COMMANDS and not args[0].startswith("-")):
        args = ["filter", *args]
    try:
        app(args=args, prog_name="plotsmith")
    except typer.Exit:
        raise
    except KeyboardInterrupt as exc:
        if debug_enabled():
            raise
        emit_error("Operation cancelled by user.", exception=exc)
        raise SystemExit(1) from exc
    except SystemExit:
        raise
    except Exception as exc:
        state = get_cli_state()
        if state.show_tracebacks:
            from rich.traceback import Traceback

            tb = Traceback.from_exception(
                type(exc),
                exc,
                exc.__traceback__,
                show_locals=state.verbosity >= 2,
            )
            state.err_console.print(tb)
        else:
            hint = exception_hint(exc) or type(exc).__name__
            emit_error(f"Unexpected failure: {hint}. Re-run with --debug for technical details.")
        raise SystemExit(1) from exc


__all__ = ["app", "main"]
