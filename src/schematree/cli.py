"""Command-line front end for the schematree package.

Usage: schematree [--path PATH] [--format FORMAT] [--trace FILE] [MODULE] [FILE ...]

If MODULE is given (a first argument not ending in .yaml) only that module is
displayed. FILEs are read first; when none of them defines MODULE, MODULES.yaml
is read as well, then MODULE.yaml from the search path. Without MODULE every
module read from the FILEs is displayed, and without any argument standard
input is parsed.
"""

from __future__ import annotations

import logging
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from . import get_version
from .config import DEFAULT_FORMAT, PipelineConfig
from .formats import default_registry
from .logging_config import setup_logging
from .pipeline import PipelineError, SchemaPipeline
from .plugins import FormatRegistry
from .tracing import trace_session

err_console = Console(stderr=True, highlight=False, soft_wrap=True, emoji=False)


def formats_epilog(registry: FormatRegistry) -> str:
    lines = [f"{formatter.name} - {formatter.help}" for formatter in registry]
    return "\n\n".join(["Formats:", *lines])


def _fail(messages: list[str]) -> typer.Exit:
    for message in messages:
        err_console.print(message, markup=False, highlight=False, emoji=False)
    return typer.Exit(code=1)


def build_app(registry: FormatRegistry) -> typer.Typer:
    """Create the CLI bound to ``registry``; formats must be registered already."""
    names = ", ".join(registry.names())
    app = typer.Typer(
        help="Parse schema modules, report errors, and render the resulting trees.",
        add_completion=False,
        context_settings={"help_option_names": ["--help", "-h"]},
    )

    @app.command(epilog=formats_epilog(registry))
    def main(
        args: Annotated[
            list[str] | None,
            typer.Argument(metavar="[MODULE] [FILE]...", show_default=False),
        ] = None,
        path: Annotated[
            list[str] | None,
            typer.Option(
                "--path",
                envvar="SCHEMATREE_PATH",
                help="Comma separated list of directories to add to the search path.",
                show_default=False,
            ),
        ] = None,
        # help text depends on the registry, so it stays out of the annotation
        format_: str = typer.Option(
            DEFAULT_FORMAT, "--format", help=f"Format to display: {names}."
        ),
        trace: Annotated[
            Path | None, typer.Option("--trace", help="File to write a profile trace into.")
        ] = None,
        verbose: Annotated[
            bool, typer.Option("--verbose", "-v", help="Log loading details to stderr.")
        ] = False,
        show_version: Annotated[
            bool, typer.Option("--version", help="Print the version and exit.")
        ] = False,
    ) -> None:
        """Display schema modules in the selected format."""
        if show_version:
            typer.echo(get_version())
            return
        setup_logging(logging.DEBUG if verbose else logging.WARNING)
        config = PipelineConfig(
            search_path=path or [],
            format=format_,
            trace=trace,
            verbose=verbose,
        )
        with ExitStack() as stack:
            try:
                stack.enter_context(trace_session(config.trace))
            except OSError as exc:
                raise _fail([f"{config.trace}: {exc.strerror or exc}"]) from exc
            pipeline = SchemaPipeline(config, registry, console=err_console)
            try:
                pipeline.run(args or [], out=sys.stdout, stdin=sys.stdin)
            except PipelineError as exc:
                raise _fail(exc.messages) from exc

    return app


app = build_app(default_registry())


def main() -> None:
    """Entry point for `python -m schematree.cli`."""
    app()


if __name__ == "__main__":
    main()
