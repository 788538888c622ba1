"""Typer CLI for kitepipe."""

from __future__ import annotations

from typing import Annotated

import typer

from kitepipe.cli._helpers import console

app = typer.Typer(
    name="kitepipe",
    help="Build Buildkite pipelines in Python and upload them.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    if value:
        from kitepipe import __version__

        console.print(f"kitepipe {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable debug logging"),
    ] = False,
) -> None:
    """kitepipe: Buildkite pipelines as Python."""
    from kitepipe._log import setup_logging

    setup_logging(verbose=verbose)


from kitepipe.cli.pipeline_cmd import pipelines, show, upload  # noqa: E402

app.command()(pipelines)
app.command()(show)
app.command()(upload)


def app_entry() -> None:
    """Entry point for the CLI."""
    app()
