"""Pipeline commands: list, show and upload."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from kitepipe.cli._helpers import build_or_exit, console, load_project_or_exit

ProjectDirOption = Annotated[
    Path,
    typer.Option(
        "--project-dir",
        "-C",
        help="Project root holding .buildkite/ and compose files",
        file_okay=False,
    ),
]
SettingsOption = Annotated[
    Path | None,
    typer.Option("--settings", help="Settings YAML (default: .buildkite/settings.yaml)"),
]
DefinitionsOption = Annotated[
    list[Path] | None,
    typer.Option("--definitions", "-d", help="Python module defining configure(registry)"),
]
NameArgument = Annotated[
    str,
    typer.Argument(help="Pipeline name or upload task name (e.g. uploadTestPipeline)"),
]


def pipelines(
    project_dir: ProjectDirOption = Path("."),
    settings: SettingsOption = None,
    definitions: DefinitionsOption = None,
) -> None:
    """List the defined pipelines without building them."""
    registry = load_project_or_exit(project_dir, settings, definitions)

    tasks = registry.task_names()
    if not tasks:
        console.print("[dim]No pipelines defined.[/dim]")
        return

    table = Table(title="Pipelines")
    table.add_column("Name", style="cyan")
    table.add_column("Upload task")
    for name, task in tasks.items():
        table.add_row(name, task)
    console.print(table)


def show(
    name: NameArgument = "default",
    project_dir: ProjectDirOption = Path("."),
    settings: SettingsOption = None,
    definitions: DefinitionsOption = None,
) -> None:
    """Print a pipeline as JSON."""
    registry = load_project_or_exit(project_dir, settings, definitions)
    document = build_or_exit(registry, name)
    typer.echo(document.to_json(pretty=True))


def upload(
    name: NameArgument = "default",
    project_dir: ProjectDirOption = Path("."),
    settings: SettingsOption = None,
    definitions: DefinitionsOption = None,
) -> None:
    """Upload a pipeline with buildkite-agent, or print it outside Buildkite."""
    from kitepipe.upload import UploadError, publish

    registry = load_project_or_exit(project_dir, settings, definitions)
    document = build_or_exit(registry, name)

    try:
        uploaded = publish(document)
    except UploadError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    if uploaded:
        steps = len(document.steps)
        console.print(f"[green]Uploaded[/green] {registry.resolve(name)} ({steps} steps)")
