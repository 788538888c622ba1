"""Shared CLI helpers: console, project loading and error handling."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.markup import escape

if TYPE_CHECKING:
    from kitepipe.pipeline.document import PipelineDocument
    from kitepipe.registry import Registry

console = Console()


def load_project_or_exit(
    project_dir: Path,
    settings: Path | None,
    definitions: list[Path] | None,
) -> Registry:
    from kitepipe.config import SettingsLoadError
    from kitepipe.scripts import ScriptLoadError, load_project

    try:
        return load_project(project_dir, settings_path=settings, definitions=definitions)
    except (SettingsLoadError, ScriptLoadError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None


def build_or_exit(registry: Registry, name: str) -> PipelineDocument:
    from pydantic import ValidationError

    from kitepipe.pipeline.plugins import PluginVersionError
    from kitepipe.registry import PipelineNotFoundError
    from kitepipe.scripts import ScriptLoadError

    try:
        return registry.build(name)
    except PipelineNotFoundError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None
    except (ScriptLoadError, PluginVersionError, ValidationError, TypeError, ValueError) as e:
        console.print(f"[red]Error:[/red] Pipeline '{name}' is invalid: {escape(str(e))}")
        raise typer.Exit(1) from None
