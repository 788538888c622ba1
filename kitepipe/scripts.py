"""Pipeline scripts and definitions modules.

A *pipeline script* is a Python file under ``.buildkite/`` named
``pipeline.py`` or ``pipeline.<name>.py`` that defines::

    def pipeline(p):
        p.command_step(lambda s: s.command("make test"))

A *definitions module* is any Python file that defines
``configure(registry)`` and registers pipelines itself.
"""

from __future__ import annotations

import importlib.util
import re
from collections.abc import Callable
from pathlib import Path
from types import ModuleType

from kitepipe._log import get_logger
from kitepipe.config import load_settings
from kitepipe.pipeline.builder import PipelineBuilder
from kitepipe.registry import DEFAULT_PIPELINE, Registry

logger = get_logger("scripts")

SCRIPTS_DIR = ".buildkite"
SCRIPT_GLOB = "pipeline*.py"

_SCRIPT_NAME_RE = re.compile(r"^pipeline\.([^.]+)\.py$")
_WORD_BOUNDARY_RE = re.compile(r"[^a-zA-Z0-9]+([a-zA-Z0-9]+)")


class ScriptLoadError(Exception):
    """Raised when a pipeline script or definitions module cannot be loaded."""


def pipeline_name_for(path: Path) -> str:
    """Derive the pipeline name from a script file name.

    ``pipeline.py`` is the default pipeline; ``pipeline.deploy-prod.py``
    defines ``deployProd``.
    """
    match = _SCRIPT_NAME_RE.match(path.name)
    if match is None:
        return DEFAULT_PIPELINE
    return _WORD_BOUNDARY_RE.sub(lambda m: m.group(1)[:1].upper() + m.group(1)[1:], match.group(1))


def _load_module(path: Path) -> ModuleType:
    module_name = "kitepipe_script_" + re.sub(r"\W", "_", path.stem)
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ScriptLoadError(f"Cannot load {path}")
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except OSError as e:
        raise ScriptLoadError(f"Cannot read {path}: {e}") from e
    except SyntaxError as e:
        raise ScriptLoadError(f"Invalid Python in {path}: {e}") from e
    except Exception as e:
        raise ScriptLoadError(f"Error in {path}: {e}") from e
    return module


def _get_callable(module: ModuleType, attr: str, path: Path) -> Callable:
    func = getattr(module, attr, None)
    if not callable(func):
        raise ScriptLoadError(f"{path} must define a callable '{attr}'")
    return func


def script_definition(path: Path) -> Callable[[PipelineBuilder], None]:
    """Wrap a pipeline script so it is only imported when the pipeline is built."""

    def configure(builder: PipelineBuilder) -> None:
        logger.debug("Running pipeline script %s", path)
        module = _load_module(path)
        _get_callable(module, "pipeline", path)(builder)

    return configure


def discover_scripts(root_dir: Path) -> list[Path]:
    scripts_dir = root_dir / SCRIPTS_DIR
    if not scripts_dir.is_dir():
        return []
    return sorted(p for p in scripts_dir.glob(SCRIPT_GLOB) if p.is_file())


def register_scripts(registry: Registry) -> list[str]:
    """Register every pipeline script under the registry's root. Returns the names."""
    names: list[str] = []
    for path in discover_scripts(registry.root_dir):
        name = pipeline_name_for(path)
        registry.pipeline(name, script_definition(path))
        names.append(name)
    return names


def load_definitions(path: Path, registry: Registry) -> None:
    """Import a definitions module and let its ``configure(registry)`` register pipelines."""
    if not path.is_file():
        raise ScriptLoadError(f"Definitions file not found: {path}")
    module = _load_module(path)
    _get_callable(module, "configure", path)(registry)


def load_project(
    root_dir: Path,
    *,
    settings_path: Path | None = None,
    definitions: list[Path] | None = None,
) -> Registry:
    """Assemble the registry for a project directory.

    Definitions modules run first and may switch ``include_scripts`` off;
    pipeline scripts are registered afterwards when it is still on.
    """
    registry = Registry(load_settings(root_dir, settings_path), root_dir)
    for path in definitions or []:
        load_definitions(path, registry)
    if registry.include_scripts:
        found = register_scripts(registry)
        logger.debug("Discovered %d pipeline script(s) in %s", len(found), root_dir)
    return registry
