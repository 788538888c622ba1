"""Settings for kitepipe.

Settings are read from ``.buildkite/settings.yaml`` under the project root
when that file exists, and fall back to built-in defaults otherwise::

    default_agent_queue: builder
    include_scripts: true
    plugin_versions:
      docker: v5.9.0
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_AGENT_QUEUE = "builder"
PRIMARY_REGION = "us-east-1"

DEFAULT_PLUGIN_VERSIONS: dict[str, str] = {
    "docker": "v5.9.0",
    "docker-compose": "v4.15.0",
}

SETTINGS_RELATIVE_PATH = Path(".buildkite") / "settings.yaml"


class SettingsLoadError(Exception):
    """Raised when a settings file cannot be loaded or validated."""


class BuildkiteSettings(BaseModel):
    default_agent_queue: str = Field(default=DEFAULT_AGENT_QUEUE, min_length=1)
    include_scripts: bool = True
    primary_region: str = PRIMARY_REGION
    strict_plugin_versions: bool = False
    plugin_versions: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_PLUGIN_VERSIONS))

    @field_validator("plugin_versions", mode="after")
    @classmethod
    def _merge_default_versions(cls, value: dict[str, str]) -> dict[str, str]:
        # Entries from the file override the built-in table.
        return {**DEFAULT_PLUGIN_VERSIONS, **value}


def get_settings_path(root_dir: Path) -> Path:
    return root_dir / SETTINGS_RELATIVE_PATH


def load_settings(root_dir: Path, path: Path | None = None) -> BuildkiteSettings:
    """Load settings from *path*, or from the conventional file under *root_dir*.

    An explicit *path* must exist. The conventional file is optional.
    """
    if path is None:
        path = get_settings_path(root_dir)
        if not path.exists():
            return BuildkiteSettings()
    try:
        data = yaml.safe_load(path.read_text())
    except OSError as e:
        raise SettingsLoadError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"Invalid YAML in {path}: {e}") from e

    # An empty file is the same as no settings.
    if data is None:
        return BuildkiteSettings()
    if not isinstance(data, dict):
        raise SettingsLoadError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    try:
        return BuildkiteSettings.model_validate(data)
    except ValidationError as e:
        raise SettingsLoadError(f"Validation failed for {path}:\n{e}") from e
