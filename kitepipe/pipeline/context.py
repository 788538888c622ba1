"""Configuration context threaded through every pipeline builder."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from kitepipe.config import (
    DEFAULT_AGENT_QUEUE,
    DEFAULT_PLUGIN_VERSIONS,
    PRIMARY_REGION,
    BuildkiteSettings,
)


@dataclass
class BuildContext:
    """Inputs the builders need from the surrounding project.

    ``root_dir`` is where compose files are looked up. The plugin version
    table is owned by the context, so two contexts never share overrides.
    """

    root_dir: Path = field(default_factory=Path.cwd)
    default_agent_queue: str = DEFAULT_AGENT_QUEUE
    plugin_versions: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PLUGIN_VERSIONS))
    primary_region: str = PRIMARY_REGION
    strict_plugin_versions: bool = False

    @classmethod
    def from_settings(cls, settings: BuildkiteSettings, root_dir: Path) -> BuildContext:
        return cls(
            root_dir=root_dir,
            default_agent_queue=settings.default_agent_queue,
            plugin_versions=dict(settings.plugin_versions),
            primary_region=settings.primary_region,
            strict_plugin_versions=settings.strict_plugin_versions,
        )
