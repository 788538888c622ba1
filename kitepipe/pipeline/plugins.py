"""Plugin references: version resolution and free-form plugin configuration."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel

from kitepipe._log import get_logger
from kitepipe.pipeline.schema import WireModel

logger = get_logger("pipeline.plugins")


class PluginVersionError(Exception):
    """Raised when a plugin has no version and unqualified plugins are not allowed."""


def plugin_key(name: str, version: str) -> str:
    return f"{name}#{version}"


def resolve_plugin_key(
    name: str,
    versions: Mapping[str, str],
    *,
    strict: bool = False,
) -> str:
    """Return the ``name#version`` key used to reference a plugin.

    A name that already carries ``#version`` is returned unchanged. Otherwise
    the version is looked up in *versions*; without one the bare name is
    returned, or :class:`PluginVersionError` is raised when *strict* is set.
    """
    if "#" in name:
        return name

    version = versions.get(name)
    if version is None:
        if strict:
            raise PluginVersionError(
                f"No version configured for plugin '{name}'; "
                f"use '{name}#<version>' or add it to plugin_versions"
            )
        logger.debug("No version configured for plugin '%s', referencing it unqualified", name)
        return name

    return plugin_key(name, version)


class PluginConfig:
    """Append-only builder for plugin configuration with no fixed schema.

    Values may be scalars, mappings, sequences or callables; callables are
    given a fresh :class:`PluginConfig` and become a nested mapping::

        def configure(c: PluginConfig) -> None:
            c.set("debug", True)
            c.set("mount", lambda m: m.set("path", "/src"))
            c.append("args", "--fast", "--quiet")
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def set(self, key: str, value: Any = None) -> PluginConfig:
        self._values[key] = expand_plugin_config(value)
        return self

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def append(self, key: str, *values: Any) -> PluginConfig:
        existing = self._values.get(key)
        if existing is None:
            existing = []
        elif not isinstance(existing, list):
            existing = [existing]
        existing.extend(expand_plugin_config(v) for v in values)
        self._values[key] = existing
        return self

    def to_wire(self) -> dict[str, Any]:
        return dict(self._values)


def build_plugin_config(configure: Callable[[PluginConfig], object]) -> dict[str, Any]:
    config = PluginConfig()
    configure(config)
    return config.to_wire()


def expand_plugin_config(value: Any) -> Any:
    """Turn a plugin configuration value into plain JSON data."""
    if isinstance(value, (PluginConfig, WireModel)):
        return value.to_wire()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_unset=True)
    if callable(value):
        return build_plugin_config(value)
    if isinstance(value, Mapping):
        return {str(k): expand_plugin_config(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [expand_plugin_config(v) for v in value]
    return value
