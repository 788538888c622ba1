"""Shared ``environment(...)`` call forms for builders that accept variables."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

_E = TypeVar("_E", bound="ConfigurableEnvironment")


class ConfigurableEnvironment:
    """Mixin giving a builder both ``environment(name, value)`` and ``environment(mapping)``.

    Subclasses implement :meth:`_set_environment` for a single variable.
    """

    def _set_environment(self, name: str, value: Any) -> None:
        raise NotImplementedError

    def environment(self: _E, name: str | Mapping[str, Any], value: Any = None) -> _E:
        if isinstance(name, Mapping):
            if value is not None:
                raise TypeError("environment() takes no value when given a mapping")
            for key, val in name.items():
                self._set_environment(key, val)
        else:
            self._set_environment(name, value)
        return self


def format_value(value: Any) -> str:
    """Render a variable value the way shells and YAML expect it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def require_value(name: str, value: Any) -> str:
    if value is None:
        raise TypeError(f"Environment variable '{name}' requires a value")
    return format_value(value)
