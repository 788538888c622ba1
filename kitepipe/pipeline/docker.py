"""Builders for the Docker and Docker Compose Buildkite plugins.

See https://github.com/buildkite-plugins/docker-buildkite-plugin and
https://github.com/buildkite-plugins/docker-compose-buildkite-plugin for the
meaning of each option.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import Field

from kitepipe._log import get_logger
from kitepipe.pipeline.environment import ConfigurableEnvironment, format_value
from kitepipe.pipeline.schema import WireModel

logger = get_logger("pipeline.docker")

DOCKER_PLUGIN = "docker"
DOCKER_COMPOSE_PLUGIN = "docker-compose"

# Checked in this order; found files seed the compose ``config`` list.
COMPOSE_FILE_NAMES = ("docker-compose.yml", "docker-compose.buildkite.yml")


def _env_entry(name: str, value: Any) -> str:
    return name if value is None else f"{name}={format_value(value)}"


def _image_ref(service: str, image: str, tag: str | None) -> str:
    if tag is not None:
        image = f"{image}:{tag}"
    return f"{service}:{image}"


class DockerPluginConfig(WireModel):
    image: str | None = None
    always_pull: bool | None = Field(default=None, alias="always-pull")
    environment: list[str] | None = None
    propagate_environment: bool | None = Field(default=None, alias="propagate-environment")
    volumes: list[str] | None = None
    entrypoint: str | None = None
    shell: list[str] | None = None


class DockerComposePluginConfig(WireModel):
    build: list[str] | None = None
    run: str | None = None
    push: list[str] | None = None
    image_repository: str | None = Field(default=None, alias="image-repository")
    image_name: str | None = Field(default=None, alias="image-name")
    env: list[str] | None = None
    cache_from: list[str] | None = Field(default=None, alias="cache-from")
    config: list[str] | None = None


class DockerBuilder(ConfigurableEnvironment):
    """Configuration for the Docker plugin."""

    def __init__(self) -> None:
        self.config = DockerPluginConfig()

    def image(self, image: str) -> DockerBuilder:
        self.config.image = image
        return self

    def always_pull(self, pull: bool = True) -> DockerBuilder:
        """Always pull the latest image before running the command."""
        self.config.always_pull = pull
        return self

    def _set_environment(self, name: str, value: Any) -> None:
        # A bare name passes the variable through from the agent's environment.
        self.config.append("environment", _env_entry(name, value))

    def propagate_environment(self) -> DockerBuilder:
        """Pass every pipeline environment variable into the container."""
        self.config.propagate_environment = True
        return self

    def volume(self, source: str, target: str) -> DockerBuilder:
        self.config.append("volumes", f"{source}:{target}")
        return self

    def volumes(self, volumes: Mapping[str, str]) -> DockerBuilder:
        for source, target in volumes.items():
            self.volume(source, target)
        return self

    def entrypoint(self, entrypoint: str) -> DockerBuilder:
        self.config.entrypoint = entrypoint
        return self

    def shell(self, *args: str) -> DockerBuilder:
        self.config.shell = list(args)
        return self


class DockerComposeBuilder(ConfigurableEnvironment):
    """Configuration for the Docker Compose plugin.

    When *root_dir* is given, the conventional compose files found there are
    added to ``config`` before anything else.
    """

    def __init__(self, root_dir: Path | None = None) -> None:
        self.config = DockerComposePluginConfig()
        if root_dir is not None:
            for name in COMPOSE_FILE_NAMES:
                if (root_dir / name).exists():
                    logger.debug("Found %s in %s", name, root_dir)
                    self.compose_file(name)

    def build(self, *services: str) -> DockerComposeBuilder:
        self.config.append("build", *services)
        return self

    def run(self, service: str) -> DockerComposeBuilder:
        """The name of the service the command should be run within."""
        self.config.run = service
        return self

    def push(self, service: str, image: str, tag: str | None = None) -> DockerComposeBuilder:
        """Push a built service to a repository. May be called more than once."""
        self.config.append("push", _image_ref(service, image, tag))
        return self

    def image_repository(self, repository: str) -> DockerComposeBuilder:
        self.config.image_repository = repository
        return self

    def image_name(self, name: str) -> DockerComposeBuilder:
        self.config.image_name = name
        return self

    def _set_environment(self, name: str, value: Any) -> None:
        self.config.append("env", _env_entry(name, value))

    def cache_from(self, service: str, image: str, tag: str | None = None) -> DockerComposeBuilder:
        """Pull an image to use as the layer cache when building *service*."""
        self.config.append("cache_from", _image_ref(service, image, tag))
        return self

    def compose_file(self, path: str) -> DockerComposeBuilder:
        self.config.append("config", path)
        return self
