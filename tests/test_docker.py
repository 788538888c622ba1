"""Tests for the Docker and Docker Compose plugin builders."""

from __future__ import annotations

import pytest

from kitepipe.pipeline.docker import COMPOSE_FILE_NAMES, DockerComposeBuilder
from tests.conftest import render_command


def _plugin_config(step: dict, key: str) -> dict:
    assert len(step["plugins"]) == 1
    return step["plugins"][0][key]


class TestDocker:
    def test_full_config(self, context):
        step = render_command(
            lambda s: s.docker(
                lambda d: d.image("node:20")
                .always_pull()
                .environment("CI")
                .environment("NODE_ENV", "test")
                .propagate_environment()
                .volume("/cache", "/root/.cache")
                .volumes({"./dist": "/app/dist"})
                .entrypoint("/bin/sh")
                .shell("sh", "-e", "-c")
            ),
            context,
        )
        assert _plugin_config(step, "docker#v5.9.0") == {
            "image": "node:20",
            "always-pull": True,
            "environment": ["CI", "NODE_ENV=test"],
            "propagate-environment": True,
            "volumes": ["/cache:/root/.cache", "./dist:/app/dist"],
            "entrypoint": "/bin/sh",
            "shell": ["sh", "-e", "-c"],
        }

    def test_only_set_options_rendered(self, context):
        step = render_command(lambda s: s.docker(lambda d: d.image("alpine")), context)
        assert _plugin_config(step, "docker#v5.9.0") == {"image": "alpine"}

    def test_environment_mapping_keeps_order(self, context):
        step = render_command(
            lambda s: s.docker(lambda d: d.environment({"A": "1", "B": None, "C": 3})), context
        )
        assert _plugin_config(step, "docker#v5.9.0") == {"environment": ["A=1", "B", "C=3"]}

    def test_environment_boolean_value(self, context):
        step = render_command(lambda s: s.docker(lambda d: d.environment("CI", True)), context)
        assert _plugin_config(step, "docker#v5.9.0") == {"environment": ["CI=true"]}

    def test_version_override(self, context):
        context.plugin_versions["docker"] = "v6.0.0"
        step = render_command(lambda s: s.docker(lambda d: d.image("alpine")), context)
        assert step["plugins"] == [{"docker#v6.0.0": {"image": "alpine"}}]


class TestDockerCompose:
    def test_full_config(self, context):
        step = render_command(
            lambda s: s.docker_compose(
                lambda c: c.build("app", "worker")
                .build("db")
                .run("app")
                .push("app", "acme/app")
                .push("app", "acme/app", "latest")
                .image_repository("registry.example.com/acme")
                .image_name("app-ci")
                .environment("CI")
                .environment("RAILS_ENV", "test")
                .cache_from("app", "acme/app", "main")
                .compose_file("docker-compose.ci.yml")
            ),
            context,
        )
        assert _plugin_config(step, "docker-compose#v4.15.0") == {
            "build": ["app", "worker", "db"],
            "run": "app",
            "push": ["app:acme/app", "app:acme/app:latest"],
            "image-repository": "registry.example.com/acme",
            "image-name": "app-ci",
            "env": ["CI", "RAILS_ENV=test"],
            "cache-from": ["app:acme/app:main"],
            "config": ["docker-compose.ci.yml"],
        }

    def test_no_compose_files_on_disk(self, context):
        step = render_command(lambda s: s.docker_compose(lambda c: c.run("app")), context)
        assert _plugin_config(step, "docker-compose#v4.15.0") == {"run": "app"}

    def test_both_compose_files_seed_config(self, context, tmp_path):
        for name in ("docker-compose.buildkite.yml", "docker-compose.yml"):
            (tmp_path / name).write_text("services: {}\n")
        step = render_command(
            lambda s: s.docker_compose(lambda c: c.compose_file("extra.yml")), context
        )
        assert _plugin_config(step, "docker-compose#v4.15.0")["config"] == [
            "docker-compose.yml",
            "docker-compose.buildkite.yml",
            "extra.yml",
        ]

    @pytest.mark.parametrize("present", COMPOSE_FILE_NAMES)
    def test_single_compose_file_seeds_config(self, tmp_path, present):
        (tmp_path / present).write_text("services: {}\n")
        builder = DockerComposeBuilder(tmp_path)
        assert builder.config.to_wire() == {"config": [present]}

    def test_without_root_dir_nothing_is_seeded(self):
        assert DockerComposeBuilder().config.to_wire() == {}
