"""Tests for pipeline script discovery and definitions modules."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from kitepipe.registry import Registry
from kitepipe.scripts import (
    ScriptLoadError,
    discover_scripts,
    load_definitions,
    load_project,
    pipeline_name_for,
)


def _write_script(root: Path, name: str, body: str) -> Path:
    scripts = root / ".buildkite"
    scripts.mkdir(exist_ok=True)
    path = scripts / name
    path.write_text(textwrap.dedent(body))
    return path


DEFAULT_SCRIPT = """\
    def pipeline(p):
        p.environment("FOO", "bar")
        p.command_step(lambda s: s.label("Build").command("make"))
"""

TEST_SCRIPT = """\
    def pipeline(p):
        p.command_step(lambda s: s.command("make test"))
        p.wait_step()
"""


class TestPipelineNameFor:
    @pytest.mark.parametrize(
        ("filename", "name"),
        [
            ("pipeline.py", "default"),
            ("pipeline.test.py", "test"),
            ("pipeline.deploy-prod.py", "deployProd"),
            ("pipeline.foo_bar-baz.py", "fooBarBaz"),
            ("pipeline.nightlyBuild.py", "nightlyBuild"),
            ("pipelines.py", "default"),
        ],
    )
    def test_names(self, filename, name):
        assert pipeline_name_for(Path(filename)) == name


class TestDiscoverScripts:
    def test_no_scripts_dir(self, tmp_path):
        assert discover_scripts(tmp_path) == []

    def test_sorted_and_filtered(self, tmp_path):
        _write_script(tmp_path, "pipeline.test.py", TEST_SCRIPT)
        _write_script(tmp_path, "pipeline.py", DEFAULT_SCRIPT)
        _write_script(tmp_path, "helpers.py", "X = 1\n")
        found = discover_scripts(tmp_path)
        assert [p.name for p in found] == ["pipeline.py", "pipeline.test.py"]


class TestLoadProject:
    def test_registers_scripts(self, tmp_path):
        _write_script(tmp_path, "pipeline.py", DEFAULT_SCRIPT)
        _write_script(tmp_path, "pipeline.test.py", TEST_SCRIPT)
        registry = load_project(tmp_path)
        assert registry.names() == ["default", "test"]
        assert registry.build("test").to_wire() == {
            "env": {},
            "steps": [{"agents": {"queue": "builder"}, "command": "make test"}, "wait"],
        }
        assert registry.build().to_wire() == {
            "env": {"FOO": "bar"},
            "steps": [{"agents": {"queue": "builder"}, "label": "Build", "command": "make"}],
        }

    def test_settings_file_applies(self, tmp_path):
        _write_script(tmp_path, "pipeline.py", DEFAULT_SCRIPT)
        _write_script(tmp_path, "settings.yaml", "default_agent_queue: linux\n")
        registry = load_project(tmp_path)
        assert registry.build().to_wire()["steps"][0]["agents"] == {"queue": "linux"}

    def test_include_scripts_off_in_settings(self, tmp_path):
        _write_script(tmp_path, "pipeline.py", DEFAULT_SCRIPT)
        _write_script(tmp_path, "settings.yaml", "include_scripts: false\n")
        assert load_project(tmp_path).names() == []

    def test_scripts_not_imported_until_built(self, tmp_path):
        _write_script(tmp_path, "pipeline.py", "def pipeline(p:\n")
        registry = load_project(tmp_path)
        assert registry.names() == ["default"]
        with pytest.raises(ScriptLoadError, match="Invalid Python"):
            registry.build()

    def test_import_error_in_script(self, tmp_path):
        _write_script(tmp_path, "pipeline.py", "import kitepipe_no_such_module\n")
        registry = load_project(tmp_path)
        with pytest.raises(ScriptLoadError, match="Error in .*No module named"):
            registry.build()

    def test_script_without_pipeline_function(self, tmp_path):
        _write_script(tmp_path, "pipeline.py", "PIPELINE = None\n")
        registry = load_project(tmp_path)
        with pytest.raises(ScriptLoadError, match="callable 'pipeline'"):
            registry.build()

    def test_definitions_run_before_scripts(self, tmp_path):
        _write_script(tmp_path, "pipeline.py", DEFAULT_SCRIPT)
        definitions = tmp_path / "pipelines_def.py"
        definitions.write_text(
            textwrap.dedent(
                """\
                def configure(registry):
                    registry.include_scripts = False
                    registry.default_agent_queue("deploy")
                    registry.pipeline("release", lambda p: p.block_step("Ship it?"))
                """
            )
        )
        registry = load_project(tmp_path, definitions=[definitions])
        assert registry.names() == ["release"]
        assert registry.build("uploadReleasePipeline").to_wire()["steps"] == [
            {"block": "Ship it?"}
        ]


class TestLoadDefinitions:
    def test_missing_file(self, tmp_path):
        with pytest.raises(ScriptLoadError, match="not found"):
            load_definitions(tmp_path / "nope.py", Registry(root_dir=tmp_path))

    def test_missing_configure(self, tmp_path):
        path = tmp_path / "defs.py"
        path.write_text("def pipeline(p):\n    pass\n")
        with pytest.raises(ScriptLoadError, match="callable 'configure'"):
            load_definitions(path, Registry(root_dir=tmp_path))
