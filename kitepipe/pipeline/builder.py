"""Fluent builders that assemble a :class:`PipelineDocument`.

Each ``*_step`` method takes a configure callback which receives the step's
builder::

    def pipeline(p: PipelineBuilder) -> None:
        p.environment("APP", "web")
        p.command_step(lambda s: s.label(":hammer: Build").command("make build"))
        p.wait_step()
        p.block_step(":rocket: Release?")
        p.trigger_step("deploy", lambda t: t.async_().build(lambda b: b.branch("main")))

Every builder method returns the builder, so calls chain.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import timedelta
from typing import Any, TypeVar

from kitepipe.pipeline.context import BuildContext
from kitepipe.pipeline.docker import (
    DOCKER_COMPOSE_PLUGIN,
    DOCKER_PLUGIN,
    DockerBuilder,
    DockerComposeBuilder,
)
from kitepipe.pipeline.document import PipelineDocument
from kitepipe.pipeline.environment import ConfigurableEnvironment, require_value
from kitepipe.pipeline.plugins import expand_plugin_config, resolve_plugin_key
from kitepipe.pipeline.schema import (
    AgentsConfig,
    AutomaticRetry,
    BlockStep,
    CommandStep,
    ManualRetry,
    RetryConfig,
    SelectField,
    SelectOption,
    SoftFailStatus,
    StepBase,
    TextField,
    TriggerBuild,
    TriggerStep,
    WaitStep,
)

_S = TypeVar("_S", bound="StepBuilder")
_F = TypeVar("_F", bound="FieldBuilder")


# ---------------------------------------------------------------------------
# Attributes shared by structured steps
# ---------------------------------------------------------------------------


class StepBuilder:
    step: StepBase

    def branches(self: _S, *branches: str) -> _S:
        """The branch patterns whose builds include this step."""
        self.step.branches = " ".join(branches)
        return self

    def key(self: _S, key: str) -> _S:
        """A unique identifier other steps can depend on."""
        self.step.key = key
        return self

    def depends_on(self: _S, *keys: str) -> _S:
        if not keys:
            raise ValueError("depends_on() needs at least one step key")
        self.step.depends_on = keys[0] if len(keys) == 1 else list(keys)
        return self

    def allow_dependency_failure(self: _S, allow: bool = True) -> _S:
        self.step.allow_dependency_failure = allow
        return self

    def condition(self: _S, expression: str) -> _S:
        """Only run this step when *expression* evaluates true (the step's ``if``)."""
        self.step.if_ = expression
        return self


# ---------------------------------------------------------------------------
# Command step
# ---------------------------------------------------------------------------


class AutomaticRetryBuilder:
    """Automatic retry settings.

    Starts as the ``true`` shorthand. Setting any field switches to the
    object form for good.
    """

    def __init__(self) -> None:
        self.value: bool | AutomaticRetry = True

    def _promote(self) -> AutomaticRetry:
        if not isinstance(self.value, AutomaticRetry):
            self.value = AutomaticRetry()
        return self.value

    def exit_status(self, exit_status: int | str) -> AutomaticRetryBuilder:
        """The exit status that causes a retry, or ``"*"`` for any."""
        self._promote().exit_status = exit_status
        return self

    def limit(self, limit: int) -> AutomaticRetryBuilder:
        """How many times the job may be retried, at most 10."""
        self._promote().limit = limit
        return self


class CommandStepBuilder(StepBuilder, ConfigurableEnvironment):
    """A command step runs one or more shell commands on an agent."""

    step: CommandStep

    def __init__(self, context: BuildContext) -> None:
        self._context = context
        self.step = CommandStep()
        self.agent_queue(context.default_agent_queue)

    def label(self, label: str) -> CommandStepBuilder:
        self.step.label = label
        return self

    def command(self, command: str) -> CommandStepBuilder:
        self.step.command = command
        return self

    def commands(self, *commands: str) -> CommandStepBuilder:
        if not commands:
            raise ValueError("commands() needs at least one command")
        self.step.command = list(commands)
        return self

    def agent_queue(self, name: str, region: str | None = None) -> CommandStepBuilder:
        """Run on the agent queue *name*.

        With a *region* other than the primary one, the queue is
        ``{name}-{region}``.
        """
        if region is not None and region != self._context.primary_region:
            name = f"{name}-{region}"
        self.step.agents = AgentsConfig(queue=name)
        return self

    def artifact_path(self, *paths: str) -> CommandStepBuilder:
        """Add glob paths of artifacts to upload from this step."""
        self.step.append("artifact_paths", *paths)
        return self

    def concurrency(self, group: str, limit: int) -> CommandStepBuilder:
        """Allow at most *limit* jobs of the concurrency *group* at the same time."""
        self.step.concurrency = limit
        self.step.concurrency_group = group
        return self

    def _set_environment(self, name: str, value: Any) -> None:
        self.step.merge("env", {name: require_value(name, value)})

    def parallelism(self, parallelism: int) -> CommandStepBuilder:
        self.step.parallelism = parallelism
        return self

    def automatic_retry(
        self, configure: Callable[[AutomaticRetryBuilder], object] | None = None
    ) -> CommandStepBuilder:
        builder = AutomaticRetryBuilder()
        if configure is not None:
            configure(builder)
        retry = self.step.retry or RetryConfig()
        retry.automatic = builder.value
        self.step.retry = retry
        return self

    def manual_retry(
        self,
        allowed: bool = True,
        reason: str | None = None,
        permit_on_passed: bool | None = None,
    ) -> CommandStepBuilder:
        manual = ManualRetry(allowed=allowed)
        if reason is not None:
            manual.reason = reason
        if permit_on_passed is not None:
            manual.permit_on_passed = permit_on_passed
        retry = self.step.retry or RetryConfig()
        retry.manual = manual
        self.step.retry = retry
        return self

    def skip(self, reason: str | None = None) -> CommandStepBuilder:
        """Skip this step, optionally with a reason. The last call wins."""
        self.step.skip = True if reason is None else reason
        return self

    def soft_fail(self, *exit_statuses: int | str) -> CommandStepBuilder:
        """Don't fail the build when this step fails, or only for *exit_statuses*."""
        if exit_statuses:
            self.step.soft_fail = [SoftFailStatus(exit_status=s) for s in exit_statuses]
        else:
            self.step.soft_fail = True
        return self

    def timeout(self, timeout: timedelta) -> CommandStepBuilder:
        """Cancel the job after *timeout*, counted in whole minutes (at least one)."""
        minutes = int(timeout.total_seconds() // 60)
        self.step.timeout_in_minutes = max(minutes, 1)
        return self

    def plugin(self, name: str, config: Any = None) -> CommandStepBuilder:
        """Add a Buildkite plugin to this step.

        *config* may be any JSON-compatible value, or a callable that fills
        in a :class:`~kitepipe.pipeline.plugins.PluginConfig`. A *name*
        without ``#version`` gets the configured default version, if any.
        """
        key = resolve_plugin_key(
            name,
            self._context.plugin_versions,
            strict=self._context.strict_plugin_versions,
        )
        self.step.append("plugins", {key: expand_plugin_config(config)})
        return self

    def docker(self, configure: Callable[[DockerBuilder], object]) -> CommandStepBuilder:
        builder = DockerBuilder()
        configure(builder)
        return self.plugin(DOCKER_PLUGIN, builder.config)

    def docker_compose(
        self, configure: Callable[[DockerComposeBuilder], object]
    ) -> CommandStepBuilder:
        builder = DockerComposeBuilder(self._context.root_dir)
        configure(builder)
        return self.plugin(DOCKER_COMPOSE_PLUGIN, builder.config)


# ---------------------------------------------------------------------------
# Block step
# ---------------------------------------------------------------------------


class FieldBuilder:
    field: TextField | SelectField

    def hint(self: _F, hint: str) -> _F:
        """Explanatory text shown after the label."""
        self.field.hint = hint
        return self

    def required(self: _F, required: bool = True) -> _F:
        self.field.required = required
        return self

    def default_value(self: _F, value: str) -> _F:
        self.field.default = value
        return self


class TextFieldBuilder(FieldBuilder):
    field: TextField

    def __init__(self, label: str, key: str) -> None:
        self.field = TextField(text=label, key=key)


class SelectFieldBuilder(FieldBuilder):
    field: SelectField

    def __init__(self, label: str, key: str) -> None:
        self.field = SelectField(select=label, key=key)

    def multiple(self, multiple: bool = True) -> SelectFieldBuilder:
        """Allow more than one option; the values are stored newline-delimited."""
        self.field.multiple = multiple
        return self

    def default_values(self, *values: str) -> SelectFieldBuilder:
        self.field.default = list(values)
        return self

    def option(self, label: str, value: str) -> SelectFieldBuilder:
        self.field.append("options", SelectOption(label=label, value=value))
        return self


class BlockStepBuilder(StepBuilder):
    """A block step pauses the build until someone unblocks it."""

    step: BlockStep

    def __init__(self, label: str) -> None:
        self.step = BlockStep(block=label)

    def label(self, label: str) -> BlockStepBuilder:
        self.step.block = label
        return self

    def prompt(self, prompt: str) -> BlockStepBuilder:
        self.step.prompt = prompt
        return self

    def text_field(
        self,
        label: str,
        key: str,
        configure: Callable[[TextFieldBuilder], object] | None = None,
    ) -> BlockStepBuilder:
        """Add a text input. *key* names the meta-data entry that stores the answer."""
        return self._add_field(TextFieldBuilder(label, key), configure)

    def select_field(
        self,
        label: str,
        key: str,
        configure: Callable[[SelectFieldBuilder], object] | None = None,
    ) -> BlockStepBuilder:
        return self._add_field(SelectFieldBuilder(label, key), configure)

    def _add_field(
        self, builder: Any, configure: Callable[[Any], object] | None
    ) -> BlockStepBuilder:
        if configure is not None:
            configure(builder)
        self.step.append("fields", builder.field)
        return self


# ---------------------------------------------------------------------------
# Trigger step
# ---------------------------------------------------------------------------


class TriggerBuildBuilder(ConfigurableEnvironment):
    """Attributes of the build created by a trigger step."""

    def __init__(self, build: TriggerBuild) -> None:
        self.build = build

    def message(self, message: str) -> TriggerBuildBuilder:
        self.build.message = message
        return self

    def commit(self, commit: str) -> TriggerBuildBuilder:
        self.build.commit = commit
        return self

    def branch(self, branch: str) -> TriggerBuildBuilder:
        self.build.branch = branch
        return self

    def metadata(self, name: str | Mapping[str, Any], value: Any = None) -> TriggerBuildBuilder:
        if isinstance(name, Mapping):
            values = {key: require_value(key, val) for key, val in name.items()}
        else:
            values = {name: require_value(name, value)}
        self.build.merge("meta_data", values)
        return self

    def _set_environment(self, name: str, value: Any) -> None:
        self.build.merge("env", {name: require_value(name, value)})


class TriggerStepBuilder(StepBuilder):
    """A trigger step creates a build on another pipeline."""

    step: TriggerStep

    def __init__(self, trigger: str) -> None:
        self.step = TriggerStep(trigger=trigger)

    def label(self, label: str) -> TriggerStepBuilder:
        self.step.label = label
        return self

    def async_(self, async_: bool = True) -> TriggerStepBuilder:
        """Continue immediately instead of waiting for the triggered build."""
        self.step.async_ = async_
        return self

    def build(self, configure: Callable[[TriggerBuildBuilder], object]) -> TriggerStepBuilder:
        build = self.step.build or TriggerBuild()
        configure(TriggerBuildBuilder(build))
        if build.model_fields_set:
            self.step.build = build
        return self


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class PipelineBuilder(ConfigurableEnvironment):
    """Entry point handed to pipeline definitions."""

    def __init__(self, context: BuildContext | None = None) -> None:
        self.context = context or BuildContext()
        self.document = PipelineDocument()

    def _set_environment(self, name: str, value: Any) -> None:
        self.document.env[name] = require_value(name, value)

    def interpolate(self, enabled: bool = True) -> PipelineBuilder:
        """Enable or disable variable interpolation on upload."""
        self.document.interpolate = enabled
        return self

    def replace(self, enabled: bool = True) -> PipelineBuilder:
        """Replace the rest of the running pipeline with the uploaded steps."""
        self.document.replace = enabled
        return self

    def wait_step(self) -> PipelineBuilder:
        self.document.steps.append(WaitStep())
        return self

    def wait_step_continue_on_failure(self) -> PipelineBuilder:
        self.document.steps.append(WaitStep(continue_on_failure=True))
        return self

    def command_step(self, configure: Callable[[CommandStepBuilder], object]) -> PipelineBuilder:
        builder = CommandStepBuilder(self.context)
        configure(builder)
        self.document.steps.append(builder.step)
        return self

    def block_step(
        self,
        label: str,
        configure: Callable[[BlockStepBuilder], object] | None = None,
    ) -> PipelineBuilder:
        builder = BlockStepBuilder(label)
        if configure is not None:
            configure(builder)
        self.document.steps.append(builder.step)
        return self

    def trigger_step(
        self,
        trigger: str,
        configure: Callable[[TriggerStepBuilder], object] | None = None,
    ) -> PipelineBuilder:
        """Trigger a build of the pipeline with slug *trigger*."""
        builder = TriggerStepBuilder(trigger)
        if configure is not None:
            configure(builder)
        self.document.steps.append(builder.step)
        return self

    def to_json(self, *, pretty: bool = False) -> str:
        return self.document.to_json(pretty=pretty)
