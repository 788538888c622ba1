"""Pipeline module: step models, builders and the rendered document."""

from kitepipe.pipeline.builder import (
    AutomaticRetryBuilder,
    BlockStepBuilder,
    CommandStepBuilder,
    PipelineBuilder,
    SelectFieldBuilder,
    TextFieldBuilder,
    TriggerBuildBuilder,
    TriggerStepBuilder,
)
from kitepipe.pipeline.context import BuildContext
from kitepipe.pipeline.docker import DockerBuilder, DockerComposeBuilder
from kitepipe.pipeline.document import PipelineDocument
from kitepipe.pipeline.plugins import PluginConfig, PluginVersionError, resolve_plugin_key
from kitepipe.pipeline.schema import BlockStep, CommandStep, Step, TriggerStep, WaitStep

__all__ = [
    "AutomaticRetryBuilder",
    "BlockStep",
    "BlockStepBuilder",
    "BuildContext",
    "CommandStep",
    "CommandStepBuilder",
    "DockerBuilder",
    "DockerComposeBuilder",
    "PipelineBuilder",
    "PipelineDocument",
    "PluginConfig",
    "PluginVersionError",
    "SelectFieldBuilder",
    "Step",
    "TextFieldBuilder",
    "TriggerBuildBuilder",
    "TriggerStep",
    "TriggerStepBuilder",
    "WaitStep",
    "resolve_plugin_key",
]
