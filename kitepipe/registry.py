"""Named pipeline definitions, built on demand."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import overload

from kitepipe._log import get_logger
from kitepipe.config import BuildkiteSettings
from kitepipe.pipeline.builder import PipelineBuilder
from kitepipe.pipeline.context import BuildContext
from kitepipe.pipeline.document import PipelineDocument

logger = get_logger("registry")

DEFAULT_PIPELINE = "default"

PipelineDefinition = Callable[[PipelineBuilder], object]


class PipelineNotFoundError(Exception):
    """Raised when a requested pipeline has not been registered."""


def upload_task_name(name: str) -> str:
    """Return the upload task name for pipeline *name*.

    ``default`` maps to ``uploadPipeline``; any other name is capitalized
    into ``upload<Name>Pipeline``.
    """
    if name == DEFAULT_PIPELINE:
        return "uploadPipeline"
    return f"upload{name[:1].upper()}{name[1:]}Pipeline"


class Registry:
    """Holds pipeline definitions by name.

    Registering a pipeline stores its definition only. The definition runs
    against a fresh :class:`PipelineBuilder` every time :meth:`build` is
    called, using the settings in effect at that moment.
    """

    def __init__(
        self,
        settings: BuildkiteSettings | None = None,
        root_dir: Path | None = None,
    ) -> None:
        self.settings = settings.model_copy(deep=True) if settings else BuildkiteSettings()
        self.root_dir = root_dir or Path.cwd()
        self._pipelines: dict[str, PipelineDefinition] = {}

    @property
    def include_scripts(self) -> bool:
        return self.settings.include_scripts

    @include_scripts.setter
    def include_scripts(self, value: bool) -> None:
        self.settings.include_scripts = value

    def default_agent_queue(self, name: str) -> None:
        """Set the agent queue used by command steps that don't pick one."""
        self.settings.default_agent_queue = name

    def plugin_version(self, name: str, version: str) -> None:
        """Set the version used for plugin *name* when a step doesn't give one."""
        self.settings.plugin_versions[name] = version

    @overload
    def pipeline(self, name: PipelineDefinition) -> PipelineDefinition: ...

    @overload
    def pipeline(
        self, name: str = ..., configure: None = None
    ) -> Callable[[PipelineDefinition], PipelineDefinition]: ...

    @overload
    def pipeline(self, name: str, configure: PipelineDefinition) -> PipelineDefinition: ...

    def pipeline(self, name=DEFAULT_PIPELINE, configure=None):
        """Register a pipeline definition.

        Works as a plain call or as a decorator::

            registry.pipeline(define_default)
            registry.pipeline("test", define_tests)

            @registry.pipeline("deploy")
            def deploy(p): ...
        """
        if callable(name):
            name, configure = DEFAULT_PIPELINE, name
        if configure is None:

            def decorator(func: PipelineDefinition) -> PipelineDefinition:
                self.pipeline(name, func)
                return func

            return decorator

        if name in self._pipelines:
            logger.warning("Pipeline '%s' is defined more than once; the last one wins", name)
        self._pipelines[name] = configure
        logger.debug("Registered pipeline '%s'", name)
        return configure

    def names(self) -> list[str]:
        return list(self._pipelines)

    def task_names(self) -> dict[str, str]:
        return {name: upload_task_name(name) for name in self._pipelines}

    def resolve(self, name_or_task: str) -> str:
        """Accept a pipeline name or its upload task name and return the pipeline name."""
        if name_or_task in self._pipelines:
            return name_or_task
        for name in self._pipelines:
            if upload_task_name(name) == name_or_task:
                return name
        known = ", ".join(self._pipelines) or "(none)"
        raise PipelineNotFoundError(f"Unknown pipeline '{name_or_task}'. Defined: {known}")

    def context(self) -> BuildContext:
        return BuildContext.from_settings(self.settings, self.root_dir)

    def build(self, name: str = DEFAULT_PIPELINE) -> PipelineDocument:
        """Run the definition for *name* and return the resulting document."""
        configure = self._pipelines[self.resolve(name)]
        builder = PipelineBuilder(self.context())
        configure(builder)
        logger.debug("Built pipeline '%s' with %d step(s)", name, len(builder.document.steps))
        return builder.document
