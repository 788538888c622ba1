"""Shared test fixtures and helpers."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from kitepipe.pipeline.builder import CommandStepBuilder, PipelineBuilder
from kitepipe.pipeline.context import BuildContext


def render_command(
    configure: Callable[[CommandStepBuilder], object],
    context: BuildContext,
) -> dict[str, Any]:
    """Build a one-step pipeline and return the rendered command step."""
    builder = PipelineBuilder(context)
    builder.command_step(configure)
    return builder.document.to_wire()["steps"][0]


@pytest.fixture
def context(tmp_path):
    """A build context rooted in an empty temporary directory."""
    return BuildContext(root_dir=tmp_path)


@pytest.fixture
def pipeline(context):
    """A fresh pipeline builder."""
    return PipelineBuilder(context)


@pytest.fixture()
def caplog_kitepipe(caplog):
    """Attach caplog's handler to the ``kitepipe`` logger, which does not propagate."""
    import logging

    root = logging.getLogger("kitepipe")
    root.addHandler(caplog.handler)
    yield caplog
    root.removeHandler(caplog.handler)
