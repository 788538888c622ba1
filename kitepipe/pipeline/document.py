"""The pipeline document handed to ``buildkite-agent pipeline upload``."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field

from kitepipe.pipeline.schema import Step


class PipelineDocument(BaseModel):
    """Ordered steps plus pipeline-wide environment.

    ``interpolate`` and ``replace`` are upload options and never appear in the
    rendered document.
    """

    env: dict[str, str] = Field(default_factory=dict)
    steps: list[Step] = Field(default_factory=list)
    interpolate: bool = True
    replace: bool = False

    def to_wire(self) -> dict[str, Any]:
        return {
            "env": dict(self.env),
            "steps": [step.to_wire() for step in self.steps],
        }

    def to_json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_wire(), indent=4 if pretty else None, ensure_ascii=False)
