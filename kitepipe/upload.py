"""Hand a rendered pipeline to ``buildkite-agent``, or print it for local runs."""

from __future__ import annotations

import os
import subprocess
import sys
from collections.abc import Mapping
from typing import TextIO

from kitepipe._log import get_logger
from kitepipe.pipeline.document import PipelineDocument

logger = get_logger("upload")

AGENT_UPLOAD_COMMAND = ("buildkite-agent", "pipeline", "upload")


class UploadError(Exception):
    """Raised when ``buildkite-agent pipeline upload`` cannot be run or fails."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        self.returncode = returncode
        super().__init__(message)


def running_on_agent(environ: Mapping[str, str] | None = None) -> bool:
    """True inside a Buildkite job, unless ``PIPELINE_TO_STDOUT`` asks for printing."""
    env = os.environ if environ is None else environ
    return bool(env.get("BUILDKITE")) and not env.get("PIPELINE_TO_STDOUT")


def upload_command(document: PipelineDocument) -> list[str]:
    cmd = list(AGENT_UPLOAD_COMMAND)
    if not document.interpolate:
        cmd.append("--no-interpolation")
    if document.replace:
        cmd.append("--replace")
    return cmd


def upload_pipeline(document: PipelineDocument) -> None:
    """Stream *document* to ``buildkite-agent pipeline upload`` on stdin.

    The agent's own output goes straight to this process's stdout/stderr.

    Raises:
        UploadError: If the agent cannot be started or exits non-zero.
    """
    cmd = upload_command(document)
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, input=document.to_json(), text=True, check=False)
    except OSError as e:
        raise UploadError(f"Cannot run {cmd[0]}: {e}") from e
    if result.returncode != 0:
        raise UploadError(
            f"{cmd[0]} returned exit code {result.returncode}", returncode=result.returncode
        )


def publish(
    document: PipelineDocument,
    *,
    environ: Mapping[str, str] | None = None,
    stream: TextIO | None = None,
) -> bool:
    """Upload *document* when running on an agent, otherwise pretty-print it.

    Returns True when the document was uploaded.
    """
    if running_on_agent(environ):
        upload_pipeline(document)
        return True
    out = stream or sys.stdout
    out.write(document.to_json(pretty=True))
    out.write("\n")
    return False
