"""Pydantic models for Buildkite pipeline steps.

Every field defaults to ``None`` and is rendered only when it was explicitly
set, so a step never carries ``null`` placeholders for options the caller did
not touch.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

FIELD_KEY_PATTERN = r"^[A-Za-z0-9_/-]+$"

ExitStatus = int | Literal["*"]


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    def to_wire(self) -> Any:
        """Render to a plain JSON value, leaving out every field never set."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)

    def append(self, field: str, *values: Any) -> None:
        """Append to a list field, creating it on first use."""
        setattr(self, field, [*(getattr(self, field) or []), *values])

    def merge(self, field: str, values: dict[str, Any]) -> None:
        """Merge into a mapping field; later keys win."""
        setattr(self, field, {**(getattr(self, field) or {}), **values})


# ---------------------------------------------------------------------------
# Command step parts
# ---------------------------------------------------------------------------


class AgentsConfig(WireModel):
    queue: str = Field(min_length=1)


class AutomaticRetry(WireModel):
    exit_status: ExitStatus | None = None
    limit: int | None = Field(default=None, ge=0, le=10)


class ManualRetry(WireModel):
    allowed: bool | None = None
    reason: str | None = None
    permit_on_passed: bool | None = None


class RetryConfig(WireModel):
    automatic: bool | AutomaticRetry | None = None
    manual: ManualRetry | None = None


class SoftFailStatus(WireModel):
    exit_status: ExitStatus


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


class StepBase(WireModel):
    branches: str | None = None
    key: str | None = Field(default=None, min_length=1)
    depends_on: str | list[str] | None = None
    allow_dependency_failure: bool | None = None
    if_: str | None = Field(default=None, alias="if")


class WaitStep(WireModel):
    """A wait step. Renders as the bare string ``"wait"`` unless it continues on failure."""

    continue_on_failure: bool = False

    def to_wire(self) -> Any:
        if not self.continue_on_failure:
            return "wait"
        return {"wait": {"continue_on_failure": True}}


class CommandStep(StepBase):
    label: str | None = None
    command: str | list[str] | None = None
    agents: AgentsConfig | None = None
    artifact_paths: list[str] | None = None
    concurrency: int | None = Field(default=None, ge=1)
    concurrency_group: str | None = Field(default=None, min_length=1)
    env: dict[str, str] | None = None
    parallelism: int | None = Field(default=None, ge=1)
    retry: RetryConfig | None = None
    skip: bool | str | None = None
    soft_fail: bool | list[SoftFailStatus] | None = None
    timeout_in_minutes: int | None = Field(default=None, ge=1)
    plugins: list[dict[str, Any]] | None = None


class TextField(WireModel):
    text: str
    key: str = Field(min_length=1, pattern=FIELD_KEY_PATTERN)
    hint: str | None = None
    required: bool | None = None
    default: str | None = None


class SelectOption(WireModel):
    label: str
    value: str


class SelectField(WireModel):
    select: str
    key: str = Field(min_length=1, pattern=FIELD_KEY_PATTERN)
    hint: str | None = None
    required: bool | None = None
    default: str | list[str] | None = None
    multiple: bool | None = None
    options: list[SelectOption] | None = None


BlockField = TextField | SelectField


class BlockStep(StepBase):
    block: str = Field(min_length=1)
    prompt: str | None = None
    fields: list[BlockField] | None = None


class TriggerBuild(WireModel):
    message: str | None = None
    commit: str | None = None
    branch: str | None = None
    env: dict[str, str] | None = None
    meta_data: dict[str, str] | None = None


class TriggerStep(StepBase):
    trigger: str = Field(min_length=1)
    label: str | None = None
    async_: bool | None = Field(default=None, alias="async")
    build: TriggerBuild | None = None


Step = WaitStep | CommandStep | BlockStep | TriggerStep
