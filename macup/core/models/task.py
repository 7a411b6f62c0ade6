"""
InstallTask and TaskOutcome models — the execution contract.

Tasks represent requested installs. Outcomes represent results.
The engine hands tasks to backends through the worker pool; the pool
turns whatever happens into an outcome. Item-level errors never
escape as exceptions.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict


class OutcomeStatus(StrEnum):
    """What happened to one install task."""

    SKIPPED = "skipped"              # already installed, never attempted
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"          # dropped from the queue by fail_fast
    NOT_ATTEMPTED = "not_attempted"  # section failed or was never entered


class InstallTask(BaseModel):
    """One (section, item) pair awaiting installation."""

    model_config = ConfigDict(frozen=True)

    section: str
    item: str
    backend: str
    prerequisite: bool = False   # runtime auto-install for the section

    @property
    def key(self) -> str:
        return f"{self.section}:{self.item}"


class TaskOutcome(BaseModel):
    """Result of one install task.

    Outcomes are immutable once created. They are collected by the
    result aggregator and never shared mutably between workers.
    """

    model_config = ConfigDict(frozen=True)

    task: InstallTask
    status: OutcomeStatus
    error_kind: str | None = None
    reason: str = ""
    duration_ms: int = 0
    required: bool = True        # false: a failure is reported as a warning

    @property
    def ok(self) -> bool:
        """Whether the item is present after this outcome."""
        return self.status in (OutcomeStatus.SUCCEEDED, OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> bool:
        return self.status == OutcomeStatus.FAILED

    @property
    def blocking(self) -> bool:
        """A failure that counts against the section and the run."""
        return self.failed and self.required

    @classmethod
    def succeeded(cls, task: InstallTask, **kwargs: Any) -> TaskOutcome:
        """Create a success outcome."""
        return cls(task=task, status=OutcomeStatus.SUCCEEDED, **kwargs)

    @classmethod
    def failure(
        cls,
        task: InstallTask,
        error_kind: str,
        reason: str,
        **kwargs: Any,
    ) -> TaskOutcome:
        """Create a failure outcome."""
        return cls(
            task=task,
            status=OutcomeStatus.FAILED,
            error_kind=error_kind,
            reason=reason,
            **kwargs,
        )

    @classmethod
    def skip(cls, task: InstallTask, reason: str = "already installed") -> TaskOutcome:
        """Create a skip outcome for an item that is already present."""
        return cls(task=task, status=OutcomeStatus.SKIPPED, reason=reason)

    @classmethod
    def cancel(cls, task: InstallTask, reason: str = "cancelled by fail_fast") -> TaskOutcome:
        return cls(task=task, status=OutcomeStatus.CANCELLED, reason=reason)

    @classmethod
    def not_attempted(cls, task: InstallTask, reason: str) -> TaskOutcome:
        return cls(task=task, status=OutcomeStatus.NOT_ATTEMPTED, reason=reason)

    def to_dict(self) -> dict[str, Any]:
        return {
            "section": self.task.section,
            "item": self.task.item,
            "backend": self.task.backend,
            "prerequisite": self.task.prerequisite,
            "status": self.status.value,
            "error_kind": self.error_kind,
            "reason": self.reason,
            "duration_ms": self.duration_ms,
            "required": self.required,
        }
