"""
Receipt model — what happened when the orchestrator ran one step.

Bulk installs never stop on a failing step: the failure is written
into its Receipt and the next step runs.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

StepStatus = Literal["installed", "present", "failed"]


class Receipt(BaseModel):
    """Outcome of one step."""

    step: str
    status: StepStatus = "installed"
    error: str | None = None
    note: str = ""

    finished_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    duration_ms: int = 0

    # exit_code / prefix of the command that broke the step, if any
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status != "failed"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, step: str, note: str = "", **kwargs: Any) -> Receipt:
        return cls(step=step, status="installed", note=note, **kwargs)

    @classmethod
    def failure(cls, step: str, error: str, **kwargs: Any) -> Receipt:
        return cls(step=step, status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, step: str, reason: str = "already installed", **kwargs: Any) -> Receipt:
        """The step was already satisfied; nothing ran."""
        return cls(step=step, status="present", note=reason, **kwargs)
