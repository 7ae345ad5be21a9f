"""
Invocation and outcome models — the command-execution contract.

A ``CommandInvocation`` describes one external command to run.
An ``ExecutionOutcome`` is what the runner hands back. The runner
never raises for a failed command: failures are captured in the
outcome, and callers that want ``&&`` semantics call
``raise_for_status()``.
"""

from __future__ import annotations

import shlex
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from devsetup.core.errors import CommandFailed


class CommandInvocation(BaseModel):
    """One external command, immutable once built."""

    model_config = ConfigDict(frozen=True)

    prefix: str                     # label used to attribute output lines
    argv: tuple[str, ...]
    stdin: str | None = None        # fed to the child, then stdin is closed
    cwd: str | None = None
    env: dict[str, str] = Field(default_factory=dict)

    @field_validator("argv")
    @classmethod
    def _argv_not_empty(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("argv must contain at least the program name")
        return value

    @classmethod
    def shell(cls, prefix: str, script: str, **kwargs: Any) -> CommandInvocation:
        """Build a ``bash -c`` invocation for pipelines and redirections."""
        return cls(prefix=prefix, argv=("bash", "-c", script), **kwargs)

    @property
    def display(self) -> str:
        """Human-readable command line."""
        if self.argv[:2] == ("bash", "-c") and len(self.argv) == 3:
            return self.argv[2]
        return shlex.join(self.argv)


class ExecutionOutcome(BaseModel):
    """Result of running one ``CommandInvocation``."""

    prefix: str
    command: str
    exit_code: int = 0
    lines: list[str] = Field(default_factory=list)   # full transcript
    duration_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def failed(self) -> bool:
        return not self.ok

    def raise_for_status(self) -> ExecutionOutcome:
        """Raise ``CommandFailed`` if the command failed, else return self."""
        if self.failed:
            raise CommandFailed(self)
        return self
