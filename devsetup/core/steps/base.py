"""
Step base — the contract between the orchestrator and installers.

A step is one named, independently idempotency-checked installation
unit. The orchestrator only talks to steps through this interface.

To create a new step:
    1. Subclass Step
    2. Set ``name`` (and ``description``)
    3. Implement is_installed and install
    4. Register it in the StepRegistry
"""

from __future__ import annotations

import os
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devsetup.core.engine.runner import CommandRunner
from devsetup.core.models.invocation import CommandInvocation, ExecutionOutcome
from devsetup.ui.console import Console


@dataclass
class StepContext:
    """Everything a step needs: how to run commands and where home is."""

    runner: CommandRunner
    console: Console = field(default_factory=Console)
    home: Path = field(default_factory=Path.home)
    # Per-user binaries; ~/.local/bin unless configured
    local_bin: Path | None = None

    @property
    def bin_dir(self) -> Path:
        return self.local_bin or self.home / ".local" / "bin"

    def path(self, relative: str) -> Path:
        """Resolve ``~/...`` or a home-relative path against ``home``."""
        if relative.startswith("~/"):
            relative = relative[2:]
        elif relative == "~":
            return self.home
        return self.home / relative

    def which(self, program: str) -> str | None:
        """Locate ``program`` on PATH."""
        return shutil.which(program, path=os.environ.get("PATH"))

    def command(self, prefix: str, *argv: str, **kwargs: Any) -> CommandInvocation:
        """Build an invocation that sees this context's ``home`` as ``$HOME``."""
        env = {"HOME": str(self.home), **kwargs.pop("env", {})}
        return CommandInvocation(prefix=prefix, argv=argv, env=env, **kwargs)

    def script(self, prefix: str, script: str, **kwargs: Any) -> CommandInvocation:
        """Like ``command`` but runs ``script`` through ``bash -c``."""
        return self.command(prefix, "bash", "-c", script, **kwargs)

    def run(self, invocation: CommandInvocation) -> ExecutionOutcome:
        return self.runner.run(invocation)

    def run_chain(self, *invocations: CommandInvocation) -> ExecutionOutcome | None:
        return self.runner.run_chain(*invocations)


class Step(ABC):
    """Abstract base class for all installation steps."""

    name: str = ""
    description: str = ""

    @abstractmethod
    def is_installed(self, ctx: StepContext) -> bool:
        """Whether the step's result is already present.

        MUST have no side effects. A step with no reliable marker may
        always answer False, forcing a re-run every time.
        """

    @abstractmethod
    def install(self, ctx: StepContext) -> ExecutionOutcome | None:
        """Perform the installation.

        Return the last outcome of the command chain (checked by the
        orchestrator), or raise ``CommandFailed`` / ``StepError``.
        Returning None means nothing needed running.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
