"""
Error kinds raised by the installer core.

Everything except ``UserInterrupted`` derives from ``InstallerError``
and carries the process exit code the CLI should use for it.

``UserInterrupted`` derives from ``KeyboardInterrupt`` so that the
per-step ``except Exception`` recovery in the orchestrator can never
swallow a cancellation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from devsetup.core.models.invocation import ExecutionOutcome


class InstallerError(Exception):
    """Base class for installer failures."""

    exit_code: int = 1


class UnsupportedPlatform(InstallerError):
    """The host OS is not one of the supported platforms."""

    def __init__(self, detected: str) -> None:
        super().__init__(f"Unsupported OS: {detected}")
        self.detected = detected


class RunningAsPrivilegedUser(InstallerError):
    """The installer was started as root."""

    def __init__(self, message: str = "Do not run as root") -> None:
        super().__init__(message)


class UnknownStep(InstallerError):
    """No step is registered under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown package: {name}")
        self.name = name


class StepError(InstallerError):
    """A step could not run (missing prerequisite, bad state)."""


class CommandFailed(InstallerError):
    """An external command exited non-zero.

    The full transcript travels with the error; truncation is a
    display concern of the runner only.
    """

    def __init__(self, outcome: ExecutionOutcome) -> None:
        super().__init__(
            f"{outcome.prefix}: command failed (exit {outcome.exit_code}): {outcome.command}"
        )
        self.outcome = outcome

    @property
    def command_exit_code(self) -> int:
        return self.outcome.exit_code

    @property
    def transcript(self) -> list[str]:
        return list(self.outcome.lines)


class UserInterrupted(KeyboardInterrupt):
    """The user cancelled the run with a signal (Ctrl-C or SIGTERM)."""

    def __init__(self, signum: int) -> None:
        super().__init__(f"Interrupted by signal {signum}")
        self.signum = signum

    @property
    def exit_code(self) -> int:
        return 128 + self.signum
