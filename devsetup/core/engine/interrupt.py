"""
Interrupt handling — the run context and the signal coordinator.

States:
    IDLE        → No command running.
    RUNNING     → A command is registered in the run context.
    DRAINING    → A signal arrived; flushing the in-flight output.
    TERMINATED  → Drain finished; ``UserInterrupted`` is being raised.

Transitions:
    IDLE → RUNNING:          runner activates the context
    RUNNING → IDLE:          runner clears the context
    RUNNING|IDLE → DRAINING: SIGINT / SIGTERM
    DRAINING → TERMINATED:   output flushed, capture file removed
    RUNNING (spawning):      signal deferred until the child is attached

Execution is strictly sequential, so the context holds a single slot.
Signal handlers can only be installed from the main thread.
"""

from __future__ import annotations

import logging
import signal
import subprocess
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from types import FrameType
from typing import Any

from devsetup.core.errors import UserInterrupted
from devsetup.core.models.invocation import CommandInvocation
from devsetup.ui.console import Console

logger = logging.getLogger(__name__)

# Seconds a child gets between SIGTERM and SIGKILL
_STOP_GRACE = 2.0


class InterruptState(StrEnum):
    """Coordinator states."""

    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


@dataclass
class ActiveCommand:
    """The command currently owning the run context's slot."""

    invocation: CommandInvocation
    capture_path: Path
    process: subprocess.Popen | None = None
    # True while Popen is forking; the child may exist before it is attached
    spawning: bool = False


class RunContext:
    """Single-owner state shared by the runner and the coordinator.

    The runner registers the in-flight command here; the coordinator
    reads it when a signal arrives. Nothing else writes to it.
    """

    def __init__(self) -> None:
        self._active: ActiveCommand | None = None
        self.cancelled = False
        self.signum: int | None = None
        # Signal that arrived mid-spawn, waiting to be replayed by the runner
        self.deferred_signal: int | None = None

    @property
    def active(self) -> ActiveCommand | None:
        return self._active

    @property
    def is_running(self) -> bool:
        return self._active is not None

    def activate(self, invocation: CommandInvocation, capture_path: Path) -> ActiveCommand:
        """Claim the slot for ``invocation``."""
        if self._active is not None:
            raise RuntimeError(
                f"Command already running: {self._active.invocation.display}"
            )
        self._active = ActiveCommand(invocation=invocation, capture_path=capture_path)
        return self._active

    def attach_process(self, process: subprocess.Popen) -> None:
        if self._active is not None:
            self._active.process = process

    def clear(self, capture_path: Path | None = None) -> None:
        """Release the slot; with ``capture_path``, only if that command owns it."""
        if capture_path is not None and self._active is not None:
            if self._active.capture_path != capture_path:
                return
        self._active = None

    def cancel(self, signum: int) -> None:
        self.cancelled = True
        self.signum = signum

    def replay_deferred_signal(self) -> None:
        """Re-deliver a signal held back while the child was being spawned."""
        signum, self.deferred_signal = self.deferred_signal, None
        if signum is not None:
            # Handlers run before raise_signal returns
            signal.raise_signal(signum)


def stop_process(process: subprocess.Popen | None, grace: float = _STOP_GRACE) -> None:
    """Terminate ``process`` if it is still alive, killing it after ``grace``."""
    if process is None or process.poll() is not None:
        return
    process.terminate()
    try:
        process.wait(timeout=grace)
    except subprocess.TimeoutExpired:
        logger.debug("Child %s ignored SIGTERM, killing", process.pid)
        process.kill()
        process.wait()


def read_capture(path: Path) -> list[str]:
    """Read a capture file as lines; a missing file reads as empty.

    Only ``\\n`` ends a line. Carriage-return progress redraws stay
    inside the line they were printed on.
    """
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        return []
    lines = data.decode("utf-8", errors="replace").split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


class InterruptCoordinator:
    """Turns SIGINT/SIGTERM into a flushed, clean ``UserInterrupted``."""

    SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self, context: RunContext, console: Console | None = None) -> None:
        self.context = context
        self.console = console or Console()
        self._state: InterruptState | None = None
        self._previous: dict[int, Any] = {}

    @property
    def state(self) -> InterruptState:
        if self._state is not None:
            return self._state
        return InterruptState.RUNNING if self.context.is_running else InterruptState.IDLE

    # ── Handler installation ────────────────────────────────────

    def install(self) -> dict[int, Any]:
        """Install handlers; returns the handlers they replaced."""
        for signum in self.SIGNALS:
            self._previous[signum] = signal.signal(signum, self.handle)
        return dict(self._previous)

    def restore(self) -> None:
        for signum, previous in self._previous.items():
            signal.signal(signum, previous)
        self._previous.clear()

    def __enter__(self) -> InterruptCoordinator:
        self.install()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.restore()

    # ── Drain ───────────────────────────────────────────────────

    def handle(self, signum: int, frame: FrameType | None) -> None:
        """Signal handler: report, flush, clean up, then raise."""
        active = self.context.active
        if active is not None and active.spawning:
            logger.debug("Signal %d while spawning [%s], deferring", signum, active.invocation.prefix)
            self.context.deferred_signal = signum
            return

        self._state = InterruptState.DRAINING
        self.context.cancel(signum)
        self.console.echo()
        self.console.error("Interrupted by user")

        if active is not None:
            prefix = active.invocation.prefix
            self.console.info(f"Active command [{prefix}]: {active.invocation.display}")
            stop_process(active.process)
            lines = read_capture(active.capture_path)
            if lines:
                self.console.info("Output so far:")
                for line in lines:
                    self.console.prefixed(prefix, line)
            active.capture_path.unlink(missing_ok=True)
            self.context.clear()
            logger.info("Drained interrupted command %s (%d lines)", prefix, len(lines))

        self._state = InterruptState.TERMINATED
        raise UserInterrupted(signum)
