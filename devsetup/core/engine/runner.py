"""
Command runner — the single place external commands are executed.

Output (stdout + stderr) goes to a temporary capture file, never to
the terminal. While the child runs, the parent polls it and redraws a
one-line progress indicator. On success the transcript is discarded
and one "completed" line is printed; on failure the last lines of the
transcript are shown, each tagged with the invocation prefix.

The runner NEVER raises for a failed command — the failure is in the
returned ``ExecutionOutcome``. Only interruption propagates.
"""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
import time
from pathlib import Path
from typing import IO

from devsetup.core.engine.interrupt import RunContext, read_capture, stop_process
from devsetup.core.models.invocation import CommandInvocation, ExecutionOutcome
from devsetup.ui.console import Console

logger = logging.getLogger(__name__)

# Lines of a failed transcript shown to the user
TAIL_LINES = 10

DEFAULT_PROGRESS_INTERVAL = 0.5

_SPINNER = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"

# Conventional shell exit codes for programs that cannot be started
_EXIT_NOT_FOUND = 127
_EXIT_NOT_EXECUTABLE = 126


def format_elapsed(seconds: float) -> str:
    """Render a duration as ``Xm Ys``."""
    total = int(seconds)
    return f"{total // 60}m {total % 60}s"


def truncate_transcript(lines: list[str], limit: int = TAIL_LINES) -> tuple[int, list[str]]:
    """Split a transcript into (omitted line count, lines to show)."""
    if len(lines) <= limit:
        return 0, list(lines)
    return len(lines) - limit, lines[-limit:]


class CommandRunner:
    """Run one ``CommandInvocation`` at a time with captured output."""

    def __init__(
        self,
        context: RunContext | None = None,
        console: Console | None = None,
        *,
        progress_interval: float = DEFAULT_PROGRESS_INTERVAL,
        show_progress: bool | None = None,
        capture_dir: str | os.PathLike[str] | None = None,
    ) -> None:
        self.context = context or RunContext()
        self.console = console or Console()
        self.progress_interval = progress_interval
        self.show_progress = show_progress
        self.capture_dir = capture_dir

    def run(self, invocation: CommandInvocation) -> ExecutionOutcome:
        """Execute ``invocation`` and report its outcome."""
        logger.debug("Running [%s]: %s", invocation.prefix, invocation.display)
        fd, name = tempfile.mkstemp(prefix="devsetup-", suffix=".log", dir=self.capture_dir)
        capture_path = Path(name)
        start = time.monotonic()

        try:
            try:
                with os.fdopen(fd, "wb") as capture:
                    active = self.context.activate(invocation, capture_path)
                    active.spawning = True
                    try:
                        process = self._spawn(invocation, capture)
                        self.context.attach_process(process)
                    finally:
                        active.spawning = False
            except OSError as exc:
                self.context.replay_deferred_signal()
                exit_code = (
                    _EXIT_NOT_EXECUTABLE if isinstance(exc, PermissionError) else _EXIT_NOT_FOUND
                )
                lines = [f"{invocation.argv[0]}: {exc.strerror or exc}"]
            else:
                try:
                    self.context.replay_deferred_signal()
                    self._feed_stdin(process, invocation.stdin)
                    exit_code = self._wait(process, invocation.prefix, start)
                finally:
                    stop_process(process)
                lines = read_capture(capture_path)
        finally:
            self.context.clear(capture_path)
            capture_path.unlink(missing_ok=True)

        outcome = ExecutionOutcome(
            prefix=invocation.prefix,
            command=invocation.display,
            exit_code=exit_code,
            lines=lines,
            duration_s=time.monotonic() - start,
        )
        logger.info(
            "[%s] exit %d after %.1fs (%d lines)",
            outcome.prefix, outcome.exit_code, outcome.duration_s, len(outcome.lines),
        )
        self._report(outcome)
        return outcome

    def run_chain(self, *invocations: CommandInvocation) -> ExecutionOutcome | None:
        """Run invocations in order, stopping at the first failure.

        Returns the last outcome produced (the failing one, if any),
        or None when given nothing to run.
        """
        outcome = None
        for invocation in invocations:
            outcome = self.run(invocation)
            if outcome.failed:
                break
        return outcome

    # ── Internals ───────────────────────────────────────────────

    def _spawn(self, invocation: CommandInvocation, capture: IO[bytes]) -> subprocess.Popen:
        env = None
        if invocation.env:
            env = os.environ.copy()
            for key, value in invocation.env.items():
                env[key] = os.path.expandvars(value)
        return subprocess.Popen(
            list(invocation.argv),
            stdin=subprocess.PIPE if invocation.stdin is not None else subprocess.DEVNULL,
            stdout=capture,
            stderr=subprocess.STDOUT,
            cwd=invocation.cwd,
            env=env,
        )

    def _feed_stdin(self, process: subprocess.Popen, payload: str | None) -> None:
        if payload is None or process.stdin is None:
            return
        try:
            process.stdin.write(payload.encode("utf-8"))
            process.stdin.flush()
        except BrokenPipeError:
            logger.debug("Child exited before reading its input")
        finally:
            try:
                process.stdin.close()
            except BrokenPipeError:
                logger.debug("Child input already closed")

    def _progress_enabled(self) -> bool:
        if self.show_progress is not None:
            return self.show_progress
        return self.console.isatty()

    def _wait(self, process: subprocess.Popen, prefix: str, start: float) -> int:
        render = self._progress_enabled()
        tick = 0
        try:
            while True:
                try:
                    return process.wait(timeout=self.progress_interval)
                except subprocess.TimeoutExpired:
                    tick += 1
                    if render:
                        spinner = _SPINNER[tick % len(_SPINNER)]
                        elapsed = format_elapsed(time.monotonic() - start)
                        self.console.progress(f"[{prefix}] {spinner} {elapsed}")
        finally:
            if render:
                self.console.clear_progress()

    def _report(self, outcome: ExecutionOutcome) -> None:
        if outcome.ok:
            self.console.prefixed(
                outcome.prefix, f"completed in {format_elapsed(outcome.duration_s)}"
            )
            return

        omitted, shown = truncate_transcript(outcome.lines)
        if omitted:
            self.console.prefixed(outcome.prefix, f"... ({omitted} more line(s) above)")
        for line in shown:
            self.console.prefixed(outcome.prefix, line)
