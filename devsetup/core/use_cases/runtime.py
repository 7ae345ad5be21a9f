"""
Runtime wiring — one shared run context per process.

The runner, the step context and the interrupt coordinator must all
see the same ``RunContext`` so a signal can find the active command.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from devsetup.core.config.loader import Settings
from devsetup.core.engine.interrupt import InterruptCoordinator, RunContext
from devsetup.core.engine.runner import CommandRunner
from devsetup.core.steps.base import StepContext
from devsetup.ui.console import Console


@dataclass
class Runtime:
    """Wired collaborators for one installer run."""

    settings: Settings
    console: Console
    context: RunContext
    runner: CommandRunner
    step_ctx: StepContext
    coordinator: InterruptCoordinator


def build_runtime(
    settings: Settings | None = None,
    console: Console | None = None,
    home: Path | None = None,
    capture_dir: str | os.PathLike[str] | None = None,
) -> Runtime:
    """Build a runtime from settings; everything else has defaults."""
    settings = settings or Settings()
    console = console or Console()
    context = RunContext()
    runner = CommandRunner(
        context,
        console,
        progress_interval=settings.progress_interval,
        show_progress=settings.progress,
        capture_dir=capture_dir,
    )
    home = home or Path.home()
    step_ctx = StepContext(
        runner=runner,
        console=console,
        home=home,
        local_bin=settings.local_bin_path(home),
    )
    return Runtime(
        settings=settings,
        console=console,
        context=context,
        runner=runner,
        step_ctx=step_ctx,
        coordinator=InterruptCoordinator(context, console),
    )
