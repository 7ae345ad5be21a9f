"""
Shared test fixtures and configuration.
"""

import io
from pathlib import Path

import pytest

from devsetup.core.engine.interrupt import RunContext
from devsetup.core.engine.runner import CommandRunner
from devsetup.core.models.invocation import CommandInvocation, ExecutionOutcome
from devsetup.core.steps.base import StepContext
from devsetup.ui.console import Console


class FakeRunner:
    """Records invocations instead of running them.

    ``failures`` maps a substring of the displayed command line to the
    exit code that command should "return".
    """

    def __init__(self, console: Console, failures: dict[str, int] | None = None):
        self.console = console
        self.failures = dict(failures or {})
        self.calls: list[CommandInvocation] = []

    @property
    def commands(self) -> list[str]:
        return [inv.display for inv in self.calls]

    def run(self, invocation: CommandInvocation) -> ExecutionOutcome:
        self.calls.append(invocation)
        exit_code = 0
        for needle, code in self.failures.items():
            if needle in invocation.display:
                exit_code = code
                break
        return ExecutionOutcome(
            prefix=invocation.prefix,
            command=invocation.display,
            exit_code=exit_code,
            lines=[f"{invocation.argv[0]}: failed"] if exit_code else [],
        )

    def run_chain(self, *invocations: CommandInvocation) -> ExecutionOutcome | None:
        outcome = None
        for invocation in invocations:
            outcome = self.run(invocation)
            if outcome.failed:
                break
        return outcome


@pytest.fixture
def output() -> io.StringIO:
    """Buffer collecting everything the console prints."""
    return io.StringIO()


@pytest.fixture
def console(output: io.StringIO) -> Console:
    return Console(stream=output, color=False)


@pytest.fixture
def capture_dir(tmp_path: Path) -> Path:
    """Directory the runner creates its capture files in."""
    path = tmp_path / "capture"
    path.mkdir()
    return path


@pytest.fixture
def runner(console: Console, capture_dir: Path) -> CommandRunner:
    """Real runner: short poll interval, no progress line."""
    return CommandRunner(
        RunContext(),
        console,
        progress_interval=0.05,
        show_progress=False,
        capture_dir=capture_dir,
    )


@pytest.fixture
def fake_runner(console: Console) -> FakeRunner:
    return FakeRunner(console)


@pytest.fixture
def home(tmp_path: Path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def step_ctx(fake_runner: FakeRunner, console: Console, home: Path) -> StepContext:
    return StepContext(runner=fake_runner, console=console, home=home)
