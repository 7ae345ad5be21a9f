"""
Login-shell switcher — make the target shell the user's default.

All commands go through the runner, so output stays quiet on success
and a failure shows its tail like any other command.
"""

from __future__ import annotations

import getpass
import logging
import os
import shutil
from collections.abc import Callable, Mapping
from enum import StrEnum
from pathlib import Path

from devsetup.core.engine.runner import CommandRunner
from devsetup.core.errors import StepError
from devsetup.core.models.invocation import CommandInvocation
from devsetup.ui.console import Console

logger = logging.getLogger(__name__)

SHELLS_FILE = Path("/etc/shells")


class ShellChange(StrEnum):
    """What ``ShellSwitcher.switch`` did."""

    CHANGED = "changed"
    UNCHANGED = "unchanged"


class ShellSwitcher:
    """Switch the login shell with ``chsh``.

    Args:
        runner: Runner used for the privileged commands.
        console: Where status lines go.
        environ: Environment to read ``SHELL``/``USER`` from (tests).
        which: PATH lookup function (tests).
        shells_file: The list of allowed login shells.
    """

    def __init__(
        self,
        runner: CommandRunner,
        console: Console | None = None,
        *,
        environ: Mapping[str, str] | None = None,
        which: Callable[[str], str | None] = shutil.which,
        shells_file: Path = SHELLS_FILE,
    ) -> None:
        self.runner = runner
        self.console = console or runner.console
        self.environ = environ if environ is not None else os.environ
        self.which = which
        self.shells_file = shells_file

    @property
    def current(self) -> str:
        return Path(self.environ.get("SHELL", "")).name

    def needs_switch(self, target: str) -> bool:
        return self.current != target

    def _registered(self, shell_path: str) -> bool:
        try:
            lines = self.shells_file.read_text(encoding="utf-8").splitlines()
        except OSError:
            return False
        return shell_path in (line.strip() for line in lines)

    def _user(self) -> str:
        return self.environ.get("USER") or getpass.getuser()

    def switch(self, target: str = "zsh") -> ShellChange:
        """Make ``target`` the login shell.

        Raises:
            StepError: If the target shell is not installed.
            CommandFailed: If registering or switching fails.
        """
        if not self.needs_switch(target):
            return ShellChange.UNCHANGED

        self.console.info(f"Changing shell from {self.current or 'unknown'} to {target}")
        shell_path = self.which(target)
        if not shell_path:
            raise StepError(f"{target} not found")

        if not self._registered(shell_path):
            logger.info("Adding %s to %s", shell_path, self.shells_file)
            self.runner.run(
                CommandInvocation(
                    prefix="shell",
                    argv=("sudo", "tee", "-a", str(self.shells_file)),
                    stdin=f"{shell_path}\n",
                )
            ).raise_for_status()

        self.runner.run(
            CommandInvocation(
                prefix="shell",
                argv=("sudo", "chsh", "-s", shell_path, self._user()),
            )
        ).raise_for_status()
        self.console.success(f"Shell changed to {target}")
        return ShellChange.CHANGED
