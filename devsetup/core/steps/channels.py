"""
Package-channel bootstrap steps.

Some package tiers need a channel that may not exist yet: the AUR
needs the ``yay`` helper, macOS needs Homebrew itself. These are
ordinary steps so the same idempotency check and receipt handling
apply.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from devsetup.core.models.invocation import ExecutionOutcome
from devsetup.core.steps.base import Step, StepContext

logger = logging.getLogger(__name__)

YAY_REPO = "https://aur.archlinux.org/yay.git"
HOMEBREW_INSTALLER = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"

# Where the Homebrew installer puts brew (Apple silicon, Intel)
HOMEBREW_PREFIXES = (Path("/opt/homebrew/bin"), Path("/usr/local/bin"))


class YayStep(Step):
    """yay AUR helper, built from the AUR with makepkg."""

    name = "yay"
    description = "AUR helper for Arch Linux"

    def is_installed(self, ctx: StepContext) -> bool:
        return ctx.which("yay") is not None

    def install(self, ctx: StepContext) -> ExecutionOutcome | None:
        ctx.console.info("Installing yay AUR helper")
        with tempfile.TemporaryDirectory(prefix="devsetup-yay-") as workdir:
            checkout = str(Path(workdir) / "yay")
            return ctx.run_chain(
                ctx.command("yay", "git", "clone", YAY_REPO, checkout),
                ctx.command("yay", "makepkg", "-si", "--noconfirm", cwd=checkout),
            )


class HomebrewStep(Step):
    """Homebrew itself, via the official non-interactive installer."""

    name = "homebrew"
    description = "macOS package manager"

    def _installed_prefix(self) -> Path | None:
        for prefix in HOMEBREW_PREFIXES:
            if (prefix / "brew").is_file():
                return prefix
        return None

    def is_installed(self, ctx: StepContext) -> bool:
        return ctx.which("brew") is not None or self._installed_prefix() is not None

    def install(self, ctx: StepContext) -> ExecutionOutcome | None:
        ctx.console.info("Installing Homebrew")
        outcome = ctx.run(
            ctx.script(
                "brew",
                f'/bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALLER})"',
                env={"NONINTERACTIVE": "1"},
            )
        )
        if outcome.ok:
            self.activate()
        return outcome

    def activate(self) -> None:
        """Put a freshly installed brew on PATH for the rest of the run."""
        prefix = self._installed_prefix()
        if prefix is None:
            return
        path = os.environ.get("PATH", "")
        if str(prefix) not in path.split(os.pathsep):
            os.environ["PATH"] = os.pathsep.join([str(prefix), path]) if path else str(prefix)
            logger.info("Added %s to PATH", prefix)
