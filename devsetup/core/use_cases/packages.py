"""
Packages use case — bulk install of a catalog profile.

Flow:
    guard → detect platform → show packages → channel bootstraps
          → plan invocations (stop at first failure) → login shell
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from devsetup.adapters.system.os_detect import PlatformDetector
from devsetup.adapters.system.privilege import PrivilegeGuard
from devsetup.adapters.system.shell import ShellChange, ShellSwitcher
from devsetup.core.config.loader import ConfigError, load_catalog
from devsetup.core.engine.orchestrator import InstallReport, Orchestrator
from devsetup.core.errors import CommandFailed, InstallerError, StepError
from devsetup.core.models.invocation import ExecutionOutcome
from devsetup.core.models.packages import PackageProfile
from devsetup.core.services.package_sets import PackagePlan, build_package_plan, tier_listing
from devsetup.core.steps.defaults import channel_registry
from devsetup.core.use_cases.runtime import Runtime, build_runtime
from devsetup.ui.console import Console

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "global"


@dataclass
class PackagesResult:
    """Result of a bulk package installation."""

    profile: str = DEFAULT_PROFILE
    platform: str = ""
    dry_run: bool = False
    plan: PackagePlan | None = None
    channels: InstallReport | None = None
    failed_command: ExecutionOutcome | None = None
    shell_changed: bool = False
    error: str | None = None
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def restart_required(self) -> bool:
        return self.shell_changed

    def to_dict(self) -> dict:
        result: dict = {
            "profile": self.profile,
            "platform": self.platform,
            "dry_run": self.dry_run,
            "shell_changed": self.shell_changed,
            "restart_required": self.restart_required,
        }
        if self.plan:
            result["plan"] = self.plan.to_dict()
        if self.channels:
            result["channels"] = self.channels.to_dict()
        if self.failed_command:
            result["failed_command"] = {
                "prefix": self.failed_command.prefix,
                "command": self.failed_command.command,
                "exit_code": self.failed_command.exit_code,
            }
        if self.error:
            result["error"] = self.error
        return result


def show_packages(console: Console, profile: PackageProfile, platform: str) -> None:
    """Print every tier that will be installed, resolved."""
    console.info(f"Packages to be installed on {platform}:")
    for label, packages in tier_listing(profile, platform):
        console.labelled(label, packages)


# Invocation prefix → channel step that must exist before it runs
CHANNEL_FOR_PREFIX = {"yay": "yay", "brew": "homebrew"}


def _run_plan(runtime: Runtime, plan: PackagePlan, result: PackagesResult) -> None:
    """Run the plan in order, bootstrapping each channel on first use.

    The AUR helper is built only after pacman has installed the
    toolchain it needs; Homebrew is bootstrapped before the first
    ``brew`` command.

    Raises:
        StepError: A channel bootstrap failed.
        CommandFailed: A plan command failed; later ones do not run.
    """
    orchestrator = Orchestrator(channel_registry(), runtime.step_ctx)
    result.channels = InstallReport()

    for invocation in plan.invocations:
        channel = CHANNEL_FOR_PREFIX.get(invocation.prefix)
        if channel and result.channels.get(channel) is None:
            receipt = orchestrator.install(channel)
            result.channels.receipts.append(receipt)
            if receipt.failed:
                raise StepError(f"{channel} installation failed")

        outcome = runtime.runner.run(invocation)
        if outcome.failed:
            result.failed_command = outcome
            raise CommandFailed(outcome)


def _switch_shell(runtime: Runtime, switcher: ShellSwitcher | None) -> bool:
    """Switch the login shell; a failure here never fails the run."""
    target = runtime.settings.shell
    switcher = switcher or ShellSwitcher(runtime.runner, runtime.console)
    if not switcher.needs_switch(target):
        return False
    try:
        return switcher.switch(target) is ShellChange.CHANGED
    except (CommandFailed, StepError) as e:
        logger.warning("Shell switch failed: %s", e)
        runtime.console.error(f"Could not change shell to {target}")
        return False


def install_packages(
    profile: str = DEFAULT_PROFILE,
    *,
    runtime: Runtime | None = None,
    dry_run: bool = False,
    guard: PrivilegeGuard | None = None,
    detector: PlatformDetector | None = None,
    switcher: ShellSwitcher | None = None,
) -> PackagesResult:
    """Install a package profile with the host's package manager.

    Args:
        profile: Catalog profile name (``basic`` or ``global`` by default).
        runtime: Wired runner/console; built from defaults if omitted.
        dry_run: Show the plan's command lines without running anything.
        guard: Privilege guard (tests inject one with a fake uid).
        detector: Platform detector (tests inject a fixed platform).
        switcher: Login-shell switcher.

    Returns:
        PackagesResult. Failures are reported through ``error`` and
        ``exit_code``; only an interrupt propagates.
    """
    runtime = runtime or build_runtime()
    console = runtime.console
    result = PackagesResult(profile=profile, dry_run=dry_run)

    try:
        console.info(f"Starting {profile} package installation")
        (guard or PrivilegeGuard()).assert_not_privileged()

        platform = (detector or PlatformDetector()).detect()
        result.platform = str(platform)
        console.info(f"Detected OS: {platform}")

        catalog = load_catalog(runtime.settings)
        package_profile = catalog.get_profile(profile)
        if package_profile is None:
            raise ConfigError(
                f"Unknown package profile: {profile} "
                f"(available: {', '.join(catalog.profile_names)})"
            )

        plan = build_package_plan(str(platform), package_profile)
        result.plan = plan
        show_packages(console, package_profile, str(platform))

        if dry_run:
            console.info("Dry run, commands that would run:")
            for line in plan.command_lines:
                console.echo(f"  {line}")
            return result

        _run_plan(runtime, plan, result)
        console.success("Package installation completed")

        result.shell_changed = _switch_shell(runtime, switcher)
    except (InstallerError, ConfigError) as e:
        logger.info("Package installation stopped: %s", e)
        result.error = str(e)
        result.exit_code = e.exit_code
        if isinstance(e, CommandFailed):
            console.error("Package installation failed")
        else:
            console.error(str(e))
        return result

    console.success("Installation completed successfully!")
    if result.shell_changed:
        console.warn(f"IMPORTANT: Your shell has been changed to {runtime.settings.shell}")
        console.info("Please restart your terminal or log out and back in")
    return result
