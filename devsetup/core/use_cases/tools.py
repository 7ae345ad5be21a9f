"""
Tools use case — per-tool installs into the user's home.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from devsetup.adapters.system.privilege import PrivilegeGuard
from devsetup.core.engine.orchestrator import InstallReport, Orchestrator
from devsetup.core.engine.registry import StepRegistry
from devsetup.core.errors import InstallerError, StepError
from devsetup.core.steps.defaults import default_registry
from devsetup.core.use_cases.runtime import Runtime, build_runtime

logger = logging.getLogger(__name__)

_ROOT_MESSAGE = "Do not run as root - packages install to home directory"


@dataclass
class ToolsResult:
    """Result of a per-tool installation run."""

    step: str | None = None
    report: InstallReport = field(default_factory=InstallReport)
    error: str | None = None
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None and self.report.all_ok

    def to_dict(self) -> dict:
        result: dict = {"step": self.step, "report": self.report.to_dict()}
        if self.error:
            result["error"] = self.error
        return result


def ensure_local_bin(runtime: Runtime) -> None:
    """Create the local bin directory the tool installers write to."""
    local_bin = runtime.step_ctx.bin_dir
    if local_bin.is_dir():
        return
    runtime.console.info(f"Creating directory: {local_bin}")
    try:
        local_bin.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StepError(f"Failed to create directory: {local_bin}") from e


def install_tools(
    name: str | None = None,
    *,
    runtime: Runtime | None = None,
    registry: StepRegistry | None = None,
    guard: PrivilegeGuard | None = None,
) -> ToolsResult:
    """Install one tool, or every registered tool when ``name`` is None.

    Bulk mode honours ``settings.skip_steps``; naming a step installs it
    regardless.
    """
    runtime = runtime or build_runtime()
    registry = registry or default_registry()
    result = ToolsResult(step=name)

    runtime.console.info("Starting local package installation")
    try:
        (guard or PrivilegeGuard(message=_ROOT_MESSAGE)).assert_not_privileged()
        ensure_local_bin(runtime)
        orchestrator = Orchestrator(registry, runtime.step_ctx)
        result.report = orchestrator.run(name, skip=runtime.settings.skip_steps)
    except InstallerError as e:
        logger.info("Tool installation stopped: %s", e)
        runtime.console.error(str(e))
        result.error = str(e)
        result.exit_code = e.exit_code
        return result

    if not result.report.all_ok:
        result.exit_code = 1
    return result
