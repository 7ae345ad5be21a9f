"""
Installation orchestrator — drives the step registry.

Flow per step:
    lookup → is_installed? → skip | install → receipt

In bulk mode every registered step is attempted even when earlier
ones fail; per-step failures become receipts. ``UserInterrupted`` is
a ``KeyboardInterrupt`` and always ends the whole run.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field

from devsetup.core.engine.registry import StepRegistry
from devsetup.core.errors import CommandFailed, StepError, UnknownStep
from devsetup.core.models.receipt import Receipt
from devsetup.core.steps.base import Step, StepContext
from devsetup.ui.console import Console

logger = logging.getLogger(__name__)


@dataclass
class InstallReport:
    """Aggregated receipts of one orchestration run."""

    receipts: list[Receipt] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.receipts)

    @property
    def succeeded(self) -> set[str]:
        """Steps that ended satisfied, including already-installed ones."""
        return {r.step for r in self.receipts if r.ok}

    @property
    def skipped(self) -> set[str]:
        return {r.step for r in self.receipts if r.status == "present"}

    @property
    def failed(self) -> set[str]:
        return {r.step for r in self.receipts if r.failed}

    @property
    def all_ok(self) -> bool:
        return not self.failed

    @property
    def status(self) -> str:
        if not self.failed:
            return "ok"
        if self.succeeded:
            return "partial"
        return "failed"

    def get(self, step: str) -> Receipt | None:
        for receipt in self.receipts:
            if receipt.step == step:
                return receipt
        return None

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "total": self.total,
            "succeeded": sorted(self.succeeded),
            "skipped": sorted(self.skipped),
            "failed": sorted(self.failed),
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


class Orchestrator:
    """Resolve, check, and run installation steps."""

    def __init__(
        self,
        registry: StepRegistry,
        ctx: StepContext,
        console: Console | None = None,
    ) -> None:
        self.registry = registry
        self.ctx = ctx
        self.console = console or ctx.console

    # ── Queries ─────────────────────────────────────────────────

    def list_steps(self) -> list[str]:
        return self.registry.list_steps()

    def _lookup(self, name: str) -> Step:
        step = self.registry.get(name)
        if step is None:
            raise UnknownStep(name)
        return step

    def is_installed(self, name: str) -> bool:
        """Pure query: is step ``name`` already satisfied?"""
        return self._lookup(name).is_installed(self.ctx)

    # ── Execution ───────────────────────────────────────────────

    def install(self, name: str) -> Receipt:
        """Install one step unless it is already satisfied.

        Raises:
            UnknownStep: If ``name`` is not registered (nothing runs).
        """
        step = self._lookup(name)
        start = time.monotonic()

        try:
            if step.is_installed(self.ctx):
                self.console.success(f"{name} is already installed")
                return Receipt.skip(name)

            self.console.info(f"Installing {name}")
            outcome = step.install(self.ctx)
            if outcome is not None:
                outcome.raise_for_status()
        except CommandFailed as e:
            receipt = Receipt.failure(
                name,
                error=str(e),
                metadata={"exit_code": e.command_exit_code, "prefix": e.outcome.prefix},
            )
        except StepError as e:
            receipt = Receipt.failure(name, error=str(e))
        except Exception as e:
            # Steps should only raise the two kinds above
            logger.exception("Step %s raised unexpectedly", name)
            receipt = Receipt.failure(name, error=f"Unexpected error: {e}")
        else:
            receipt = Receipt.success(name)

        receipt.duration_ms = int((time.monotonic() - start) * 1000)

        if receipt.failed:
            logger.warning("Step %s failed: %s", name, receipt.error)
            self.console.error(f"Failed to install {name}")
        else:
            self.console.success(f"{name} installed successfully")
        return receipt

    def install_all(self, skip: Iterable[str] = ()) -> InstallReport:
        """Attempt every registered step; one failure never stops the rest."""
        skipped_by_config = set(skip)
        report = InstallReport()

        for name in self.registry.list_steps():
            if name in skipped_by_config:
                logger.info("Skipping %s (disabled in config)", name)
                continue
            report.receipts.append(self.install(name))

        if report.all_ok:
            self.console.success("All packages installed successfully")
        else:
            self.console.error(f"{len(report.failed)} package(s) failed to install")
        return report

    def run(self, name: str | None = None, skip: Iterable[str] = ()) -> InstallReport:
        """Bulk mode when ``name`` is None, otherwise single-step mode."""
        if name is None:
            self.console.info("Installing all packages")
            return self.install_all(skip=skip)
        return InstallReport(receipts=[self.install(name)])
