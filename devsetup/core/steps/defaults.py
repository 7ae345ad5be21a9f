"""
Default step sets.

Order here is the bulk-install order.
"""

from __future__ import annotations

from devsetup.core.engine.registry import StepRegistry
from devsetup.core.steps.channels import HomebrewStep, YayStep
from devsetup.core.steps.local_tools import (
    FzfStep,
    OhMyPoshStep,
    ProtoStep,
    VimPluginsStep,
    ZoxideStep,
)


def default_registry() -> StepRegistry:
    """Per-tool installers run by ``devsetup install``."""
    return StepRegistry([
        FzfStep(),
        VimPluginsStep(),
        OhMyPoshStep(),
        ProtoStep(),
        ZoxideStep(),
    ])


def channel_registry() -> StepRegistry:
    """Package-channel bootstraps used by bulk package installs."""
    return StepRegistry([YayStep(), HomebrewStep()])
