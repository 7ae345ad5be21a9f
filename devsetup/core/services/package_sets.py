"""
Package set resolution — catalog tiers → package-manager command lines.

Resolution is a pure text transform: comments (``#`` to end of line)
and blank entries are dropped, whitespace is collapsed, and the same
input always yields the same string. Plans turn the resolved tiers of
one profile into the ordered invocations for one platform.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from devsetup.core.models.invocation import CommandInvocation
from devsetup.core.models.packages import PackageGroup, PackageProfile

logger = logging.getLogger(__name__)

COMMENT_MARKER = "#"

# Tier names with a meaning beyond "more packages"
SHARED_TIER = "shared"
AUR_TIER = "arch_aur"
CASK_TIER = "macos_cask"

GroupLike = PackageGroup | str | Sequence[str] | None


def _lines(group: GroupLike) -> list[str]:
    if group is None:
        return []
    if isinstance(group, PackageGroup):
        return list(group.members)
    if isinstance(group, str):
        return group.splitlines()
    return list(group)


def resolve_packages(group: GroupLike) -> list[str]:
    """Resolve a group to its package names, in written order."""
    names: list[str] = []
    for line in _lines(group):
        content = line.split(COMMENT_MARKER, 1)[0]
        names.extend(content.split())
    return names


def resolve(group: GroupLike) -> str:
    """Resolve a group to one space-separated package string.

    >>> resolve("foo # comment\\n  bar   baz \\n")
    'foo bar baz'
    """
    return " ".join(resolve_packages(group))


def dedupe(names: Iterable[str]) -> list[str]:
    """Drop repeated names, keeping first occurrences."""
    seen: set[str] = set()
    result = []
    for name in names:
        if name not in seen:
            seen.add(name)
            result.append(name)
    return result


def merge_groups(*groups: GroupLike) -> list[str]:
    """Flatten layered groups (base + platform + extension) into one list."""
    merged: list[str] = []
    for group in groups:
        merged.extend(resolve_packages(group))
    return dedupe(merged)


# ── Install plans ───────────────────────────────────────────────


@dataclass
class PackagePlan:
    """Everything one bulk run will execute, in order."""

    platform: str
    profile: str
    packages: list[str] = field(default_factory=list)
    extra_tiers: dict[str, list[str]] = field(default_factory=dict)
    invocations: list[CommandInvocation] = field(default_factory=list)
    needs_aur_helper: bool = False
    needs_homebrew: bool = False

    @property
    def command_lines(self) -> list[str]:
        return [inv.display for inv in self.invocations]

    def to_dict(self) -> dict:
        return {
            "platform": self.platform,
            "profile": self.profile,
            "packages": self.packages,
            "extra_tiers": self.extra_tiers,
            "needs_aur_helper": self.needs_aur_helper,
            "needs_homebrew": self.needs_homebrew,
            "commands": self.command_lines,
        }


def tier_listing(profile: PackageProfile, platform: str) -> list[tuple[str, str]]:
    """(label, resolved packages) pairs for display, non-empty tiers only."""
    listing = []
    for tier in (SHARED_TIER, platform, *_extension_tiers(platform)):
        resolved = resolve(profile.group(tier))
        if resolved:
            label = "Shared packages" if tier == SHARED_TIER else f"{tier} packages"
            listing.append((label, resolved))
    return listing


def _extension_tiers(platform: str) -> tuple[str, ...]:
    if platform == "arch":
        return (AUR_TIER,)
    if platform == "macos":
        return (CASK_TIER,)
    return ()


def build_package_plan(platform: str, profile: PackageProfile) -> PackagePlan:
    """Build the ordered invocations installing ``profile`` on ``platform``.

    The base command line is shared + platform tiers; extension
    tiers (AUR, casks) get their own invocation through their own
    channel.
    """
    packages = merge_groups(profile.group(SHARED_TIER), profile.group(platform))
    plan = PackagePlan(platform=platform, profile=profile.name, packages=packages)

    for tier in _extension_tiers(platform):
        extra = merge_groups(profile.group(tier))
        if extra:
            plan.extra_tiers[tier] = extra

    invocations: list[CommandInvocation] = []

    if platform == "arch":
        invocations.append(_inv("pacman", "sudo", "pacman", "-Syu", "--noconfirm"))
        if packages:
            invocations.append(
                _inv("pacman", "sudo", "pacman", "-S", "--noconfirm", "--needed", *packages)
            )
        aur = plan.extra_tiers.get(AUR_TIER)
        if aur:
            plan.needs_aur_helper = True
            invocations.append(_inv("yay", "yay", "-S", "--noconfirm", "--needed", *aur))

    elif platform == "ubuntu":
        invocations.append(_inv("apt", "sudo", "apt-get", "update"))
        if profile.upgrade:
            invocations.append(_inv("apt", "sudo", "apt-get", "upgrade", "-y"))
        if packages:
            invocations.append(_inv("apt", "sudo", "apt-get", "install", "-y", *packages))

    elif platform == "macos":
        plan.needs_homebrew = True
        invocations.append(_inv("brew", "brew", "update"))
        if profile.upgrade:
            invocations.append(_inv("brew", "brew", "upgrade"))
        if packages:
            invocations.append(_inv("brew", "brew", "install", *packages))
        casks = plan.extra_tiers.get(CASK_TIER)
        if casks:
            invocations.append(_inv("brew", "brew", "install", "--cask", *casks))

    else:
        raise ValueError(f"No package plan for platform: {platform}")

    plan.invocations = invocations
    logger.debug("Plan for %s/%s: %d invocations", platform, profile.name, len(invocations))
    return plan


def _inv(prefix: str, *argv: str) -> CommandInvocation:
    return CommandInvocation(prefix=prefix, argv=argv)
