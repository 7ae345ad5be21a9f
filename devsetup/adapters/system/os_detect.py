"""
Platform detection — which package-manager family this host uses.

Read-only probe. The core only uses the result to pick the package
tier and the plan shape; anything outside the closed set is refused.
"""

from __future__ import annotations

import logging
import sys
from enum import StrEnum
from pathlib import Path

from devsetup.core.errors import UnsupportedPlatform

logger = logging.getLogger(__name__)

OS_RELEASE = Path("/etc/os-release")


class Platform(StrEnum):
    """Supported platforms."""

    ARCH = "arch"
    UBUNTU = "ubuntu"
    MACOS = "macos"


# Distro IDs (os-release ``ID=``) mapped to platforms
_DISTRO_IDS = {
    "arch": Platform.ARCH,
    "ubuntu": Platform.UBUNTU,
}


def parse_os_release(text: str) -> dict[str, str]:
    """Parse os-release ``KEY=value`` lines, unquoting values."""
    fields: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        fields[key.strip()] = value.strip().strip('"').strip("'")
    return fields


class PlatformDetector:
    """Detect the host platform.

    Args:
        system: Override for ``sys.platform`` (tests).
        os_release: Path of the os-release file to read on Linux.
    """

    def __init__(self, system: str | None = None, os_release: Path = OS_RELEASE) -> None:
        self.system = system
        self.os_release = os_release

    def detect(self) -> Platform:
        """Return the platform, or raise ``UnsupportedPlatform``."""
        system = self.system or sys.platform
        if system.startswith("darwin"):
            return Platform.MACOS

        try:
            fields = parse_os_release(self.os_release.read_text(encoding="utf-8"))
        except OSError as e:
            logger.debug("Cannot read %s: %s", self.os_release, e)
            raise UnsupportedPlatform(f"{system} (cannot detect OS)") from e

        distro = fields.get("ID", "")
        platform = _DISTRO_IDS.get(distro)
        if platform is None:
            raise UnsupportedPlatform(distro or "unknown")
        logger.debug("Detected platform %s from %s", platform, self.os_release)
        return platform
