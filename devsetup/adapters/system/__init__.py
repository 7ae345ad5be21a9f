"""
System adapters — platform, privileges, login shell.

Public re-exports for convenient access.
"""

from devsetup.adapters.system.os_detect import Platform, PlatformDetector
from devsetup.adapters.system.privilege import PrivilegeGuard
from devsetup.adapters.system.shell import ShellChange, ShellSwitcher

__all__ = [
    "Platform",
    "PlatformDetector",
    "PrivilegeGuard",
    "ShellChange",
    "ShellSwitcher",
]
