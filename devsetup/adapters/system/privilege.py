"""
Privilege guard — refuse to run as root.

Packages install into the invoking user's home and ``sudo`` is used
per command where needed; running the whole installer as root would
put everything in the wrong home.
"""

from __future__ import annotations

import os
from collections.abc import Callable

from devsetup.core.errors import RunningAsPrivilegedUser


def _effective_uid() -> int:
    geteuid = getattr(os, "geteuid", None)
    return geteuid() if geteuid is not None else -1


class PrivilegeGuard:
    """Check the effective user before any installation starts."""

    def __init__(
        self,
        geteuid: Callable[[], int] = _effective_uid,
        message: str = "Do not run as root",
    ) -> None:
        self._geteuid = geteuid
        self.message = message

    def is_privileged(self) -> bool:
        return self._geteuid() == 0

    def assert_not_privileged(self) -> None:
        if self.is_privileged():
            raise RunningAsPrivilegedUser(self.message)
