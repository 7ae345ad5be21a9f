"""
Step registry — name → step lookup.

Registration order is preserved and is the order bulk installs run
in, so repeated runs produce repeatable logs. Adding a step means
registering a new ``Step`` implementation, never editing a dispatch
table.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from devsetup.core.steps.base import Step

logger = logging.getLogger(__name__)


class StepRegistry:
    """Central registry of installation steps."""

    def __init__(self, steps: list[Step] | None = None) -> None:
        self._steps: dict[str, Step] = {}
        for step in steps or []:
            self.register(step)

    def register(self, step: Step) -> None:
        """Register a step under its name.

        Raises:
            ValueError: If the name is empty or already taken.
        """
        if not step.name:
            raise ValueError(f"Step {step!r} has no name")
        if step.name in self._steps:
            raise ValueError(f"Step already registered: {step.name}")
        self._steps[step.name] = step
        logger.debug("Registered step: %s", step.name)

    def unregister(self, name: str) -> None:
        """Remove a step. No-op if not registered."""
        self._steps.pop(name, None)

    def get(self, name: str) -> Step | None:
        """Look up a step by name."""
        return self._steps.get(name)

    def list_steps(self) -> list[str]:
        """All registered step names, in registration order."""
        return list(self._steps.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._steps

    def __iter__(self) -> Iterator[Step]:
        return iter(list(self._steps.values()))

    def __len__(self) -> int:
        return len(self._steps)
