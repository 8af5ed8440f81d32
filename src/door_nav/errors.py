# domain errors for the navigation core
# src/door_nav/errors.py
"""
Error taxonomy for door_nav.

All of these are recoverable at the ExecutionLoop boundary. The loop
converts them into a Failed NavigationOutcome; only the caller decides
whether to retry and with which destination.

Shape follows a simple code + details convention so that monitoring
payloads stay JSON-safe.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(eq=False)
class NavError(RuntimeError):
    """
    Base class for navigation failures.

    code:
        short machine-readable reason, e.g. "no_path_found"
    details:
        JSON-safe context for logs and monitoring events
    """

    code: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, details={self.details!r})"


class PlanningFailure(NavError):
    """No route within the search budget."""


class MovementTimeout(NavError):
    """A requested move did not complete (timed out or was refused)."""


class InteractionFailure(NavError):
    """A barrier did not open after the maximum number of attempts."""


class RegistryInconsistency(NavError):
    """A registered obstacle is no longer describable by the world."""


class MalformedObstacleDescriptor(NavError):
    """The world described an obstacle we cannot model (e.g. no facing)."""


__all__ = [
    "NavError",
    "PlanningFailure",
    "MovementTimeout",
    "InteractionFailure",
    "RegistryInconsistency",
    "MalformedObstacleDescriptor",
]
