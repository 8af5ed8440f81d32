# door_nav package
# src/door_nav/__init__.py
"""
door_nav: obstacle-aware navigation core for voxel-world agents.

Exports the value types and components. The fully wired facade lives in
door_nav.core (DoorNavigator), which also pulls in the env config layer.
"""

from __future__ import annotations

from .errors import (
    InteractionFailure,
    MalformedObstacleDescriptor,
    MovementTimeout,
    NavError,
    PlanningFailure,
    RegistryInconsistency,
)
from .execution import ExecutionConfig, ExecutionLoop, NavigationOutcome, NavigationStatus
from .interaction import AssumedOpenPolicy, InteractionConfig, InteractionController, InteractionState
from .obstacles import Facing, Obstacle, ObstacleKind
from .position import Position
from .registry import ObstacleRegistry

__all__ = [
    "NavError",
    "PlanningFailure",
    "MovementTimeout",
    "InteractionFailure",
    "RegistryInconsistency",
    "MalformedObstacleDescriptor",
    "ExecutionConfig",
    "ExecutionLoop",
    "NavigationOutcome",
    "NavigationStatus",
    "AssumedOpenPolicy",
    "InteractionConfig",
    "InteractionController",
    "InteractionState",
    "Facing",
    "Obstacle",
    "ObstacleKind",
    "Position",
    "ObstacleRegistry",
]
