# src/door_nav/nav/__init__.py
"""
Navigation subsystem for door_nav.

Provides:
- NavGrid: walkability + barrier-aware edges
- find_path: budgeted A* producing tagged waypoints
- PathPlanner: plan(origin, destination) -> Route | PlanningFailure
- compress_route / travel_direction: shaping routes for execution
"""

from __future__ import annotations

from .grid import BlockSolidFn, Edge, NavGrid
from .pathfinder import PathfindingResult, Waypoint, find_path
from .planner import PathPlanner, PlannerConfig, Route
from .mover import compress_route, current_position, travel_direction

__all__ = [
    "BlockSolidFn",
    "Edge",
    "NavGrid",
    "PathfindingResult",
    "Waypoint",
    "find_path",
    "PathPlanner",
    "PlannerConfig",
    "Route",
    "compress_route",
    "current_position",
    "travel_direction",
]
