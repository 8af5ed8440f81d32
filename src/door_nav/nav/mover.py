# turn planned waypoints into movement targets
# src/door_nav/nav/mover.py
"""
Mover helpers: shape a planned route for execution.

The planner emits one waypoint per cell. Walking cell by cell works but
floods the world with move requests, so compress_route() keeps only:
  - the origin and the final waypoint
  - tagged waypoints and the approach cell right before each of them
  - waypoints matched by `pinned` (and the cell before them)
  - cells where direction or height changes

It does NOT talk to the world; ExecutionLoop does that.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple

from ..obstacles import Facing
from ..position import Position
from .pathfinder import Waypoint


def travel_direction(waypoint: Waypoint) -> Facing:
    """Direction of travel through a tagged waypoint's barrier."""
    if waypoint.approach is None:
        raise ValueError("waypoint has no approach cell")
    dx = waypoint.position.x - waypoint.approach.x
    dz = waypoint.position.z - waypoint.approach.z
    return Facing.from_step(dx, dz)


def _step(a: Position, b: Position) -> Tuple[int, int, int]:
    return (b.x - a.x, b.y - a.y, b.z - a.z)


def compress_route(
    waypoints: List[Waypoint],
    pinned: Optional[Callable[[Waypoint], bool]] = None,
) -> List[Waypoint]:
    if len(waypoints) <= 2:
        return list(waypoints)

    keep = [False] * len(waypoints)
    keep[0] = keep[-1] = True
    for i, wp in enumerate(waypoints):
        if wp.needs_interaction or (pinned is not None and pinned(wp)):
            keep[i] = True
            keep[max(i - 1, 0)] = True

    previous_step: Optional[Tuple[int, int, int]] = None
    for i in range(1, len(waypoints)):
        step = _step(waypoints[i - 1].position, waypoints[i].position)
        if step[1] != 0 or (previous_step is not None and step != previous_step):
            keep[i - 1] = True
        previous_step = step

    return [wp for wp, k in zip(waypoints, keep) if k]


def current_position(world_position: object) -> Position:
    """Floor whatever the world reports onto the block grid."""
    return Position.of(world_position)


__all__ = ["travel_direction", "compress_route", "current_position"]
