# A* search over NavGrid producing tagged waypoints
# src/door_nav/nav/pathfinder.py
"""
A* pathfinding over NavGrid.

- Horizontal Manhattan distance heuristic (scaled by base cost).
- Edge costs come from the grid, so barrier hops carry their penalty.
- max_steps guard: the search never expands more than max_steps nodes.
- A goal is reached when a node lies within `tolerance` of it.
"""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..obstacles import ObstacleId
from ..position import Position
from .grid import Edge, NavGrid


@dataclass(frozen=True)
class Waypoint:
    """
    One step in a planned route.

    A tagged waypoint (obstacle_id set) is the far side of a closed
    barrier; `approach` is the cell the crossing starts from.
    """

    position: Position
    obstacle_id: Optional[ObstacleId] = None
    approach: Optional[Position] = None

    @property
    def needs_interaction(self) -> bool:
        return self.obstacle_id is not None


@dataclass
class PathfindingResult:
    """Structured result for a pathfinding attempt."""

    waypoints: List[Waypoint]
    success: bool
    reason: str | None = None
    cost: float = 0.0
    expanded: int = 0

    @property
    def path(self) -> List[Position]:
        return [wp.position for wp in self.waypoints]

    @property
    def tagged(self) -> List[ObstacleId]:
        return [wp.obstacle_id for wp in self.waypoints if wp.obstacle_id is not None]


def _heuristic(a: Position, b: Position, unit: float) -> float:
    return (abs(a.x - b.x) + abs(a.z - b.z)) * unit


def find_path(
    grid: NavGrid,
    start: Position,
    goal: Position,
    *,
    tolerance: float = 0.0,
    max_steps: int = 4096,
) -> PathfindingResult:
    """
    A* search for a route from start to goal on NavGrid.

    Returns a PathfindingResult with:
      - waypoints: start first; empty on failure
      - success: bool
      - reason: "no_path_found" or "max_steps_exhausted" on failure

    This function does not talk to the world or mutate the registry.
    """
    if start == goal or start.distance_to(goal) <= tolerance:
        return PathfindingResult(waypoints=[Waypoint(start)], success=True)

    counter = itertools.count()
    open_heap: List[Tuple[float, int, Position]] = []
    heapq.heappush(open_heap, (0.0, next(counter), start))

    came_from: Dict[Position, Tuple[Position, Edge]] = {}
    g_score: Dict[Position, float] = {start: 0.0}
    closed: set = set()

    expanded = 0
    while open_heap and expanded < max_steps:
        _, _, current = heapq.heappop(open_heap)
        if current in closed:
            continue
        closed.add(current)
        expanded += 1

        if current == goal or current.distance_to(goal) <= tolerance:
            return PathfindingResult(
                waypoints=_reconstruct(came_from, current),
                success=True,
                cost=g_score[current],
                expanded=expanded,
            )

        for edge in grid.edges(current):
            if edge.target in closed:
                continue
            tentative_g = g_score[current] + edge.cost
            if tentative_g < g_score.get(edge.target, float("inf")):
                came_from[edge.target] = (current, edge)
                g_score[edge.target] = tentative_g
                f_score = tentative_g + _heuristic(edge.target, goal, grid.base_cost)
                heapq.heappush(open_heap, (f_score, next(counter), edge.target))

    # No path found or max_steps exhausted
    reason = "max_steps_exhausted" if open_heap else "no_path_found"
    return PathfindingResult(waypoints=[], success=False, reason=reason, expanded=expanded)


def _reconstruct(
    came_from: Dict[Position, Tuple[Position, Edge]],
    current: Position,
) -> List[Waypoint]:
    """Rebuild the waypoint list, carrying interaction tags from the edges."""
    waypoints: List[Waypoint] = []
    while current in came_from:
        previous, edge = came_from[current]
        waypoints.append(
            Waypoint(position=current, obstacle_id=edge.obstacle_id, approach=edge.approach)
        )
        current = previous
    waypoints.append(Waypoint(position=current))
    waypoints.reverse()
    return waypoints


__all__ = ["Waypoint", "PathfindingResult", "find_path"]
