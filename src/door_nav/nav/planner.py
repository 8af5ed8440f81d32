# cost-augmented route planning
# src/door_nav/nav/planner.py
"""
PathPlanner: the contract the ExecutionLoop plans against.

    plan(origin, destination, tolerance) -> Route
    raises PlanningFailure when no route exists within the search budget
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event

from ..errors import PlanningFailure
from ..obstacles import ObstacleId
from ..position import Position
from ..registry import ObstacleRegistry
from .grid import BlockSolidFn, NavGrid
from .pathfinder import Waypoint, find_path

log = logging.getLogger(__name__)


@dataclass
class PlannerConfig:
    base_cost: float = 1.0
    interaction_penalty: float = 2.0
    max_steps: int = 4096
    max_step_height: int = 1
    max_fall_height: int = 4


@dataclass
class Route:
    waypoints: List[Waypoint]
    cost: float
    expanded: int

    @property
    def tagged(self) -> List[ObstacleId]:
        return [wp.obstacle_id for wp in self.waypoints if wp.obstacle_id is not None]

    def __len__(self) -> int:
        return len(self.waypoints)


class PathPlanner:
    def __init__(
        self,
        registry: ObstacleRegistry,
        is_solid_block: BlockSolidFn,
        config: Optional[PlannerConfig] = None,
        *,
        bus: Optional[EventBus] = None,
    ) -> None:
        self._cfg = config or PlannerConfig()
        self._bus = bus
        self._grid = NavGrid(
            is_solid_block=is_solid_block,
            registry=registry,
            base_cost=self._cfg.base_cost,
            interaction_penalty=self._cfg.interaction_penalty,
            max_fall_height=self._cfg.max_fall_height,
            max_step_height=self._cfg.max_step_height,
        )

    @property
    def grid(self) -> NavGrid:
        return self._grid

    def plan(
        self,
        origin: Any,
        destination: Any,
        tolerance: float = 0.0,
        *,
        correlation_id: Optional[str] = None,
    ) -> Route:
        start = Position.of(origin)
        goal = Position.of(destination)

        result = find_path(
            self._grid,
            start,
            goal,
            tolerance=tolerance,
            max_steps=self._cfg.max_steps,
        )

        if not result.success:
            details = {
                "origin": list(start),
                "destination": list(goal),
                "expanded": result.expanded,
            }
            log.info("No route %s -> %s (%s)", start, goal, result.reason)
            log_event(
                bus=self._bus,
                module="door_nav.nav.planner",
                event_type=EventType.PLANNING_FAILED,
                message=f"No route from {start} to {goal}",
                payload={"reason": result.reason, **details},
                correlation_id=correlation_id,
            )
            raise PlanningFailure(code=result.reason or "no_path_found", details=details)

        route = Route(waypoints=result.waypoints, cost=result.cost, expanded=result.expanded)
        log.debug(
            "Route %s -> %s: %d waypoints, cost %.1f, %d barrier(s), %d expanded",
            start,
            goal,
            len(route),
            route.cost,
            len(route.tagged),
            route.expanded,
        )
        log_event(
            bus=self._bus,
            module="door_nav.nav.planner",
            event_type=EventType.ROUTE_PLANNED,
            message=f"Route planned from {start} to {goal}",
            payload={
                "waypoints": len(route),
                "cost": route.cost,
                "tagged": route.tagged,
            },
            correlation_id=correlation_id,
        )
        return route


__all__ = ["PlannerConfig", "Route", "PathPlanner"]
