# end-to-end navigation request orchestration
# src/door_nav/execution.py
"""
ExecutionLoop: plan -> walk -> delegate barriers -> resume or fail.

One NavigationRequest is active at a time. A new go_to() supersedes the
in-flight request: its TimerGroup, its interaction session and any
pending move are cancelled before the new request starts, and the
superseded caller gets a Cancelled outcome.

Recoverable failures (MovementTimeout, RegistryInconsistency,
InteractionFailure) trigger at most max_replans fresh plans per request.
A blocked barrier is skipped by the planner on the replan. Anything else
ends the request as Failed; nothing escapes go_to() except cancellation
of the caller itself.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event

from .discovery import ObstacleScanner
from .errors import (
    InteractionFailure,
    MovementTimeout,
    NavError,
    RegistryInconsistency,
)
from .interaction import InteractionController, InteractionOutcome
from .nav import PathPlanner, Route, Waypoint, compress_route, current_position, travel_direction
from .obstacles import Facing, ObstacleId, descriptor_is_open
from .position import Position
from .registry import ObstacleRegistry
from .timers import TimerGroup
from .trail import PositionTrail, TrailConfig
from .world import WorldApi, request_move

log = logging.getLogger(__name__)

_MODULE = "door_nav.execution"

# Failures that earn the request a fresh plan (once).
_REPLANNABLE = (MovementTimeout, RegistryInconsistency, InteractionFailure)


class NavigationStatus(Enum):
    PENDING = "pending"
    PLANNING = "planning"
    WALKING = "walking"
    INTERACTING = "interacting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (
            NavigationStatus.SUCCEEDED,
            NavigationStatus.FAILED,
            NavigationStatus.CANCELLED,
        )


@dataclass
class ExecutionConfig:
    move_timeout_s: float = 10.0
    move_tolerance: float = 0.5
    max_replans: int = 1
    scan_before_plan: bool = True
    trail: TrailConfig = field(default_factory=TrailConfig)


@dataclass
class NavigationRequest:
    id: str
    origin: Position
    destination: Position
    tolerance: float
    created_at: float
    status: NavigationStatus = NavigationStatus.PENDING
    current_obstacle: Optional[ObstacleId] = None
    replans: int = 0
    errors: List[NavError] = field(default_factory=list)
    timers: TimerGroup = field(default_factory=TimerGroup, repr=False)
    cancel_requested: bool = False


@dataclass
class NavigationOutcome:
    request_id: str
    status: NavigationStatus
    position: Optional[Position]
    replans: int = 0
    errors: List[NavError] = field(default_factory=list)
    interactions: List[InteractionOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status is NavigationStatus.SUCCEEDED

    @property
    def error(self) -> Optional[NavError]:
        """The error that ended the request, if any."""
        if self.status is NavigationStatus.FAILED and self.errors:
            return self.errors[-1]
        return None


class ExecutionLoop:
    def __init__(
        self,
        world: WorldApi,
        registry: ObstacleRegistry,
        planner: PathPlanner,
        controller: InteractionController,
        scanner: Optional[ObstacleScanner] = None,
        config: Optional[ExecutionConfig] = None,
        *,
        bus: Optional[EventBus] = None,
    ) -> None:
        self._world = world
        self._registry = registry
        self._planner = planner
        self._controller = controller
        self._scanner = scanner
        self._cfg = config or ExecutionConfig()
        self._bus = bus

        self._trail = PositionTrail(self._cfg.trail)
        self._request: Optional[NavigationRequest] = None
        self._task: Optional[asyncio.Task] = None
        self._ids = itertools.count(1)

    @property
    def request(self) -> Optional[NavigationRequest]:
        return self._request

    @property
    def trail(self) -> PositionTrail:
        return self._trail

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def go_to(self, destination: Any, tolerance: float = 1.0) -> NavigationOutcome:
        """
        Navigate to destination. Supersedes any in-flight request.

        Always returns an outcome for this request; Cancelled if a later
        go_to() or cancel() stopped it.
        """
        goal = Position.of(destination)
        await self._supersede()

        # A new destination starts a fresh attempt budget; blocks persist.
        self._registry.reset_attempts()

        request_id = f"nav-{next(self._ids)}"
        request = NavigationRequest(
            id=request_id,
            origin=current_position(self._world.position()),
            destination=goal,
            tolerance=tolerance,
            created_at=self._registry.now(),
            timers=TimerGroup(name=request_id),
        )
        self._request = request
        log.info("Navigation %s: %s -> %s (tolerance %.1f)", request.id, request.origin, goal, tolerance)

        task = asyncio.ensure_future(self._run(request))
        self._task = task
        try:
            return await task
        finally:
            if self._task is task:
                self._task = None

    def cancel(self) -> bool:
        """Stop the in-flight request. Returns False if nothing was running."""
        task, request = self._task, self._request
        if task is None or task.done() or request is None:
            return False
        self._cancel_request(request)
        task.cancel()
        return True

    def status(self) -> Dict[str, Any]:
        """Snapshot for callers and dashboards."""
        request = self._request
        trail = [list(pos) for pos in self._trail.positions()]
        if request is None:
            return {"state": "idle", "current_obstacle": None, "attempts": None, "trail": trail}

        obstacle = self._registry.get(request.current_obstacle) if request.current_obstacle else None
        session = self._controller.session
        return {
            "request_id": request.id,
            "state": request.status.value,
            "destination": list(request.destination),
            "current_obstacle": request.current_obstacle,
            "obstacle_label": obstacle.label if obstacle is not None else None,
            "interaction_state": session.state.value if session is not None else None,
            "attempts": obstacle.attempts if obstacle is not None else None,
            "replans": request.replans,
            "last_error": str(request.errors[-1]) if request.errors else None,
            "trail": trail,
        }

    # ------------------------------------------------------------------
    # Request lifecycle
    # ------------------------------------------------------------------

    async def _supersede(self) -> None:
        task, request = self._task, self._request
        if task is None or task.done() or request is None:
            return
        log.info("Superseding navigation %s (%s)", request.id, request.status.value)
        self._cancel_request(request)
        task.cancel()
        await asyncio.wait([task])

    def _cancel_request(self, request: NavigationRequest) -> None:
        request.cancel_requested = True
        self._controller.cancel()
        request.timers.cancel_all()

    async def _run(self, request: NavigationRequest) -> NavigationOutcome:
        interactions: List[InteractionOutcome] = []
        try:
            await self._navigate(request, interactions)
            self._set_status(request, NavigationStatus.SUCCEEDED)
        except asyncio.CancelledError:
            self._set_status(request, NavigationStatus.CANCELLED)
            if not request.cancel_requested:
                raise
        except NavError as exc:
            log.warning("Navigation %s failed: %s", request.id, exc)
            request.errors.append(exc)
            self._set_status(request, NavigationStatus.FAILED)
        except Exception as exc:
            log.exception("Navigation %s raised an unexpected error", request.id)
            request.errors.append(
                NavError(code="execution_exception", details={"exception": repr(exc)})
            )
            self._set_status(request, NavigationStatus.FAILED)
        finally:
            request.timers.cancel_all()
            request.current_obstacle = None

        return NavigationOutcome(
            request_id=request.id,
            status=request.status,
            position=self._position_or_none(),
            replans=request.replans,
            errors=list(request.errors),
            interactions=interactions,
        )

    async def _navigate(
        self,
        request: NavigationRequest,
        interactions: List[InteractionOutcome],
    ) -> None:
        while True:
            route = self._plan(request)
            try:
                await self._walk(request, route, interactions)
                self._check_arrival(request)
                return
            except _REPLANNABLE as exc:
                if request.replans >= self._cfg.max_replans:
                    raise
                request.replans += 1
                request.errors.append(exc)
                log.warning("Navigation %s replanning (%d) after %s", request.id, request.replans, exc)
                log_event(
                    bus=self._bus,
                    module=_MODULE,
                    event_type=EventType.REPLAN,
                    message=f"Replanning {request.id} after {exc.code}",
                    payload={"request_id": request.id, "replans": request.replans, "code": exc.code},
                    correlation_id=request.id,
                )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _plan(self, request: NavigationRequest) -> Route:
        self._set_status(request, NavigationStatus.PLANNING)
        here = self._note_position()
        if self._scanner is not None and self._cfg.scan_before_plan:
            self._scanner.scan(here)
        return self._planner.plan(
            here,
            request.destination,
            request.tolerance,
            correlation_id=request.id,
        )

    async def _walk(
        self,
        request: NavigationRequest,
        route: Route,
        interactions: List[InteractionOutcome],
    ) -> None:
        waypoints = compress_route(route.waypoints, pinned=self._is_barrier_cell)
        last = len(waypoints) - 1
        for index in range(1, len(waypoints)):
            waypoint = waypoints[index]
            if waypoint.needs_interaction:
                await self._cross(request, waypoint.obstacle_id, travel_direction(waypoint), interactions)
                continue

            # Barrier planned as open: still goes through the controller so
            # a stale assumption is caught at the door, not by walking into it.
            barrier = self._registry.get_at(waypoint.position)
            if barrier is not None and index < last:
                previous = waypoints[index - 1].position
                travel = Facing.from_step(
                    waypoint.position.x - previous.x,
                    waypoint.position.z - previous.z,
                )
                await self._cross(request, barrier.id, travel, interactions)
                continue

            await self._move(request, waypoint)

    async def _move(self, request: NavigationRequest, waypoint: Waypoint) -> None:
        self._set_status(request, NavigationStatus.WALKING)
        await request_move(
            self._world,
            request.timers,
            waypoint.position,
            tolerance=self._cfg.move_tolerance,
            timeout=self._cfg.move_timeout_s,
        )
        here = self._note_position()
        log_event(
            bus=self._bus,
            module=_MODULE,
            event_type=EventType.WAYPOINT_REACHED,
            message=f"Reached {waypoint.position}",
            payload={"request_id": request.id, "position": list(here)},
            correlation_id=request.id,
        )

    async def _cross(
        self,
        request: NavigationRequest,
        oid: ObstacleId,
        travel: Facing,
        interactions: List[InteractionOutcome],
    ) -> None:
        request.current_obstacle = oid
        self._set_status(request, NavigationStatus.INTERACTING)
        outcome = await self._controller.cross(oid, travel, correlation_id=request.id)
        interactions.append(outcome)
        request.current_obstacle = None
        self._note_position()

        if outcome.passed:
            return
        error = outcome.error or InteractionFailure(
            code="interaction_failed",
            details={"obstacle_id": oid, "state": outcome.state.value},
        )
        if isinstance(error, MovementTimeout) and outcome.skipped_interaction:
            # Walked at a barrier we believed open and bounced off it.
            self._reconcile(oid)
        raise error

    def _check_arrival(self, request: NavigationRequest) -> None:
        here = current_position(self._world.position())
        distance = here.distance_to(request.destination)
        if distance > request.tolerance:
            raise MovementTimeout(
                code="destination_not_reached",
                details={"position": list(here), "distance": distance},
            )
        log.info("Navigation %s arrived at %s", request.id, here)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _is_barrier_cell(self, waypoint: Waypoint) -> bool:
        return self._registry.get_at(waypoint.position) is not None

    def _reconcile(self, oid: ObstacleId) -> None:
        obstacle = self._registry.get(oid)
        if obstacle is None:
            return
        self._registry.clear_assumed_open(oid)
        descriptor = self._world.describe(obstacle.position)
        if descriptor is None:
            self._registry.evict(oid, reason="not_describable")
            return
        self._registry.update_state(oid, descriptor_is_open(descriptor))

    def _note_position(self) -> Position:
        here = current_position(self._world.position())
        self._trail.record(here, self._registry.now())
        self._trail.prune(here)
        return here

    def _position_or_none(self) -> Optional[Position]:
        try:
            return current_position(self._world.position())
        except ValueError:
            return None

    def _set_status(self, request: NavigationRequest, status: NavigationStatus) -> None:
        if request.status is status:
            return
        previous = request.status
        request.status = status
        log.debug("Navigation %s: %s -> %s", request.id, previous.value, status.value)
        log_event(
            bus=self._bus,
            module=_MODULE,
            event_type=EventType.NAVIGATION_STATUS,
            message=f"{request.id}: {status.value}",
            payload={
                "request_id": request.id,
                "status": status.value,
                "previous": previous.value,
                "current_obstacle": request.current_obstacle,
            },
            correlation_id=request.id,
        )


__all__ = [
    "NavigationStatus",
    "ExecutionConfig",
    "NavigationRequest",
    "NavigationOutcome",
    "ExecutionLoop",
]
