# bounded-retry state machine for crossing one barrier
# src/door_nav/interaction.py
"""
InteractionController: approach, toggle, verify and pass one barrier.

State machine per InteractionSession:

    APPROACHING -> AT_OBSTACLE -> INTERACTING -> VERIFYING
    VERIFYING   -> PASSED | RETRY
    RETRY       -> INTERACTING | FAILED

Every wait (movement, verification polls, retry cooldown) is owned by
the session's TimerGroup and has a hard bound. The group is cancelled on
every terminal transition and by cancel(), so nothing from a finished or
superseded session can fire later.

Failure modes surface as NavError subclasses on the outcome:
    MovementTimeout        approach or pass-through move failed
    InteractionFailure     no flip after max attempts; barrier blocked
    RegistryInconsistency  barrier vanished mid-session; record evicted
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event

from .errors import InteractionFailure, NavError, RegistryInconsistency
from .obstacles import (
    Facing,
    Obstacle,
    ObstacleId,
    descriptor_is_open,
    pass_through_position,
    standoff_position,
)
from .registry import ObstacleRegistry
from .timers import TimerGroup
from .world import WorldApi, request_move

log = logging.getLogger(__name__)

_MODULE = "door_nav.interaction"


class AssumedOpenPolicy(Enum):
    """What to do when a barrier is only *assumed* open on arrival."""

    TRUST_UNTIL_TTL = "trust_until_ttl"
    VERIFY_ON_ARRIVAL = "verify_on_arrival"


class InteractionState(Enum):
    APPROACHING = "approaching"
    AT_OBSTACLE = "at_obstacle"
    INTERACTING = "interacting"
    VERIFYING = "verifying"
    RETRY = "retry"
    PASSED = "passed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (InteractionState.PASSED, InteractionState.FAILED)


@dataclass
class InteractionConfig:
    max_attempts: int = 3
    verify_polls: int = 10
    verify_interval_s: float = 0.1
    cooldown_s: float = 0.5
    approach_timeout_s: float = 10.0
    pass_timeout_s: float = 5.0
    toggle_timeout_s: float = 2.0
    move_tolerance: float = 0.5
    assumed_open_policy: AssumedOpenPolicy = AssumedOpenPolicy.TRUST_UNTIL_TTL


@dataclass
class InteractionSession:
    """Transient state for one barrier crossing."""

    obstacle_id: ObstacleId
    travel: Facing
    state: InteractionState = InteractionState.APPROACHING
    attempts: int = 0
    cooldown_until: Optional[float] = None
    timers: TimerGroup = field(default_factory=TimerGroup)
    history: List[InteractionState] = field(default_factory=list)
    skipped_interaction: bool = False
    error: Optional[NavError] = None


@dataclass
class InteractionOutcome:
    obstacle_id: ObstacleId
    passed: bool
    state: InteractionState
    attempts: int
    skipped_interaction: bool
    history: List[InteractionState]
    error: Optional[NavError] = None


class InteractionController:
    def __init__(
        self,
        world: WorldApi,
        registry: ObstacleRegistry,
        config: Optional[InteractionConfig] = None,
        *,
        bus: Optional[EventBus] = None,
    ) -> None:
        self._world = world
        self._registry = registry
        self._cfg = config or InteractionConfig()
        self._bus = bus
        self._session: Optional[InteractionSession] = None
        self._correlation_id: Optional[str] = None

    @property
    def session(self) -> Optional[InteractionSession]:
        """The in-flight session, if any."""
        return self._session

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def cross(
        self,
        obstacle_id: ObstacleId,
        travel: Facing,
        *,
        correlation_id: Optional[str] = None,
    ) -> InteractionOutcome:
        """
        Drive one session to a terminal state.

        NavErrors end the session in FAILED and are reported on the outcome.
        asyncio.CancelledError propagates after the session's timers are
        cancelled.
        """
        session = InteractionSession(
            obstacle_id=obstacle_id,
            travel=travel,
            timers=TimerGroup(name=f"interaction:{obstacle_id}"),
        )
        self._session = session
        self._correlation_id = correlation_id

        try:
            await self._run(session)
        finally:
            session.timers.cancel_all()
            if self._session is session:
                self._session = None

        return InteractionOutcome(
            obstacle_id=obstacle_id,
            passed=session.state is InteractionState.PASSED,
            state=session.state,
            attempts=session.attempts,
            skipped_interaction=session.skipped_interaction,
            history=list(session.history),
            error=session.error,
        )

    def cancel(self) -> None:
        """Cancel every pending wait of the in-flight session."""
        session = self._session
        if session is not None:
            log.info("Cancelling interaction with %s in %s", session.obstacle_id, session.state.value)
            session.timers.cancel_all()

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    async def _run(self, session: InteractionSession) -> None:
        obstacle = self._registry.get(session.obstacle_id)
        if obstacle is None:
            session.error = RegistryInconsistency(
                code="unknown_obstacle",
                details={"obstacle_id": session.obstacle_id},
            )
            self._enter(session, InteractionState.FAILED)
            return

        state = InteractionState.APPROACHING
        try:
            while not state.terminal:
                self._enter(session, state)
                state = await self._step(session, obstacle, state)
            if state is InteractionState.PASSED:
                await self._pass_through(session, obstacle)
            self._enter(session, state)
        except NavError as exc:
            log.warning("Interaction with %s failed: %s", obstacle.label, exc)
            session.error = exc
            self._enter(session, InteractionState.FAILED)

    async def _step(
        self,
        session: InteractionSession,
        obstacle: Obstacle,
        state: InteractionState,
    ) -> InteractionState:
        if state is InteractionState.APPROACHING:
            return await self._approach(session, obstacle)
        if state is InteractionState.AT_OBSTACLE:
            return self._at_obstacle(session, obstacle)
        if state is InteractionState.INTERACTING:
            return await self._interact(session, obstacle)
        if state is InteractionState.VERIFYING:
            return await self._verify(session, obstacle)
        if state is InteractionState.RETRY:
            return await self._retry(session, obstacle)
        raise AssertionError(f"no handler for {state}")

    async def _approach(self, session: InteractionSession, obstacle: Obstacle) -> InteractionState:
        target = standoff_position(obstacle, session.travel)
        await request_move(
            self._world,
            session.timers,
            target,
            tolerance=self._cfg.move_tolerance,
            timeout=self._cfg.approach_timeout_s,
        )
        return InteractionState.AT_OBSTACLE

    def _at_obstacle(self, session: InteractionSession, obstacle: Obstacle) -> InteractionState:
        oid = obstacle.id
        if self._registry.is_likely_open(oid):
            assumed_only = self._registry.is_assumed_open(oid) and not obstacle.confirmed_open
            if not (assumed_only and self._cfg.assumed_open_policy is AssumedOpenPolicy.VERIFY_ON_ARRIVAL):
                session.skipped_interaction = True
                return InteractionState.PASSED
            if self._observe_open(obstacle):
                session.skipped_interaction = True
                return InteractionState.PASSED
            log.info("%s was assumed open but is closed", obstacle.label)
            self._registry.clear_assumed_open(oid)
        elif self._observe_open(obstacle):
            # Expired TTL still lands here: a barrier the world reports open is
            # passed without Interacting, since toggling now would shut it.
            session.skipped_interaction = True
            return InteractionState.PASSED

        if not self._can_attempt(obstacle):
            raise self._give_up(obstacle)
        return InteractionState.INTERACTING

    async def _interact(self, session: InteractionSession, obstacle: Obstacle) -> InteractionState:
        self._registry.record_attempt(obstacle.id)
        session.attempts += 1
        try:
            await session.timers.run(
                self._world.toggle(obstacle.position),
                self._cfg.toggle_timeout_s,
            )
        except asyncio.TimeoutError:
            log.warning("Toggle of %s did not return in %.1fs", obstacle.label, self._cfg.toggle_timeout_s)
        return InteractionState.VERIFYING

    async def _verify(self, session: InteractionSession, obstacle: Obstacle) -> InteractionState:
        for poll in range(self._cfg.verify_polls):
            await session.timers.sleep(self._cfg.verify_interval_s)
            if self._observe_open(obstacle):
                log.info("%s opened after %d poll(s)", obstacle.label, poll + 1)
                return InteractionState.PASSED
        return InteractionState.RETRY

    async def _retry(self, session: InteractionSession, obstacle: Obstacle) -> InteractionState:
        if not self._can_attempt(obstacle):
            raise self._give_up(obstacle)
        session.cooldown_until = self._registry.now() + self._cfg.cooldown_s
        await session.timers.sleep(self._cfg.cooldown_s)
        return InteractionState.INTERACTING

    async def _pass_through(self, session: InteractionSession, obstacle: Obstacle) -> None:
        target = pass_through_position(obstacle, session.travel)
        await request_move(
            self._world,
            session.timers,
            target,
            tolerance=self._cfg.move_tolerance,
            timeout=self._cfg.pass_timeout_s,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _can_attempt(self, obstacle: Obstacle) -> bool:
        return (
            self._registry.can_attempt(obstacle.id)
            and obstacle.attempts < self._cfg.max_attempts
        )

    def _give_up(self, obstacle: Obstacle) -> InteractionFailure:
        code = "blocked_for_session" if obstacle.blocked_for_session else "max_attempts_exhausted"
        self._registry.mark_blocked(obstacle.id)
        return InteractionFailure(
            code=code,
            details={"obstacle_id": obstacle.id, "attempts": obstacle.attempts},
        )

    def _observe_open(self, obstacle: Obstacle) -> bool:
        """Read ground truth once and record it. Evicts vanished barriers."""
        descriptor = self._world.describe(obstacle.position)
        if descriptor is None:
            self._registry.evict(obstacle.id, reason="vanished_during_interaction")
            raise RegistryInconsistency(
                code="obstacle_vanished",
                details={"obstacle_id": obstacle.id},
            )
        is_open = descriptor_is_open(descriptor)
        self._registry.update_state(obstacle.id, is_open)
        return is_open

    def _enter(self, session: InteractionSession, state: InteractionState) -> None:
        session.state = state
        session.history.append(state)
        log.debug("Interaction %s -> %s (attempts=%d)", session.obstacle_id, state.value, session.attempts)
        log_event(
            bus=self._bus,
            module=_MODULE,
            event_type=EventType.INTERACTION_STATE,
            message=f"{session.obstacle_id}: {state.value}",
            payload={
                "obstacle_id": session.obstacle_id,
                "state": state.value,
                "attempts": session.attempts,
            },
            correlation_id=self._correlation_id,
        )


__all__ = [
    "AssumedOpenPolicy",
    "InteractionState",
    "InteractionConfig",
    "InteractionSession",
    "InteractionOutcome",
    "InteractionController",
]
