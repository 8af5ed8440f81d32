# authoritative cache of discovered barrier state
# src/door_nav/registry.py
"""
ObstacleRegistry: partial, lazily populated cache of barrier state.

This is the only mutable state shared between the planner, the passive
inference hook and the interaction controller. Rules:

- Exactly one Obstacle record per Position (keyed by obstacle_id).
- Identity fields (position, kind, facing, name) never change after the
  first registration.
- blocked_for_session only goes False -> True; clear_session() is the
  only reset.
- attempts never passes max_attempts.

Each mutation runs under one lock, so a write from a world callback
thread and a write from the navigation loop never interleave on the
same record. No I/O besides logging and monitoring events.
"""

from __future__ import annotations

import logging
import time
from threading import RLock
from typing import Callable, Dict, Iterator, List, Optional

from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event

from .obstacles import Obstacle, ObstacleId, obstacle_id
from .position import Position

log = logging.getLogger(__name__)

Clock = Callable[[], float]

_MODULE = "door_nav.registry"

DEFAULT_MAX_ATTEMPTS = 3


class ObstacleRegistry:
    """
    In-memory obstacle store.

    Public contract:
        register, get, get_at, update_state, mark_assumed_open,
        is_likely_open, nearby, mark_blocked, record_attempt,
        reset_attempts, evict, clear_session
    """

    def __init__(
        self,
        *,
        clock: Optional[Clock] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        bus: Optional[EventBus] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._clock: Clock = clock or time.monotonic
        self._max_attempts = max_attempts
        self._bus = bus
        self._records: Dict[ObstacleId, Obstacle] = {}
        self._lock = RLock()

    # ------------------------------------------------------------------
    # Basic access
    # ------------------------------------------------------------------

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def now(self) -> float:
        return self._clock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, oid: object) -> bool:
        return oid in self._records

    def __iter__(self) -> Iterator[Obstacle]:
        return iter(self.obstacles())

    def obstacles(self) -> List[Obstacle]:
        """Snapshot list of all records."""
        with self._lock:
            return list(self._records.values())

    def get(self, oid: ObstacleId) -> Optional[Obstacle]:
        return self._records.get(oid)

    def get_at(self, position: Position) -> Optional[Obstacle]:
        return self._records.get(obstacle_id(position))

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, obstacle: Obstacle) -> ObstacleId:
        """
        Insert or merge an obstacle.

        If the position is already known, only observation-derived fields
        are taken from `obstacle` (confirmed_open, last_observed_at). Identity
        and session fields of the existing record are kept.
        """
        oid = obstacle.id
        with self._lock:
            existing = self._records.get(oid)
            if existing is None:
                self._records[oid] = obstacle
                log.debug("Registered %s", obstacle.label)
                log_event(
                    bus=self._bus,
                    module=_MODULE,
                    event_type=EventType.OBSTACLE_REGISTERED,
                    message=f"Registered {obstacle.label}",
                    payload={"obstacle": obstacle.to_dict()},
                )
                return oid

        if obstacle.last_observed_at is not None:
            self.update_state(
                oid,
                obstacle.confirmed_open,
                observed_at=obstacle.last_observed_at,
            )
        return oid

    # ------------------------------------------------------------------
    # Observed state
    # ------------------------------------------------------------------

    def update_state(
        self,
        oid: ObstacleId,
        observed_open: bool,
        *,
        observed_at: Optional[float] = None,
    ) -> bool:
        """
        Record a direct observation of the barrier.

        Returns True if confirmed_open changed. A change is also published
        as OBSTACLE_STATE_CHANGED; nothing in the control flow depends on it.
        """
        with self._lock:
            obstacle = self._require(oid)
            previous = obstacle.confirmed_open
            obstacle.confirmed_open = bool(observed_open)
            obstacle.last_observed_at = (
                observed_at if observed_at is not None else self._clock()
            )
            changed = previous != obstacle.confirmed_open
            snapshot = obstacle.to_dict() if changed else None

        if changed:
            log.info(
                "Obstacle state changed: %s %s -> %s",
                obstacle.label,
                "open" if previous else "closed",
                "open" if observed_open else "closed",
            )
            log_event(
                bus=self._bus,
                module=_MODULE,
                event_type=EventType.OBSTACLE_STATE_CHANGED,
                message=f"{obstacle.label} is now {'open' if observed_open else 'closed'}",
                payload={"obstacle": snapshot, "previous_open": previous},
            )
        return changed

    def mark_assumed_open(self, oid: ObstacleId, ttl: float) -> float:
        """
        Treat the barrier as open for planning until now + ttl.

        confirmed_open is left untouched. Returns the expiry timestamp.
        """
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        with self._lock:
            obstacle = self._require(oid)
            until = self._clock() + ttl
            # Never shorten an assumption that is already further out.
            if obstacle.assumed_open_until is None or obstacle.assumed_open_until < until:
                obstacle.assumed_open_until = until
            until = obstacle.assumed_open_until

        log.debug("Assuming %s open until %.3f", obstacle.label, until)
        log_event(
            bus=self._bus,
            module=_MODULE,
            event_type=EventType.OBSTACLE_ASSUMED_OPEN,
            message=f"{obstacle.label} assumed open",
            payload={"obstacle_id": oid, "until": until},
        )
        return until

    def clear_assumed_open(self, oid: ObstacleId) -> None:
        """Drop an inferred-open window, e.g. after ground truth disagreed."""
        with self._lock:
            obstacle = self._require(oid)
            obstacle.assumed_open_until = None

    def is_assumed_open(self, oid: ObstacleId) -> bool:
        obstacle = self._records.get(oid)
        if obstacle is None or obstacle.assumed_open_until is None:
            return False
        return obstacle.assumed_open_until > self._clock()

    def is_likely_open(self, oid: ObstacleId) -> bool:
        """Assumed-open window first, then the last confirmed observation."""
        obstacle = self._records.get(oid)
        if obstacle is None:
            return False
        if self.is_assumed_open(oid):
            return True
        return obstacle.confirmed_open

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    def record_attempt(self, oid: ObstacleId) -> int:
        """
        Count one interaction attempt and stamp last_interaction_at.

        Raises RuntimeError if the obstacle is already blocked or the
        counter is at max_attempts; callers must check before toggling.
        """
        with self._lock:
            obstacle = self._require(oid)
            if obstacle.blocked_for_session:
                raise RuntimeError(f"{oid} is blocked for this session")
            if obstacle.attempts >= self._max_attempts:
                raise RuntimeError(f"{oid} already used {obstacle.attempts} attempts")
            obstacle.attempts += 1
            obstacle.last_interaction_at = self._clock()
            return obstacle.attempts

    def can_attempt(self, oid: ObstacleId) -> bool:
        obstacle = self._records.get(oid)
        return (
            obstacle is not None
            and not obstacle.blocked_for_session
            and obstacle.attempts < self._max_attempts
        )

    def mark_blocked(self, oid: ObstacleId) -> None:
        with self._lock:
            obstacle = self._require(oid)
            if obstacle.blocked_for_session:
                return
            obstacle.blocked_for_session = True

        log.warning("Obstacle blocked for session: %s", obstacle.label)
        log_event(
            bus=self._bus,
            module=_MODULE,
            event_type=EventType.OBSTACLE_BLOCKED,
            message=f"{obstacle.label} blocked for session",
            payload={"obstacle": obstacle.to_dict()},
        )

    def reset_attempts(self, idle_s: Optional[float] = None) -> int:
        """
        Reset attempt counters.

        idle_s=None resets every record (a new destination session begins).
        Otherwise only records whose last interaction is older than idle_s.
        blocked_for_session is not touched. Returns how many were reset.
        """
        now = self._clock()
        reset = 0
        with self._lock:
            for obstacle in self._records.values():
                if obstacle.attempts == 0:
                    continue
                if idle_s is not None:
                    last = obstacle.last_interaction_at
                    if last is not None and now - last < idle_s:
                        continue
                obstacle.attempts = 0
                reset += 1
        if reset:
            log.debug("Reset attempt counters on %d obstacle(s)", reset)
        return reset

    def evict(self, oid: ObstacleId, reason: str = "not_describable") -> Optional[Obstacle]:
        """Drop a record; a later sighting is treated as a new discovery."""
        with self._lock:
            obstacle = self._records.pop(oid, None)
        if obstacle is None:
            return None
        log.warning("Evicted %s (%s)", obstacle.label, reason)
        log_event(
            bus=self._bus,
            module=_MODULE,
            event_type=EventType.OBSTACLE_EVICTED,
            message=f"Evicted {obstacle.label}",
            payload={"obstacle_id": oid, "reason": reason},
        )
        return obstacle

    def clear_session(self) -> None:
        """Empty the registry. Call on episode boundaries (respawn, reconnect)."""
        with self._lock:
            count = len(self._records)
            self._records.clear()
        log.info("Obstacle registry cleared for new session (%d records dropped)", count)
        log_event(
            bus=self._bus,
            module=_MODULE,
            event_type=EventType.REGISTRY_CLEARED,
            message="Obstacle registry cleared",
            payload={"dropped": count},
        )

    # ------------------------------------------------------------------
    # Spatial queries
    # ------------------------------------------------------------------

    def nearby(self, position: Position, max_distance: float) -> List[Obstacle]:
        """Obstacles within max_distance of position, nearest first."""
        with self._lock:
            candidates = [
                (obstacle.position.distance_to(position), obstacle)
                for obstacle in self._records.values()
            ]
        in_range = [pair for pair in candidates if pair[0] <= max_distance]
        in_range.sort(key=lambda pair: (pair[0], pair[1].position))
        return [obstacle for _, obstacle in in_range]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require(self, oid: ObstacleId) -> Obstacle:
        obstacle = self._records.get(oid)
        if obstacle is None:
            raise KeyError(f"Unknown obstacle id: {oid}")
        return obstacle


__all__ = ["ObstacleRegistry", "Clock", "DEFAULT_MAX_ATTEMPTS"]
