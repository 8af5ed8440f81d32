# learn barrier state from other agents' movement
# src/door_nav/inference.py
"""
PassiveStateInference: mark barriers as likely-open when another agent
is seen inside or right next to them.

An agent cannot stand in a closed barrier's cell, so a sighting there is
cheap evidence the barrier is open. The evidence is only trusted for a
TTL because the barrier may close again behind them.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .obstacles import ObstacleId
from .position import Position
from .registry import ObstacleRegistry
from .world import WorldApi

log = logging.getLogger(__name__)


@dataclass
class InferenceConfig:
    assumed_open_ttl_s: float = 5.0
    # Half extents of the bounding volume around the observed agent (dx, dy, dz).
    box: Tuple[int, int, int] = (1, 2, 1)


@dataclass
class PassObservation:
    agent_id: str
    position: Position
    at: float


class PassiveStateInference:
    def __init__(
        self,
        registry: ObstacleRegistry,
        config: Optional[InferenceConfig] = None,
        *,
        self_id: Optional[str] = None,
    ) -> None:
        self._registry = registry
        self._cfg = config or InferenceConfig()
        self._self_id = self_id
        self._last_pass: Dict[ObstacleId, PassObservation] = {}

    def attach(self, world: WorldApi) -> None:
        world.on_other_agent_moved(self.on_other_agent_moved)

    def on_other_agent_moved(self, agent_id: str, position: Any) -> List[ObstacleId]:
        """
        Mark every registered obstacle inside the bounding volume around
        `position` as assumed-open. Returns the ids that were marked.
        """
        if self._self_id is not None and agent_id == self._self_id:
            return []
        try:
            pos = Position.of(position)
        except ValueError:
            log.debug("Ignoring movement of %s with bad position %r", agent_id, position)
            return []

        bx, by, bz = self._cfg.box
        reach = math.sqrt(bx * bx + by * by + bz * bz)
        marked: List[ObstacleId] = []
        for obstacle in self._registry.nearby(pos, reach):
            op = obstacle.position
            if abs(op.x - pos.x) > bx or abs(op.y - pos.y) > by or abs(op.z - pos.z) > bz:
                continue
            self._registry.mark_assumed_open(obstacle.id, self._cfg.assumed_open_ttl_s)
            self._last_pass[obstacle.id] = PassObservation(
                agent_id=agent_id,
                position=pos,
                at=self._registry.now(),
            )
            marked.append(obstacle.id)

        if marked:
            log.info("Agent %s near %s; assuming open: %s", agent_id, pos, ", ".join(marked))
        return marked

    def last_pass(self, oid: ObstacleId) -> Optional[PassObservation]:
        return self._last_pass.get(oid)

    def clear(self) -> None:
        self._last_pass.clear()


__all__ = ["InferenceConfig", "PassObservation", "PassiveStateInference"]
