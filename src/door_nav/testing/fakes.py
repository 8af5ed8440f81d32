# src/door_nav/testing/fakes.py
"""
Test helpers for door_nav.

Provides:
- FakeClock: manually advanced clock for ObstacleRegistry TTL tests.
- FakeWorld: flat grid world implementing WorldApi, with walls and
  scripted barriers (responsive, delayed, unresponsive, vanishing,
  missing facing).
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from ..position import Position
from ..world import AgentMovedHandler, BlockPredicate, MoveResult, ObstacleStateHandler


class FakeClock:
    """Callable clock; time only moves when advance() is called."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@dataclass
class FakeDoor:
    """
    Scripted barrier.

    responsive:
        False -> toggle() is accepted but nothing changes.
    open_delay_polls:
        after a toggle, the new state shows up on the Nth describe() call.
    vanish_on_toggle:
        the block disappears when toggled (describe() returns None).
    facing:
        None simulates a descriptor without orientation.
    """

    position: Position
    facing: Optional[str] = "north"
    name: str = "oak_door"
    is_open: bool = False
    responsive: bool = True
    open_delay_polls: int = 0
    vanish_on_toggle: bool = False

    _pending_polls: int = field(default=0, repr=False)

    def describe(self) -> Dict[str, Any]:
        if self._pending_polls > 0:
            self._pending_polls -= 1
            if self._pending_polls == 0:
                self.is_open = not self.is_open
        descriptor: Dict[str, Any] = {"name": self.name, "open": self.is_open}
        if self.facing is not None:
            descriptor["facing"] = self.facing
        return descriptor


class FakeWorld:
    """
    In-memory WorldApi used for unit and integration tests.

    Features:
    - Flat floor at floor_y inside optional (min_x, max_x, min_z, max_z)
      bounds; outside the bounds there is no floor.
    - Walls are two blocks high; closed doors are solid.
    - move_to() teleports along straight segments and fails if a closed
      door or wall lies on the way.
    - Records toggles, describe() calls and moves per position.
    """

    def __init__(
        self,
        start: Any = (0, 64, 0),
        *,
        floor_y: int = 63,
        bounds: Optional[Tuple[int, int, int, int]] = None,
        move_delay_s: float = 0.0,
    ) -> None:
        self.agent = Position.of(start)
        self.floor_y = floor_y
        self.bounds = bounds
        self.move_delay_s = move_delay_s

        self.solid: Set[Position] = set()
        self.doors: Dict[Position, FakeDoor] = {}
        # Moves that never resolve (until cancelled), to exercise timeouts.
        self.stall_moves = False
        # The next N moves are refused as if the agent got stuck.
        self.fail_next_moves = 0
        self.raise_on_move: Optional[BaseException] = None

        self.moves: List[Position] = []
        self.toggles: Dict[Position, int] = {}
        self.describe_calls: Dict[Position, int] = {}

        self._agent_handlers: List[AgentMovedHandler] = []
        self._state_handlers: List[ObstacleStateHandler] = []

    # ------------------------------------------------------------------
    # World building
    # ------------------------------------------------------------------

    def add_wall(self, x: int, z: int, height: int = 2) -> None:
        for dy in range(height):
            self.solid.add(Position(x, self.floor_y + 1 + dy, z))

    def add_wall_line(self, xs: Sequence[int], z: int, skip: Sequence[int] = ()) -> None:
        """East-west wall along z, leaving gaps at the x values in skip."""
        for x in xs:
            if x not in skip:
                self.add_wall(x, z)

    def add_door(self, position: Any, **kwargs: Any) -> FakeDoor:
        pos = Position.of(position)
        door = FakeDoor(position=pos, **kwargs)
        self.doors[pos] = door
        return door

    def remove_door(self, position: Any) -> None:
        self.doors.pop(Position.of(position), None)

    # ------------------------------------------------------------------
    # WorldApi
    # ------------------------------------------------------------------

    def position(self) -> Tuple[float, float, float]:
        # Entity coordinates are block centres, like a real client reports.
        return (self.agent.x + 0.5, float(self.agent.y), self.agent.z + 0.5)

    def find_obstacles(
        self,
        predicate: BlockPredicate,
        max_distance: float,
        limit: int,
    ) -> List[Position]:
        found = [
            pos
            for pos, door in self.doors.items()
            if predicate(door.name) and pos.distance_to(self.agent) <= max_distance
        ]
        found.sort(key=lambda pos: pos.distance_to(self.agent))
        return found[:limit]

    def describe(self, position: Position) -> Optional[Mapping[str, Any]]:
        pos = Position.of(position)
        self.describe_calls[pos] = self.describe_calls.get(pos, 0) + 1
        door = self.doors.get(pos)
        if door is None:
            return None
        return door.describe()

    def is_solid(self, x: int, y: int, z: int) -> bool:
        if self.bounds is not None:
            min_x, max_x, min_z, max_z = self.bounds
            if not (min_x <= x <= max_x and min_z <= z <= max_z):
                return False
        if y == self.floor_y:
            return True
        pos = Position(x, y, z)
        if pos in self.solid:
            return True
        for door_pos in (pos, pos.offset(0, -1, 0)):
            door = self.doors.get(door_pos)
            if door is not None and not door.is_open:
                return True
        return False

    async def move_to(self, position: Position, tolerance: float) -> MoveResult:
        target = Position.of(position)
        self.moves.append(target)
        if self.raise_on_move is not None:
            raise self.raise_on_move
        if self.stall_moves:
            await asyncio.Event().wait()
        if self.move_delay_s:
            await asyncio.sleep(self.move_delay_s)
        if self.fail_next_moves > 0:
            self.fail_next_moves -= 1
            return MoveResult(success=False, reason="stuck")

        blocker = self._first_blocker(self.agent, target)
        if blocker is not None:
            return MoveResult(success=False, reason=f"blocked at {blocker}")
        self.agent = target
        return MoveResult(success=True)

    async def toggle(self, position: Position) -> None:
        pos = Position.of(position)
        self.toggles[pos] = self.toggles.get(pos, 0) + 1
        door = self.doors.get(pos)
        if door is None:
            return
        if door.vanish_on_toggle:
            del self.doors[pos]
            return
        if not door.responsive:
            return
        if door.open_delay_polls > 0:
            door._pending_polls = door.open_delay_polls
            return
        door.is_open = not door.is_open
        for handler in list(self._state_handlers):
            handler(pos, door.is_open)

    def on_other_agent_moved(self, handler: AgentMovedHandler) -> None:
        self._agent_handlers.append(handler)

    def on_obstacle_state_changed(self, handler: ObstacleStateHandler) -> None:
        self._state_handlers.append(handler)

    # ------------------------------------------------------------------
    # Test-only helpers
    # ------------------------------------------------------------------

    def emit_other_agent_moved(self, agent_id: str, position: Any) -> None:
        for handler in list(self._agent_handlers):
            handler(agent_id, position)

    def total_toggles(self) -> int:
        return sum(self.toggles.values())

    def _first_blocker(self, start: Position, target: Position) -> Optional[Position]:
        """First blocked cell on the straight segment start -> target."""
        steps = max(abs(target.x - start.x), abs(target.z - start.z))
        for i in range(1, steps + 1):
            t = i / steps
            x = math.floor(start.x + (target.x - start.x) * t + 0.5)
            z = math.floor(start.z + (target.z - start.z) * t + 0.5)
            y = target.y if i == steps else start.y
            cell = Position(x, y, z)
            door = self.doors.get(cell)
            if door is not None and not door.is_open:
                return cell
            if cell in self.solid:
                return cell
        return None


__all__ = ["FakeClock", "FakeDoor", "FakeWorld"]
