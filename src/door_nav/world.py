# world / agent collaborator interface
# src/door_nav/world.py
"""
WorldApi: the collaborator door_nav drives.

Protocol handling, connectivity and block storage live outside this
package. A concrete client (mineflayer bridge, Forge IPC, a test fake)
implements this Protocol; the core never sees wire data.

Conventions:
- Positions coming back from the world may be floats, Vec3-likes or
  mappings. The core normalizes them with Position.of() on receipt.
- describe() returns a plain mapping {"kind", "facing", "open", "name"}
  or None when the block at that position is not a barrier (any more).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Optional, Protocol, Sequence

from .errors import MovementTimeout
from .position import Position

if TYPE_CHECKING:
    from .timers import TimerGroup

# Callback signatures for world push events.
AgentMovedHandler = Callable[[str, Any], None]
ObstacleStateHandler = Callable[[Any, bool], None]

# Block-name predicate used by find_obstacles.
BlockPredicate = Callable[[Optional[str]], bool]


@dataclass
class MoveResult:
    """Outcome of a single move_to request."""

    success: bool
    reason: Optional[str] = None


class WorldApi(Protocol):
    """
    Interface consumed by ObstacleScanner, PathPlanner, InteractionController
    and ExecutionLoop.
    """

    def position(self) -> Any:
        """Current agent position (any shape accepted by Position.of)."""
        ...

    def find_obstacles(
        self,
        predicate: BlockPredicate,
        max_distance: float,
        limit: int,
    ) -> Sequence[Any]:
        """Positions of blocks whose name satisfies predicate, nearest first."""
        ...

    def describe(self, position: Position) -> Optional[Mapping[str, Any]]:
        """Current {kind, facing, open, name} of a barrier, or None."""
        ...

    def is_solid(self, x: int, y: int, z: int) -> bool:
        """Collision test for terrain; closed barriers count as solid."""
        ...

    def move_to(self, position: Position, tolerance: float) -> Awaitable[MoveResult]:
        """Walk to position; resolves on arrival or failure."""
        ...

    def toggle(self, position: Position) -> Awaitable[Any]:
        """Activate (right-click) the barrier at position. Result is ignored."""
        ...

    def on_other_agent_moved(self, handler: AgentMovedHandler) -> None:
        """Register for movement of other tracked agents (players, mobs)."""
        ...

    def on_obstacle_state_changed(self, handler: ObstacleStateHandler) -> None:
        """Register for pushed barrier state updates (optional optimization)."""
        ...


async def request_move(
    world: WorldApi,
    timers: "TimerGroup",
    target: Position,
    *,
    tolerance: float,
    timeout: Optional[float],
) -> None:
    """
    Ask the world to move and wait, bounded by timeout, inside `timers`.

    Raises MovementTimeout on timeout or a refused/failed move.
    """
    try:
        result = await timers.run(world.move_to(target, tolerance), timeout)
    except asyncio.TimeoutError:
        raise MovementTimeout(
            code="move_timeout",
            details={"target": list(target), "timeout_s": timeout},
        ) from None

    success = getattr(result, "success", result)
    if not success:
        raise MovementTimeout(
            code="move_failed",
            details={"target": list(target), "reason": getattr(result, "reason", None)},
        )


__all__ = [
    "AgentMovedHandler",
    "ObstacleStateHandler",
    "BlockPredicate",
    "MoveResult",
    "WorldApi",
    "request_move",
]
