# navigation grid with obstacle-aware edges
# src/door_nav/nav/grid.py
"""
NavGrid: walkability and edge generation over a voxel world.

Terrain comes from a pluggable is_solid_block callback; this module does
not know block types. Barrier cells come from the ObstacleRegistry and
are never treated as plain walkable/blocked cells:

- blocked_for_session     -> no edge at all
- likely open             -> plain edge into the barrier cell, cost C0
- otherwise               -> one logical hop from the approach cell to
                             the far cell, cost C0 + interaction_penalty,
                             tagged with the obstacle id

Barriers are only crossed along their passage axis, and only when the
kind's standoff cell is reachable in a straight line from the cell
right before the barrier.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from ..obstacles import Facing, Obstacle, ObstacleId
from ..position import Position
from ..registry import ObstacleRegistry

# Signature for a block-solid callback:
#   is_solid(x, y, z) -> bool
BlockSolidFn = Callable[[int, int, int], bool]


@dataclass(frozen=True)
class Edge:
    """One outgoing move from a cell."""

    target: Position
    cost: float
    obstacle_id: Optional[ObstacleId] = None
    # Cell the hop starts from; set only for tagged (needs interaction) edges.
    approach: Optional[Position] = None

    @property
    def needs_interaction(self) -> bool:
        return self.obstacle_id is not None


@dataclass
class NavGrid:
    """
    Responsibilities:
    - Provide walkability tests (is_walkable).
    - Provide weighted, possibly tagged, edges for pathfinding.

    It does NOT:
    - Talk to the world beyond is_solid_block.
    - Mutate the registry.
    """

    is_solid_block: BlockSolidFn
    registry: ObstacleRegistry

    base_cost: float = 1.0
    interaction_penalty: float = 2.0

    max_fall_height: int = 4  # how far the agent is allowed to drop
    max_step_height: int = 1  # how high the agent can step up

    # ------------------------------------------------------------------
    # Core queries
    # ------------------------------------------------------------------

    def is_walkable(self, x: int, y: int, z: int) -> bool:
        """
        Determine if the agent can "stand" at (x, y, z).

        Simple rule:
        - Block at (x, y - 1, z) is solid (floor).
        - Blocks at (x, y, z) and (x, y + 1, z) are non-solid (no collision).
        - The cell is not a registered barrier (those get special edges).
        """
        if not self._is_block_solid(x, y - 1, z):
            return False
        if self._is_block_solid(x, y, z):
            return False
        if self._is_block_solid(x, y + 1, z):
            return False
        return self.registry.get_at(Position(x, y, z)) is None

    def edges(self, coord: Position) -> List[Edge]:
        """
        Outgoing edges on the x-z plane, with basic vertical adjustment.

        We allow up/down steps within max_step_height and controlled falls.
        """
        here = self.registry.get_at(coord)
        result: List[Edge] = []

        for travel in Facing:
            # Standing inside an open barrier: only leave along its axis.
            if here is not None and not here.allows_travel(travel):
                continue

            dx, dz = travel.vector
            nxt = coord.offset(dx, 0, dz)

            obstacle = self.registry.get_at(nxt)
            if obstacle is not None:
                edge = self._barrier_edge(coord, nxt, travel)
                if edge is not None:
                    result.append(edge)
                continue

            target = self._step_target(nxt)
            if target is not None:
                result.append(Edge(target=target, cost=self.base_cost))

        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _barrier_edge(self, coord: Position, cell: Position, travel: Facing) -> Optional[Edge]:
        obstacle = self.registry.get_at(cell)
        if obstacle is None or obstacle.blocked_for_session:
            return None
        if not obstacle.allows_travel(travel):
            return None
        # Barriers stand on something.
        if not self._is_block_solid(cell.x, cell.y - 1, cell.z):
            return None
        # The controller backs up to the kind's standoff cell before toggling.
        if not self._standoff_clear(coord, obstacle, travel):
            return None

        if self.registry.is_likely_open(obstacle.id):
            return Edge(target=cell, cost=self.base_cost)

        dx, dz = travel.vector
        far = cell.offset(dx, 0, dz)
        if not self.is_walkable(far.x, far.y, far.z):
            return None
        return Edge(
            target=far,
            cost=self.base_cost + self.interaction_penalty,
            obstacle_id=obstacle.id,
            approach=coord,
        )

    def _standoff_clear(self, coord: Position, obstacle: Obstacle, travel: Facing) -> bool:
        """Cells from coord straight back to standoff_position() are walkable."""
        dx, dz = travel.opposite.vector
        for back in range(1, obstacle.geometry.standoff):
            cell = coord.offset(dx * back, 0, dz * back)
            if not self.is_walkable(cell.x, cell.y, cell.z):
                return False
        return True

    def _step_target(self, nxt: Position) -> Optional[Position]:
        # First: small upward/downward steps
        for dy in range(-self.max_step_height, self.max_step_height + 1):
            candidate = nxt.offset(0, dy, 0)
            if self.is_walkable(candidate.x, candidate.y, candidate.z):
                return candidate

        # If no small step works, see if we can safely fall
        return self._find_fall_target(nxt)

    def _is_block_solid(self, x: int, y: int, z: int) -> bool:
        """This is the only place terrain -> collision decision happens."""
        return bool(self.is_solid_block(x, y, z))

    def _find_fall_target(self, start: Position) -> Optional[Position]:
        """
        Try to find a valid landing spot when walking off an edge.

        We search downward from start.y to start.y - max_fall_height.
        The column we fall through must be free.
        """
        lowest_y = start.y - self.max_fall_height
        y = start.y
        while y >= lowest_y:
            if self._is_block_solid(start.x, y, start.z):
                return None
            if self.is_walkable(start.x, y, start.z):
                return Position(start.x, y, start.z)
            y -= 1
        return None


__all__ = ["BlockSolidFn", "Edge", "NavGrid"]
