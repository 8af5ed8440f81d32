# obstacle model: kinds, facings, per-kind approach geometry
# src/door_nav/obstacles.py
"""
Obstacle model for door_nav.

An Obstacle is a single grid cell holding a toggleable barrier (door,
fence gate, trapdoor). Kinds share one interaction contract; the only
per-kind difference is the approach geometry, kept in a small table
instead of a class hierarchy.

Direction conventions (Minecraft):
    north = -z, south = +z, east = +x, west = -x

A barrier is crossed along its *passage axis*, the axis of its facing.
Sideways entry is treated as impossible (the panel is in the way).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import MalformedObstacleDescriptor
from .position import Position

ObstacleId = str


class Facing(Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"

    @property
    def vector(self) -> Tuple[int, int]:
        """Unit (dx, dz) step."""
        return _FACING_VECTORS[self]

    @property
    def axis(self) -> str:
        return "z" if self in (Facing.NORTH, Facing.SOUTH) else "x"

    @property
    def opposite(self) -> "Facing":
        return _OPPOSITES[self]

    @classmethod
    def parse(cls, value: Any) -> "Facing":
        if isinstance(value, Facing):
            return value
        if not isinstance(value, str):
            raise ValueError(f"facing must be a string, got {value!r}")
        try:
            return cls(value.strip().lower())
        except ValueError as exc:
            raise ValueError(f"unknown facing {value!r}") from exc

    @classmethod
    def from_step(cls, dx: int, dz: int) -> "Facing":
        """Direction of a single horizontal step; sign only is used."""
        if dx and dz:
            raise ValueError(f"step ({dx}, {dz}) is not cardinal")
        if dx:
            return cls.EAST if dx > 0 else cls.WEST
        if dz:
            return cls.SOUTH if dz > 0 else cls.NORTH
        raise ValueError("zero step has no direction")


_FACING_VECTORS: Dict[Facing, Tuple[int, int]] = {
    Facing.NORTH: (0, -1),
    Facing.SOUTH: (0, 1),
    Facing.EAST: (1, 0),
    Facing.WEST: (-1, 0),
}

_OPPOSITES: Dict[Facing, Facing] = {
    Facing.NORTH: Facing.SOUTH,
    Facing.SOUTH: Facing.NORTH,
    Facing.EAST: Facing.WEST,
    Facing.WEST: Facing.EAST,
}


class ObstacleKind(Enum):
    DOOR = "door"
    GATE = "gate"
    TRAPDOOR = "trapdoor"

    @classmethod
    def parse(cls, value: Any) -> "ObstacleKind":
        if isinstance(value, ObstacleKind):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"unknown obstacle kind {value!r}") from exc


@dataclass(frozen=True)
class KindGeometry:
    """
    standoff:  blocks before the barrier where the agent stops to toggle it
    clearance: blocks past the barrier where the agent ends up after passing
    """

    standoff: int
    clearance: int


# Trapdoor hatches swing into the approach side, so stand one block further back.
KIND_GEOMETRY: Dict[ObstacleKind, KindGeometry] = {
    ObstacleKind.DOOR: KindGeometry(standoff=1, clearance=1),
    ObstacleKind.GATE: KindGeometry(standoff=1, clearance=1),
    ObstacleKind.TRAPDOOR: KindGeometry(standoff=2, clearance=1),
}


def classify_block_name(name: Optional[str]) -> Optional[ObstacleKind]:
    """
    Map a block name ("oak_door", "minecraft:spruce_fence_gate", ...) to a kind.

    Order matters: "trapdoor" contains "door".
    """
    if not name:
        return None
    lowered = name.lower()
    if "trapdoor" in lowered:
        return ObstacleKind.TRAPDOOR
    if "gate" in lowered:
        return ObstacleKind.GATE
    if "door" in lowered:
        return ObstacleKind.DOOR
    return None


def is_obstacle_block(name: Optional[str]) -> bool:
    """Predicate handed to WorldApi.find_obstacles."""
    return classify_block_name(name) is not None


def obstacle_id(position: Position) -> ObstacleId:
    return f"obstacle_{position.x}_{position.y}_{position.z}"


@dataclass
class Obstacle:
    """
    Registry record for one barrier cell.

    Identity fields (position, kind, facing, name) are fixed at discovery.
    Everything else is observation- or session-derived state.
    """

    position: Position
    kind: ObstacleKind
    facing: Facing
    name: Optional[str] = None

    confirmed_open: bool = False
    assumed_open_until: Optional[float] = None
    attempts: int = 0
    blocked_for_session: bool = False
    last_observed_at: Optional[float] = None
    last_interaction_at: Optional[float] = None

    @property
    def id(self) -> ObstacleId:
        return obstacle_id(self.position)

    @property
    def passage_axis(self) -> str:
        return self.facing.axis

    @property
    def geometry(self) -> KindGeometry:
        return KIND_GEOMETRY[self.kind]

    @property
    def label(self) -> str:
        base = (self.name or self.kind.value).split(":")[-1].replace("_", " ")
        return f"{base} ({self.facing.value.capitalize()} facing) at {self.position}"

    def allows_travel(self, travel: Facing) -> bool:
        return travel.axis == self.passage_axis

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe view for monitoring payloads."""
        return {
            "id": self.id,
            "label": self.label,
            "position": list(self.position),
            "kind": self.kind.value,
            "facing": self.facing.value,
            "confirmed_open": self.confirmed_open,
            "assumed_open_until": self.assumed_open_until,
            "attempts": self.attempts,
            "blocked_for_session": self.blocked_for_session,
        }


def _along(position: Position, travel: Facing, distance: int) -> Position:
    dx, dz = travel.vector
    return position.offset(dx * distance, 0, dz * distance)


def standoff_position(obstacle: Obstacle, travel: Facing) -> Position:
    """Cell to stand on before toggling, on the near side for `travel`."""
    return _along(obstacle.position, travel.opposite, obstacle.geometry.standoff)


def pass_through_position(obstacle: Obstacle, travel: Facing) -> Position:
    """Cell past the barrier in the direction of travel."""
    return _along(obstacle.position, travel, obstacle.geometry.clearance)


def _parse_open(value: Any) -> bool:
    # Block properties arrive as "true"/"false" strings from some clients.
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def descriptor_is_open(descriptor: Mapping[str, Any]) -> bool:
    return _parse_open(descriptor.get("open", False))


def obstacle_from_descriptor(
    position: Position,
    descriptor: Mapping[str, Any],
    now: float,
) -> Obstacle:
    """
    Build an Obstacle from a WorldApi.describe() mapping.

    Expected keys: "facing", "open", and "kind" and/or "name".

    Raises MalformedObstacleDescriptor when facing or kind cannot be resolved.
    """
    name = descriptor.get("name")
    raw_kind = descriptor.get("kind")
    try:
        kind = ObstacleKind.parse(raw_kind) if raw_kind else classify_block_name(name)
    except ValueError:
        kind = None
    if kind is None:
        raise MalformedObstacleDescriptor(
            code="unknown_kind",
            details={"position": list(position), "kind": raw_kind, "name": name},
        )

    raw_facing = descriptor.get("facing")
    if raw_facing is None:
        raise MalformedObstacleDescriptor(
            code="missing_facing",
            details={"position": list(position), "name": name},
        )
    try:
        facing = Facing.parse(raw_facing)
    except ValueError:
        raise MalformedObstacleDescriptor(
            code="invalid_facing",
            details={"position": list(position), "facing": repr(raw_facing)},
        ) from None

    return Obstacle(
        position=position,
        kind=kind,
        facing=facing,
        name=str(name) if name is not None else None,
        confirmed_open=descriptor_is_open(descriptor),
        last_observed_at=now,
    )


__all__ = [
    "ObstacleId",
    "Facing",
    "ObstacleKind",
    "KindGeometry",
    "KIND_GEOMETRY",
    "Obstacle",
    "classify_block_name",
    "is_obstacle_block",
    "obstacle_id",
    "standoff_position",
    "pass_through_position",
    "obstacle_from_descriptor",
    "descriptor_is_open",
]
