# canonical grid coordinate type
# src/door_nav/position.py
"""
Position: the one coordinate type used inside door_nav.

Everything that enters the core from the world (agent positions, block
positions, destinations typed by a human) goes through Position.of()
exactly once. After that, code can assume integer (x, y, z) and never
re-check representation.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, NamedTuple


class Position(NamedTuple):
    """Integer block coordinate. Immutable and hashable."""

    x: int
    y: int
    z: int

    @classmethod
    def of(cls, value: Any) -> "Position":
        """
        Normalize `value` into a Position.

        Accepted shapes:
          - Position (returned as-is)
          - (x, y, z) sequence of numbers
          - mapping with "x", "y", "z" keys
          - object with .x, .y, .z attributes (e.g. a Vec3-like)

        Floats are floored, so an entity standing at x=10.7 is in block 10.
        """
        if isinstance(value, Position):
            return value

        if isinstance(value, Mapping):
            try:
                raw = (value["x"], value["y"], value["z"])
            except KeyError as exc:
                raise ValueError(f"Position mapping missing key: {exc}") from exc
        elif isinstance(value, (tuple, list)):
            if len(value) != 3:
                raise ValueError(f"Position needs 3 components, got {len(value)}")
            raw = tuple(value)
        elif all(hasattr(value, attr) for attr in ("x", "y", "z")):
            raw = (value.x, value.y, value.z)
        else:
            raise ValueError(f"Cannot interpret {value!r} as a Position")

        try:
            x, y, z = (int(math.floor(float(c))) for c in raw)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Non-numeric position component in {value!r}") from exc
        return cls(x, y, z)

    def offset(self, dx: int = 0, dy: int = 0, dz: int = 0) -> "Position":
        return Position(self.x + dx, self.y + dy, self.z + dz)

    def distance_to(self, other: "Position") -> float:
        """Euclidean distance between block coordinates."""
        return math.sqrt(
            (self.x - other.x) ** 2
            + (self.y - other.y) ** 2
            + (self.z - other.z) ** 2
        )

    def manhattan(self, other: "Position") -> int:
        return abs(self.x - other.x) + abs(self.y - other.y) + abs(self.z - other.z)

    def __str__(self) -> str:
        return f"({self.x}, {self.y}, {self.z})"


__all__ = ["Position"]
