# bounded recent-position history for the navigating agent
# src/door_nav/trail.py
"""
PositionTrail: the last few places the agent stood.

Used for status output and stuck detection by callers. Entries closer
than min_spacing to the newest one are dropped, the trail never holds
more than max_entries, and prune() forgets entries farther than
cleanup_distance from the agent.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Tuple

from .position import Position


@dataclass
class TrailConfig:
    max_entries: int = 10
    min_spacing: float = 0.5
    cleanup_distance: float = 3.0


class PositionTrail:
    def __init__(self, config: Optional[TrailConfig] = None) -> None:
        self._cfg = config or TrailConfig()
        self._entries: Deque[Tuple[Position, float]] = deque(maxlen=self._cfg.max_entries)

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, position: Position, at: float) -> bool:
        """Append position unless it is within min_spacing of the last entry."""
        if self._entries:
            last, _ = self._entries[-1]
            if last.distance_to(position) < self._cfg.min_spacing:
                return False
        self._entries.append((position, at))
        return True

    def prune(self, current: Position) -> int:
        """Drop entries farther than cleanup_distance from current."""
        kept = [
            (pos, at)
            for pos, at in self._entries
            if pos.distance_to(current) <= self._cfg.cleanup_distance
        ]
        dropped = len(self._entries) - len(kept)
        self._entries.clear()
        self._entries.extend(kept)
        return dropped

    def positions(self) -> List[Position]:
        return [pos for pos, _ in self._entries]

    def last(self) -> Optional[Position]:
        return self._entries[-1][0] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["TrailConfig", "PositionTrail"]
