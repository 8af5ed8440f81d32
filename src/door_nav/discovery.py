# lazy obstacle discovery against the world API
# src/door_nav/discovery.py
"""
ObstacleScanner: populate and reconcile the registry from the world.

- scan(center) looks for barrier blocks around the agent, registers new
  ones and merges fresh observations into known ones.
- Malformed descriptors (no facing, unknown kind) are logged and skipped;
  one bad block never stops a scan.
- Known obstacles inside the scan radius that the world no longer
  describes are evicted. A later sighting is a new discovery.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .errors import MalformedObstacleDescriptor
from .obstacles import ObstacleId, is_obstacle_block, obstacle_from_descriptor
from .position import Position
from .registry import ObstacleRegistry
from .world import WorldApi

log = logging.getLogger(__name__)


@dataclass
class DiscoveryConfig:
    scan_radius: float = 32.0
    scan_limit: int = 64


@dataclass
class ScanReport:
    registered: List[ObstacleId] = field(default_factory=list)
    refreshed: List[ObstacleId] = field(default_factory=list)
    evicted: List[ObstacleId] = field(default_factory=list)
    skipped: List[Position] = field(default_factory=list)


class ObstacleScanner:
    def __init__(
        self,
        world: WorldApi,
        registry: ObstacleRegistry,
        config: Optional[DiscoveryConfig] = None,
    ) -> None:
        self._world = world
        self._registry = registry
        self._cfg = config or DiscoveryConfig()

    def attach(self) -> None:
        self._world.on_obstacle_state_changed(self.on_state_changed)

    def scan(self, center: Any) -> ScanReport:
        center_pos = Position.of(center)
        report = ScanReport()
        seen = set()

        found = self._world.find_obstacles(
            is_obstacle_block,
            self._cfg.scan_radius,
            self._cfg.scan_limit,
        )
        for raw in found:
            pos = Position.of(raw)
            seen.add(pos)
            oid = self._observe(pos, report)
            if oid is not None and oid not in report.registered:
                report.refreshed.append(oid)

        # Reconcile known obstacles in range that the scan did not return.
        for obstacle in self._registry.nearby(center_pos, self._cfg.scan_radius):
            if obstacle.position in seen:
                continue
            if self._world.describe(obstacle.position) is None:
                self._registry.evict(obstacle.id, reason="not_describable")
                report.evicted.append(obstacle.id)

        log.debug(
            "Scan at %s: %d new, %d refreshed, %d evicted, %d skipped",
            center_pos,
            len(report.registered),
            len(report.refreshed),
            len(report.evicted),
            len(report.skipped),
        )
        return report

    def on_state_changed(self, position: Any, is_open: bool) -> None:
        """Push update from the world; unknown positions are ignored."""
        obstacle = self._registry.get_at(Position.of(position))
        if obstacle is not None:
            self._registry.update_state(obstacle.id, is_open)

    def _observe(self, pos: Position, report: ScanReport) -> Optional[ObstacleId]:
        descriptor = self._world.describe(pos)
        known = self._registry.get_at(pos)
        if descriptor is None:
            if known is not None:
                self._registry.evict(known.id, reason="not_describable")
                report.evicted.append(known.id)
            return None

        try:
            obstacle = obstacle_from_descriptor(pos, descriptor, self._registry.now())
        except MalformedObstacleDescriptor as exc:
            log.warning("Skipping obstacle at %s: %s", pos, exc)
            report.skipped.append(pos)
            return None

        is_new = known is None
        oid = self._registry.register(obstacle)
        if is_new:
            report.registered.append(oid)
        return oid


__all__ = ["DiscoveryConfig", "ScanReport", "ObstacleScanner"]
