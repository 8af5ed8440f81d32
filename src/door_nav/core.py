# src/door_nav/core.py
"""
DoorNavigator: one agent's obstacle-aware navigation, fully wired.

This module wires together:
- ObstacleRegistry (shared barrier state, one per agent)
- PassiveStateInference (other agents' movement -> assumed open)
- ObstacleScanner (lazy discovery and reconciliation)
- PathPlanner (cost-augmented A*)
- InteractionController (bounded door state machine)
- ExecutionLoop (request orchestration)

Public surface:
    class DoorNavigator:
        start() -> None
        go_to(destination, tolerance) -> NavigationOutcome   (async)
        cancel() -> bool
        status() -> dict
        reset_episode() -> None
        list_obstacles(max_distance) -> list[Obstacle]

Design constraints:
- No protocol details here; everything goes through WorldApi.
- Navigation failures come back as outcomes, never as exceptions.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, List, Optional

from env.loader import load_nav_config
from env.schema import NavProfile
from monitoring.bus import EventBus

from .discovery import ObstacleScanner, ScanReport
from .execution import ExecutionLoop, NavigationOutcome
from .inference import PassiveStateInference
from .interaction import InteractionController
from .logging_config import configure_logging
from .nav import PathPlanner
from .obstacles import Obstacle
from .position import Position
from .registry import Clock, ObstacleRegistry
from .world import WorldApi

log = logging.getLogger(__name__)


class DoorNavigator:
    def __init__(
        self,
        world: WorldApi,
        profile: Optional[NavProfile] = None,
        *,
        bus: Optional[EventBus] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.profile = profile or NavProfile(name="default")
        self.world = world
        self.bus = bus

        self.registry = ObstacleRegistry(
            clock=clock,
            max_attempts=self.profile.interaction.max_attempts,
            bus=bus,
        )
        self.inference = PassiveStateInference(
            self.registry,
            self.profile.inference,
            self_id=self.profile.agent_id,
        )
        self.scanner = ObstacleScanner(world, self.registry, self.profile.discovery)
        self.planner = PathPlanner(self.registry, world.is_solid, self.profile.planner, bus=bus)
        self.controller = InteractionController(
            world,
            self.registry,
            self.profile.interaction,
            bus=bus,
        )
        self.loop = ExecutionLoop(
            world,
            self.registry,
            self.planner,
            self.controller,
            self.scanner,
            self.profile.execution,
            bus=bus,
        )
        self._started = False

    @classmethod
    def from_config(
        cls,
        world: WorldApi,
        path: Optional[Path] = None,
        profile: Optional[str] = None,
        *,
        bus: Optional[EventBus] = None,
    ) -> "DoorNavigator":
        """Build from config/navigation.yaml (or an explicit path) and apply its log level."""
        nav_profile = load_nav_config(path, profile)
        configure_logging(nav_profile.log_level)
        return cls(world, nav_profile, bus=bus)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Subscribe to world callbacks. Safe to call more than once."""
        if self._started:
            return
        self.inference.attach(self.world)
        self.scanner.attach()
        self._started = True
        log.info("DoorNavigator started with profile %r", self.profile.name)

    def reset_episode(self) -> None:
        """Respawn / reconnect: stop navigating and forget every barrier."""
        self.loop.cancel()
        self.inference.clear()
        self.loop.trail.clear()
        self.registry.clear_session()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def go_to(self, destination: Any, tolerance: float = 1.0) -> NavigationOutcome:
        self.start()
        return await self.loop.go_to(destination, tolerance)

    def cancel(self) -> bool:
        return self.loop.cancel()

    def status(self) -> dict:
        return self.loop.status()

    # ------------------------------------------------------------------
    # Obstacles
    # ------------------------------------------------------------------

    def scan(self) -> ScanReport:
        return self.scanner.scan(self.world.position())

    def list_obstacles(self, max_distance: Optional[float] = None) -> List[Obstacle]:
        """Known barriers, nearest first."""
        here = Position.of(self.world.position())
        reach = max_distance if max_distance is not None else math.inf
        return self.registry.nearby(here, reach)


__all__ = ["DoorNavigator"]
