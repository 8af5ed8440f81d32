# tests/test_obstacle_discovery.py
"""
Tests for door_nav.discovery.ObstacleScanner against FakeWorld.

Covers:
- New barriers are registered, known ones refreshed
- Malformed descriptors are skipped without stopping the scan
- Vanished barriers are evicted
- Pushed state changes reach the registry
"""

from __future__ import annotations

import pytest

from door_nav.discovery import DiscoveryConfig, ObstacleScanner
from door_nav.obstacles import ObstacleKind
from door_nav.position import Position
from door_nav.registry import ObstacleRegistry
from door_nav.testing import FakeWorld


def make_world() -> FakeWorld:
    world = FakeWorld(start=(0, 64, 0))
    world.add_door((3, 64, 0), facing="east", name="oak_door")
    world.add_door((0, 64, 5), facing="north", name="spruce_fence_gate", is_open=True)
    return world


def test_scan_registers_and_refreshes() -> None:
    world = make_world()
    registry = ObstacleRegistry()
    scanner = ObstacleScanner(world, registry)

    report = scanner.scan(world.position())
    assert len(report.registered) == 2
    assert report.refreshed == []

    gate = registry.get_at(Position(0, 64, 5))
    assert gate.kind is ObstacleKind.GATE
    assert gate.confirmed_open is True

    world.doors[Position(0, 64, 5)].is_open = False
    report = scanner.scan(world.position())
    assert report.registered == []
    assert sorted(report.refreshed) == sorted(o.id for o in registry.obstacles())
    assert registry.get_at(Position(0, 64, 5)).confirmed_open is False
    assert len(registry) == 2


def test_malformed_descriptor_is_skipped() -> None:
    world = make_world()
    world.add_door((-4, 64, 0), facing=None, name="iron_door")
    registry = ObstacleRegistry()

    report = ObstacleScanner(world, registry).scan(world.position())

    assert report.skipped == [Position(-4, 64, 0)]
    assert registry.get_at(Position(-4, 64, 0)) is None
    assert len(registry) == 2


def test_vanished_obstacle_is_evicted() -> None:
    world = make_world()
    registry = ObstacleRegistry()
    scanner = ObstacleScanner(world, registry)
    scanner.scan(world.position())

    world.remove_door((3, 64, 0))
    report = scanner.scan(world.position())

    assert report.evicted == ["obstacle_3_64_0"]
    assert registry.get_at(Position(3, 64, 0)) is None


def test_scan_respects_radius_and_limit() -> None:
    world = make_world()
    world.add_door((40, 64, 0), facing="east")
    registry = ObstacleRegistry()

    ObstacleScanner(world, registry, DiscoveryConfig(scan_radius=10.0, scan_limit=1)).scan(world.position())

    assert [o.position for o in registry.obstacles()] == [Position(3, 64, 0)]


@pytest.mark.asyncio
async def test_pushed_state_changes_update_registry() -> None:
    world = make_world()
    registry = ObstacleRegistry()
    scanner = ObstacleScanner(world, registry)
    scanner.attach()
    scanner.scan(world.position())

    await world.toggle(Position(3, 64, 0))

    assert registry.get_at(Position(3, 64, 0)).confirmed_open is True
    # Unknown positions are ignored.
    scanner.on_state_changed((100, 64, 100), True)
