# tests/test_nav_mover.py
"""
Tests for door_nav.nav.mover: route compression and travel direction.
"""

from __future__ import annotations

import pytest

from door_nav.nav import Waypoint, compress_route, current_position, travel_direction
from door_nav.obstacles import Facing
from door_nav.position import Position


def straight(n: int) -> list:
    return [Waypoint(Position(i, 64, 0)) for i in range(n)]


def test_straight_run_keeps_only_endpoints() -> None:
    compressed = compress_route(straight(6))
    assert [wp.position for wp in compressed] == [Position(0, 64, 0), Position(5, 64, 0)]


def test_corners_and_height_changes_are_kept() -> None:
    route = [
        Waypoint(Position(0, 64, 0)),
        Waypoint(Position(1, 64, 0)),
        Waypoint(Position(2, 64, 0)),
        Waypoint(Position(2, 64, 1)),
        Waypoint(Position(2, 64, 2)),
        Waypoint(Position(2, 65, 3)),
        Waypoint(Position(2, 65, 4)),
    ]
    kept = [wp.position for wp in compress_route(route)]
    assert Position(2, 64, 0) in kept      # corner
    assert Position(2, 64, 2) in kept      # before the step up
    assert kept[-1] == Position(2, 65, 4)


def test_tagged_waypoint_and_its_approach_survive() -> None:
    route = straight(3) + [
        Waypoint(Position(4, 64, 0), obstacle_id="obstacle_3_64_0", approach=Position(2, 64, 0)),
        Waypoint(Position(5, 64, 0)),
        Waypoint(Position(6, 64, 0)),
    ]
    kept = compress_route(route)
    positions = [wp.position for wp in kept]
    assert Position(2, 64, 0) in positions
    tagged = [wp for wp in kept if wp.needs_interaction]
    assert len(tagged) == 1 and tagged[0].obstacle_id == "obstacle_3_64_0"


def test_pinned_waypoints_survive() -> None:
    route = straight(8)
    kept = compress_route(route, pinned=lambda wp: wp.position.x == 4)
    assert [wp.position.x for wp in kept] == [0, 3, 4, 7]


def test_travel_direction() -> None:
    wp = Waypoint(Position(10, 64, 9), obstacle_id="x", approach=Position(10, 64, 11))
    assert travel_direction(wp) is Facing.NORTH
    with pytest.raises(ValueError):
        travel_direction(Waypoint(Position(0, 64, 0)))


def test_current_position_floors_world_coordinates() -> None:
    assert current_position((10.7, 64.0, -0.2)) == Position(10, 64, -1)
