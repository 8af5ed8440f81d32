# tests/test_passive_inference.py
"""
Tests for door_nav.inference.PassiveStateInference.

An agent seen inside the bounding volume around a barrier marks it as
assumed open for the TTL; everything else is left alone.
"""

from __future__ import annotations

import pytest

from door_nav.inference import InferenceConfig, PassiveStateInference
from door_nav.obstacles import Facing, Obstacle, ObstacleKind
from door_nav.position import Position
from door_nav.registry import ObstacleRegistry
from door_nav.testing import FakeClock, FakeWorld


def setup_registry():
    clock = FakeClock()
    registry = ObstacleRegistry(clock=clock)
    oid = registry.register(
        Obstacle(position=Position(10, 64, 20), kind=ObstacleKind.DOOR, facing=Facing.NORTH)
    )
    return clock, registry, oid


@pytest.mark.parametrize(
    "position",
    [
        (10, 64, 20),          # standing in the doorway
        (11.4, 65.0, 19.2),    # diagonal corner of the box, floats
        (9, 66, 21),           # dy == 2 still counts
    ],
)
def test_agent_inside_box_marks_assumed_open(position) -> None:
    clock, registry, oid = setup_registry()
    inference = PassiveStateInference(registry)

    marked = inference.on_other_agent_moved("Steve", position)

    assert marked == [oid]
    obstacle = registry.get(oid)
    assert obstacle.assumed_open_until == pytest.approx(clock() + 5.0)
    assert obstacle.confirmed_open is False
    assert inference.last_pass(oid).agent_id == "Steve"


@pytest.mark.parametrize("position", [(12, 64, 20), (10, 67, 20), (10, 64, 22)])
def test_agent_outside_box_is_ignored(position) -> None:
    _, registry, oid = setup_registry()
    inference = PassiveStateInference(registry)

    assert inference.on_other_agent_moved("Alex", position) == []
    assert not registry.is_assumed_open(oid)
    assert inference.last_pass(oid) is None


def test_own_movement_and_bad_positions_are_ignored() -> None:
    _, registry, oid = setup_registry()
    inference = PassiveStateInference(registry, self_id="me")

    assert inference.on_other_agent_moved("me", (10, 64, 20)) == []
    assert inference.on_other_agent_moved("Alex", "nowhere") == []
    assert not registry.is_assumed_open(oid)


def test_custom_ttl_and_attach_to_world() -> None:
    clock, registry, oid = setup_registry()
    inference = PassiveStateInference(registry, InferenceConfig(assumed_open_ttl_s=2.0))
    world = FakeWorld(start=(0, 64, 0))
    inference.attach(world)

    world.emit_other_agent_moved("Steve", {"x": 10.5, "y": 64.0, "z": 20.5})
    assert registry.is_likely_open(oid)

    clock.advance(2.1)
    assert not registry.is_likely_open(oid)

    inference.clear()
    assert inference.last_pass(oid) is None
