#tests/test_monitoring_logger.py
"""
Tests for monitoring.logger.log_event and MonitoringEvent.to_dict.
"""

from __future__ import annotations

import json
from typing import List

from monitoring.bus import EventBus
from monitoring.events import EventType, MonitoringEvent
from monitoring.logger import log_event


def test_log_event_publishes_structured_event():
    bus = EventBus()
    received: List[MonitoringEvent] = []
    bus.subscribe(received.append)

    log_event(
        bus=bus,
        module="door_nav.registry",
        event_type=EventType.OBSTACLE_BLOCKED,
        message="Obstacle blocked for session",
        payload={"obstacle_id": "obstacle_10_64_20"},
        correlation_id="nav-3",
    )

    assert len(received) == 1
    evt = received[0]
    assert evt.module == "door_nav.registry"
    assert evt.event_type is EventType.OBSTACLE_BLOCKED
    assert evt.payload == {"obstacle_id": "obstacle_10_64_20"}
    assert evt.correlation_id == "nav-3"
    assert evt.ts > 0


def test_log_event_without_bus_is_a_no_op():
    # Components built without a bus pass None straight through.
    log_event(None, "door_nav.planner", EventType.ROUTE_PLANNED, "planned")


def test_log_event_defaults_payload_to_empty_dict():
    bus = EventBus()
    received: List[MonitoringEvent] = []
    bus.subscribe(received.append)

    log_event(bus, "door_nav.execution", EventType.LOG, "hello")

    assert received[0].payload == {}
    assert received[0].correlation_id is None


def test_to_dict_is_json_safe():
    evt = MonitoringEvent(
        ts=12.5,
        module="door_nav.interaction",
        event_type=EventType.INTERACTION_STATE,
        message="verifying",
        payload={"state": "verifying", "attempts": 1},
        correlation_id="nav-1",
    )
    data = evt.to_dict()
    assert data["event_type"] == "INTERACTION_STATE"
    assert json.loads(json.dumps(data)) == data
