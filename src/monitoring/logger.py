# helper for publishing monitoring events
"""
Structured event helper for door_nav monitoring.

Provides:
- log_event: build a MonitoringEvent and publish it on an EventBus.

Components hold an Optional[EventBus]; log_event accepts None and does
nothing in that case, so call sites don't need to branch.

Usage:

    from monitoring.events import EventType
    from monitoring.logger import log_event

    log_event(
        bus=self._bus,
        module="door_nav.registry",
        event_type=EventType.OBSTACLE_BLOCKED,
        message="Obstacle blocked for session",
        payload={"obstacle": obstacle.to_dict()},
    )
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

from .bus import EventBus
from .events import EventType, MonitoringEvent


def log_event(
    bus: Optional[EventBus],
    module: str,
    event_type: EventType,
    message: str,
    payload: Optional[Dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> None:
    """
    Create and publish a MonitoringEvent.

    Parameters
    ----------
    bus:
        EventBus instance to publish to. None disables publishing.
    module:
        String identifying the source module ("door_nav.execution", ...).
    event_type:
        EventType enum member describing what kind of event this is.
    message:
        Short human-readable description.
    payload:
        Structured JSON-safe data attached to this event.
    correlation_id:
        Optional ID linking related events (usually the request id).
    """
    if bus is None:
        return
    event = MonitoringEvent(
        ts=time.time(),
        module=module,
        event_type=event_type,
        message=message,
        payload=payload or {},
        correlation_id=correlation_id,
    )
    bus.publish(event)
