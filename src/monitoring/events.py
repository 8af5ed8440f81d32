# path: src/monitoring/events.py
"""
Event schema for door_nav monitoring.

This module defines:
- EventType enum (navigation, planning, interaction, obstacle events)
- MonitoringEvent (structured, JSON-serializable event record)

Events are published through monitoring.bus.EventBus, usually via the
monitoring.logger.log_event helper.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum, auto
from typing import Any, Dict, Optional


# ============================================================
# Event Types
# ============================================================

class EventType(Enum):
    """Typed monitoring events emitted by the navigation core."""

    # NavigationRequest lifecycle (Pending, Planning, Walking, ...)
    NAVIGATION_STATUS = auto()

    # Planner
    ROUTE_PLANNED = auto()
    PLANNING_FAILED = auto()
    REPLAN = auto()

    # Walking
    WAYPOINT_REACHED = auto()

    # InteractionController state machine transitions
    INTERACTION_STATE = auto()

    # ObstacleRegistry changes
    OBSTACLE_REGISTERED = auto()
    OBSTACLE_STATE_CHANGED = auto()
    OBSTACLE_ASSUMED_OPEN = auto()
    OBSTACLE_BLOCKED = auto()
    OBSTACLE_EVICTED = auto()
    REGISTRY_CLEARED = auto()

    # Generic log messages
    LOG = auto()


# ============================================================
# Monitoring Event Structure
# ============================================================

@dataclass
class MonitoringEvent:
    """
    Runtime event emitted by the registry, planner, interaction
    controller or execution loop.

    All fields must be JSON-safe.
    """

    ts: float                   # UNIX timestamp (seconds)
    module: str                 # Source module string ("door_nav.registry", ...)
    event_type: EventType       # Enum describing the event class
    message: str                # Short human-readable description
    payload: Dict[str, Any]     # Structured data (obstacle, route, status)
    correlation_id: Optional[str] = None  # Usually the NavigationRequest id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict for loggers."""
        data = asdict(self)
        data["event_type"] = self.event_type.name  # store name, not enum
        return data
