# rich-based TUI dashboard
# src/monitoring/dashboard_tui.py
"""
TUI dashboard for door_nav.

A lightweight terminal UI (using `rich`) that subscribes to the monitoring
EventBus and renders:

- Navigation:
    - Request id and status
    - Destination, replans
    - Last route summary

- Interaction:
    - Current obstacle
    - State machine state and attempt count

- Known obstacles:
    - Label, open/assumed/blocked flags, attempts

- Last failure (planning or navigation)

This runs entirely offline. No web server, no external services.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .bus import EventBus, default_bus
from .events import EventType, MonitoringEvent

MAX_OBSTACLE_ROWS = 12


# ============================================================
# TUI Dashboard
# ============================================================

class NavDashboard:
    """
    Live terminal dashboard bound to a monitoring.EventBus.

    It consumes MonitoringEvents and keeps a small in-memory state
    representation, which is rendered periodically via rich.
    """

    def __init__(self, bus: EventBus, console: Optional[Console] = None) -> None:
        self._bus = bus
        self._console = console or Console()
        self._lock = threading.Lock()

        # Internal state snapshot for display
        self._state: Dict[str, Any] = {
            "request_id": None,
            "status": "idle",
            "replans": 0,
            "route": None,               # {"waypoints", "cost", "tagged"}
            "obstacle_id": None,
            "interaction_state": None,
            "attempts": None,
            "obstacles": {},             # {obstacle_id: summary dict}
            "last_failure": None,
        }

        self._bus.subscribe(self._on_event)

    @property
    def state(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._state)

    def close(self) -> None:
        self._bus.unsubscribe(self._on_event)

    # --------------------------------------------------------
    # Event handler
    # --------------------------------------------------------

    def _on_event(self, event: MonitoringEvent) -> None:
        """
        Update dashboard state based on a MonitoringEvent.
        This should be cheap and non-blocking.
        """
        et = event.event_type
        p = event.payload

        with self._lock:
            if et == EventType.NAVIGATION_STATUS:
                if p.get("request_id") != self._state["request_id"]:
                    self._state["request_id"] = p.get("request_id")
                    self._state["replans"] = 0
                    self._state["route"] = None
                self._state["status"] = p.get("status", "unknown")

            elif et == EventType.ROUTE_PLANNED:
                self._state["route"] = {
                    "waypoints": p.get("waypoints"),
                    "cost": p.get("cost"),
                    "tagged": list(p.get("tagged") or []),
                }

            elif et == EventType.PLANNING_FAILED:
                self._state["last_failure"] = {
                    "reason": p.get("reason", "unknown"),
                    "request_id": event.correlation_id,
                }

            elif et == EventType.REPLAN:
                self._state["replans"] = p.get("replans", self._state["replans"])
                self._state["last_failure"] = {
                    "reason": p.get("code", "unknown"),
                    "request_id": p.get("request_id"),
                }

            elif et == EventType.INTERACTION_STATE:
                self._state["obstacle_id"] = p.get("obstacle_id")
                self._state["interaction_state"] = p.get("state")
                self._state["attempts"] = p.get("attempts")

            elif et in (
                EventType.OBSTACLE_REGISTERED,
                EventType.OBSTACLE_STATE_CHANGED,
                EventType.OBSTACLE_BLOCKED,
            ):
                obstacle = p.get("obstacle") or {}
                if obstacle.get("id"):
                    self._state["obstacles"][obstacle["id"]] = obstacle

            elif et == EventType.OBSTACLE_ASSUMED_OPEN:
                known = self._state["obstacles"].get(p.get("obstacle_id"))
                if known is not None:
                    known["assumed_open_until"] = p.get("until")

            elif et == EventType.OBSTACLE_EVICTED:
                self._state["obstacles"].pop(p.get("obstacle_id"), None)

            elif et == EventType.REGISTRY_CLEARED:
                self._state["obstacles"] = {}

    # --------------------------------------------------------
    # Rendering helpers
    # --------------------------------------------------------

    def _render_nav_panel(self) -> Panel:
        """Top: request id, status and route summary."""
        s = self._state
        route = s["route"]

        txt = Text()
        txt.append("Request: ", style="bold")
        txt.append(f"{s['request_id'] or '<none>'}\n")
        txt.append("Status: ", style="bold")
        txt.append(f"{s['status']}\n")
        txt.append("Route: ", style="bold")
        if route:
            txt.append(
                f"{route['waypoints']} waypoints, cost {route['cost']}, "
                f"{len(route['tagged'])} barrier(s), replans {s['replans']}"
            )
        else:
            txt.append("<none>")

        return Panel(txt, title="Navigation", border_style="cyan")

    def _render_interaction_panel(self) -> Panel:
        s = self._state
        table = Table.grid(pad_edge=False)
        table.add_column(justify="left")

        oid = s["obstacle_id"]
        label = (s["obstacles"].get(oid) or {}).get("label", oid) if oid else "<none>"
        table.add_row(f"[bold]Obstacle:[/bold] {label}")
        table.add_row(f"[bold]State:[/bold] {s['interaction_state'] or '-'}")
        attempts = s["attempts"]
        table.add_row(f"[bold]Attempts:[/bold] {attempts if attempts is not None else '-'}")

        failure = s["last_failure"]
        table.add_row("")
        if failure:
            table.add_row("[bold red]Last failure:[/bold red]")
            table.add_row(f"[bold]Reason:[/bold] {failure.get('reason')}")
            if failure.get("request_id"):
                table.add_row(f"[bold]Request:[/bold] {failure['request_id']}")
        else:
            table.add_row("[bold green]No failures recorded.[/bold green]")

        return Panel(table, title="Interaction", border_style="yellow")

    def _render_obstacle_panel(self) -> Panel:
        obstacles = list(self._state["obstacles"].values())

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Obstacle", style="bold")
        table.add_column("Open", justify="center")
        table.add_column("Assumed", justify="center")
        table.add_column("Attempts", justify="right")
        table.add_column("Blocked", justify="center")

        if not obstacles:
            table.add_row("<none>", "-", "-", "-", "-")
        for obstacle in obstacles[:MAX_OBSTACLE_ROWS]:
            table.add_row(
                str(obstacle.get("label", obstacle.get("id"))),
                "yes" if obstacle.get("confirmed_open") else "no",
                "yes" if obstacle.get("assumed_open_until") else "-",
                str(obstacle.get("attempts", 0)),
                "[red]yes[/red]" if obstacle.get("blocked_for_session") else "no",
            )

        subtitle = None
        if len(obstacles) > MAX_OBSTACLE_ROWS:
            subtitle = f"{len(obstacles) - MAX_OBSTACLE_ROWS} more not shown"
        return Panel(table, title="Known Obstacles", subtitle=subtitle, border_style="magenta")

    def build_layout(self) -> Layout:
        """
        Construct the overall layout for the dashboard.
        """
        layout = Layout()
        with self._lock:
            layout.split(
                Layout(self._render_nav_panel(), name="top", size=5),
                Layout(name="middle", ratio=1),
            )
            layout["middle"].split_row(
                Layout(self._render_interaction_panel(), name="interaction"),
                Layout(self._render_obstacle_panel(), name="obstacles", ratio=2),
            )
        return layout

    # --------------------------------------------------------
    # Main loop
    # --------------------------------------------------------

    def run(self, refresh_per_second: float = 4.0, stop: Optional[threading.Event] = None) -> None:
        """
        Run the TUI loop until `stop` is set (or forever).

        This blocks the current thread. Use a separate thread if needed.
        """
        stop = stop or threading.Event()
        refresh_delay = 1.0 / max(refresh_per_second, 0.1)
        with Live(self.build_layout(), console=self._console, refresh_per_second=refresh_per_second) as live:
            while not stop.wait(refresh_delay):
                live.update(self.build_layout())


def run_dashboard_with_default_bus() -> None:
    """Spawn a dashboard bound to monitoring.bus.default_bus."""
    NavDashboard(default_bus).run()


if __name__ == "__main__":
    run_dashboard_with_default_bus()
