# src/door_nav/testing/__init__.py
"""In-memory stand-ins for the world collaborator, for tests and demos."""

from .fakes import FakeClock, FakeDoor, FakeWorld

__all__ = ["FakeClock", "FakeDoor", "FakeWorld"]
