# tests/test_logging_config.py
"""
Tests for door_nav.logging_config.configure_logging.

Handlers are installed on a private logger so the test runner's own
root handlers don't interfere.
"""

from __future__ import annotations

import logging

import pytest

from door_nav.logging_config import configure_logging


@pytest.fixture
def nav_level(monkeypatch: pytest.MonkeyPatch) -> logging.Logger:
    """door_nav logger whose level is restored after the test."""
    nav_logger = logging.getLogger("door_nav")
    monkeypatch.setattr(nav_logger, "level", nav_logger.level)
    return nav_logger


def test_installs_stdout_handler_once(nav_level: logging.Logger):
    root = logging.Logger("isolated-root")

    assert configure_logging("debug", root=root) is True
    assert len(root.handlers) == 1
    assert root.level == logging.DEBUG
    assert nav_level.level == logging.DEBUG

    assert configure_logging(logging.WARNING, root=root) is False
    assert len(root.handlers) == 1
    assert nav_level.level == logging.WARNING


def test_existing_handlers_are_left_alone(nav_level: logging.Logger):
    root = logging.Logger("isolated-root")
    existing = logging.NullHandler()
    root.addHandler(existing)

    assert configure_logging("INFO", root=root) is False
    assert root.handlers == [existing]
    assert nav_level.level == logging.INFO


def test_rejects_unknown_level(nav_level: logging.Logger):
    root = logging.Logger("isolated-root")
    with pytest.raises(ValueError):
        configure_logging("chatty", root=root)
    assert root.handlers == []
