# src/door_nav/logging_config.py
"""
Logging setup for processes that embed door_nav.

The core only ever logs through module-level loggers; it never installs
handlers itself. Hosts call this once from their entrypoint:

    from door_nav.logging_config import configure_logging
    configure_logging("DEBUG")
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, Union

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(
    level: Union[int, str] = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
    root: Optional[logging.Logger] = None,
) -> bool:
    """
    Attach a stdout handler to the root logger unless one is already there.
    `root` defaults to the process root logger.

    Returns True if a handler was installed. The door_nav logger level is
    set either way, so a host that configured logging itself can still
    raise or lower navigation verbosity.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"unknown log level {level!r}")
        level = resolved

    logging.getLogger("door_nav").setLevel(level)

    if root is None:
        root = logging.getLogger()
    if root.handlers:
        return False

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=fmt))
    root.addHandler(handler)
    root.setLevel(level)
    return True


__all__ = ["configure_logging", "DEFAULT_FORMAT"]
