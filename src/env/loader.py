from __future__ import annotations

import os
from dataclasses import fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

import yaml

from .schema import NavProfile

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_ROOT = PROJECT_ROOT / "config"
DEFAULT_CONFIG = CONFIG_ROOT / "navigation.yaml"

# Overrides the profile named in the file; handy for CI and ad hoc runs.
PROFILE_ENV_VAR = "DOOR_NAV_PROFILE"

_SECTIONS = ("planner", "interaction", "inference", "execution", "discovery")


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML config file and require a mapping at the top."""
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}, got {type(data)}")
    return data


def _select_profile(cfg: Dict[str, Any], override: Optional[str]) -> Tuple[str, Dict[str, Any]]:
    """Return (active_profile_name, active_profile_mapping)."""
    profile_name = override or os.getenv(PROFILE_ENV_VAR) or cfg.get("profile")
    if not profile_name:
        raise ValueError("navigation.yaml must define a 'profile' key.")
    profiles = cfg.get("profiles")
    if not isinstance(profiles, dict):
        raise ValueError("navigation.yaml must define a 'profiles' mapping.")
    if profile_name not in profiles:
        raise KeyError(f"Profile '{profile_name}' not found in navigation.yaml profiles.")
    return profile_name, profiles[profile_name] or {}


def _coerce(where: str, default: Any, value: Any) -> Any:
    """Convert a raw YAML value to the type of the field's default."""
    if isinstance(default, Enum):
        try:
            return type(default)(value)
        except ValueError:
            allowed = ", ".join(m.value for m in type(default))
            raise ValueError(f"{where}: expected one of {allowed}, got {value!r}") from None
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ValueError(f"{where}: expected true/false, got {value!r}")
        return value
    if isinstance(default, (int, float)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{where}: expected a number, got {value!r}")
        if isinstance(default, int) and value != int(value):
            raise ValueError(f"{where}: expected an integer, got {value!r}")
        return type(default)(value)
    if isinstance(default, tuple):
        if not isinstance(value, (list, tuple)) or len(value) != len(default):
            raise ValueError(f"{where}: expected a list of {len(default)} values, got {value!r}")
        return tuple(_coerce(f"{where}[{i}]", d, v) for i, (d, v) in enumerate(zip(default, value)))
    if is_dataclass(default):
        return _build_section(type(default), value, where)
    return value


def _build_section(cls: Type[T], raw: Any, where: str) -> T:
    """Build a config dataclass from a mapping; unknown keys are errors."""
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ValueError(f"{where}: expected a mapping, got {type(raw).__name__}")

    defaults = cls()
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"{where}: unknown key(s) {', '.join(unknown)}")

    values = {
        key: _coerce(f"{where}.{key}", getattr(defaults, key), value)
        for key, value in raw.items()
    }
    return cls(**values)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_nav_config(path: Optional[Path] = None, profile: Optional[str] = None) -> NavProfile:
    """Main entry point: returns the resolved NavProfile."""
    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG
    cfg = _load_yaml(cfg_path)
    active_name, raw = _select_profile(cfg, profile)
    if not isinstance(raw, dict):
        raise ValueError(f"Profile '{active_name}' must be a mapping.")

    allowed = set(_SECTIONS) | {"log_level", "agent_id"}
    unknown = sorted(set(raw) - allowed)
    if unknown:
        raise ValueError(f"profiles.{active_name}: unknown key(s) {', '.join(unknown)}")

    sections = {
        name: _build_section(
            type(getattr(NavProfile(name=active_name), name)),
            raw.get(name),
            f"profiles.{active_name}.{name}",
        )
        for name in _SECTIONS
    }
    agent_id = raw.get("agent_id")
    nav_profile = NavProfile(
        name=active_name,
        log_level=str(raw.get("log_level", "INFO")).upper(),
        agent_id=str(agent_id) if agent_id is not None else None,
        **sections,
    )

    # perform basic validation before returning
    _validate_profile(nav_profile)
    return nav_profile


def _validate_profile(p: NavProfile) -> None:
    """Range checks the dataclasses themselves do not enforce."""
    if p.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ValueError(f"Invalid log_level: {p.log_level}")

    if p.planner.base_cost <= 0:
        raise ValueError("planner.base_cost must be positive")
    if p.planner.interaction_penalty < 0:
        raise ValueError("planner.interaction_penalty must be >= 0")
    if p.planner.max_steps < 1:
        raise ValueError("planner.max_steps must be >= 1")

    i = p.interaction
    if i.max_attempts < 1 or i.verify_polls < 1:
        raise ValueError("interaction.max_attempts and verify_polls must be >= 1")
    for name in ("verify_interval_s", "cooldown_s"):
        if getattr(i, name) < 0:
            raise ValueError(f"interaction.{name} must be >= 0")
    for name in ("approach_timeout_s", "pass_timeout_s", "toggle_timeout_s"):
        if getattr(i, name) <= 0:
            raise ValueError(f"interaction.{name} must be positive")

    if p.inference.assumed_open_ttl_s <= 0:
        raise ValueError("inference.assumed_open_ttl_s must be positive")
    if any(extent < 0 for extent in p.inference.box):
        raise ValueError("inference.box extents must be >= 0")

    if p.execution.move_timeout_s <= 0:
        raise ValueError("execution.move_timeout_s must be positive")
    if p.execution.max_replans < 0:
        raise ValueError("execution.max_replans must be >= 0")
    if p.execution.trail.max_entries < 1:
        raise ValueError("execution.trail.max_entries must be >= 1")

    if p.discovery.scan_radius <= 0 or p.discovery.scan_limit < 1:
        raise ValueError("discovery.scan_radius and scan_limit must be positive")
