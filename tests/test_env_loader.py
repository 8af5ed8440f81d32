# tests/test_env_loader.py
"""
Tests for env.loader.load_nav_config.

Covers:
- The shipped config/navigation.yaml loads for every profile
- Sections fall back to component defaults
- Profile selection: argument, environment variable, file default
- Validation errors for unknown keys and bad values
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from door_nav.interaction import AssumedOpenPolicy
from env.loader import DEFAULT_CONFIG, PROFILE_ENV_VAR, load_nav_config
from env.schema import NavProfile


def write_config(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "navigation.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_shipped_config_loads(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(PROFILE_ENV_VAR, raising=False)
    assert DEFAULT_CONFIG.exists()

    profile = load_nav_config()
    assert isinstance(profile, NavProfile)
    assert profile.name == "default"
    assert profile.planner.base_cost == 1.0
    assert profile.planner.interaction_penalty == 2.0
    assert profile.planner.max_steps == 4096
    assert profile.interaction.max_attempts == 3
    assert profile.interaction.verify_polls == 10
    assert profile.interaction.verify_interval_s == pytest.approx(0.1)
    assert profile.interaction.cooldown_s == pytest.approx(0.5)
    assert profile.inference.assumed_open_ttl_s == pytest.approx(5.0)
    assert profile.inference.box == (1, 2, 1)
    assert profile.execution.trail.max_entries == 10

    for name in ("cautious", "debug"):
        assert load_nav_config(profile=name).name == name


def test_cautious_profile_verifies_assumed_open_doors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(PROFILE_ENV_VAR, raising=False)
    profile = load_nav_config(profile="cautious")
    assert profile.interaction.assumed_open_policy is AssumedOpenPolicy.VERIFY_ON_ARRIVAL
    # Untouched keys keep their defaults.
    assert profile.interaction.max_attempts == 3
    assert profile.planner.max_steps == 4096


def test_profile_selection_order(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = write_config(
        tmp_path,
        {"profile": "a", "profiles": {"a": {"log_level": "info"}, "b": {"log_level": "debug"}}},
    )
    monkeypatch.delenv(PROFILE_ENV_VAR, raising=False)
    assert load_nav_config(path).name == "a"
    assert load_nav_config(path).log_level == "INFO"

    monkeypatch.setenv(PROFILE_ENV_VAR, "b")
    assert load_nav_config(path).name == "b"
    assert load_nav_config(path, profile="a").name == "a"


def test_nested_and_typed_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(PROFILE_ENV_VAR, raising=False)
    path = write_config(
        tmp_path,
        {
            "profile": "p",
            "profiles": {
                "p": {
                    "agent_id": 42,
                    "planner": {"max_steps": 100, "interaction_penalty": 3},
                    "inference": {"box": [2, 3, 2]},
                    "execution": {"trail": {"max_entries": 4}},
                }
            },
        },
    )
    profile = load_nav_config(path)
    assert profile.agent_id == "42"
    assert profile.planner.max_steps == 100
    assert profile.planner.interaction_penalty == 3.0
    assert isinstance(profile.planner.interaction_penalty, float)
    assert profile.inference.box == (2, 3, 2)
    assert profile.execution.trail.max_entries == 4
    assert profile.execution.trail.min_spacing == 0.5


@pytest.mark.parametrize(
    "profile_body, message",
    [
        ({"planner": {"max_stepz": 1}}, "unknown key"),
        ({"colour": "blue"}, "unknown key"),
        ({"planner": {"max_steps": "lots"}}, "expected a number"),
        ({"planner": {"max_steps": 1.5}}, "expected an integer"),
        ({"planner": {"base_cost": 0}}, "base_cost"),
        ({"interaction": {"assumed_open_policy": "hope"}}, "expected one of"),
        ({"interaction": {"max_attempts": 0}}, "max_attempts"),
        ({"execution": {"scan_before_plan": "yes"}}, "true/false"),
        ({"inference": {"box": [1, 2]}}, "list of 3"),
        ({"log_level": "chatty"}, "log_level"),
        ({"planner": [1, 2]}, "expected a mapping"),
    ],
)
def test_invalid_values_raise(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, profile_body, message) -> None:
    monkeypatch.delenv(PROFILE_ENV_VAR, raising=False)
    path = write_config(tmp_path, {"profile": "p", "profiles": {"p": profile_body}})
    with pytest.raises(ValueError, match=message):
        load_nav_config(path)


def test_missing_file_and_profile(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(PROFILE_ENV_VAR, raising=False)
    with pytest.raises(FileNotFoundError):
        load_nav_config(tmp_path / "nope.yaml")

    path = write_config(tmp_path, {"profile": "ghost", "profiles": {"p": {}}})
    with pytest.raises(KeyError):
        load_nav_config(path)

    path = write_config(tmp_path, {"profiles": {"p": {}}})
    with pytest.raises(ValueError):
        load_nav_config(path)
