# NavProfile: typed navigation settings resolved from config/navigation.yaml
# src/env/schema.py

from dataclasses import dataclass, field
from typing import Optional

from door_nav.discovery import DiscoveryConfig
from door_nav.execution import ExecutionConfig
from door_nav.inference import InferenceConfig
from door_nav.interaction import InteractionConfig
from door_nav.nav import PlannerConfig


@dataclass
class NavProfile:
    """One named profile; every section falls back to component defaults."""
    name: str
    log_level: str = "INFO"
    agent_id: Optional[str] = None      # own entity id, ignored by passive inference
    planner: PlannerConfig = field(default_factory=PlannerConfig)
    interaction: InteractionConfig = field(default_factory=InteractionConfig)
    inference: InferenceConfig = field(default_factory=InferenceConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
