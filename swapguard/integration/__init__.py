"""
Host integration layer: settings, in-memory collaborators, scenario replay
"""

from .memory import InMemoryPoolManager, PoolSnapshot, PositionChange, StaticPriceOracle
from .replay import ReplayOutcome, Scenario, build_scenario, load_scenario, run_scenario
from .settings import Settings, load_settings, settings_from_mapping

__all__ = [
    "InMemoryPoolManager",
    "PoolSnapshot",
    "PositionChange",
    "StaticPriceOracle",
    "ReplayOutcome",
    "Scenario",
    "build_scenario",
    "load_scenario",
    "run_scenario",
    "Settings",
    "load_settings",
    "settings_from_mapping",
]
