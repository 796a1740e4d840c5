"""Path discovery and scenario catalogue."""

from .entities import (
    DecisionPoint,
    MockOverride,
    PathDiscoveryResult,
    ScenarioPath,
    TestScenario,
)
from .paths import PathDiscoverer, discover_paths
from .scenarios import build_scenarios

__all__ = [
    "DecisionPoint",
    "MockOverride",
    "PathDiscoverer",
    "PathDiscoveryResult",
    "ScenarioPath",
    "TestScenario",
    "build_scenarios",
    "discover_paths",
]
