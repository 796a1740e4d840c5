"""Build a scenario catalogue from discovered paths."""

from __future__ import annotations

from typing import List

from ..contracts import ProcessStructure
from ..converter import structure_fingerprint
from ..schemas import normalize_integration_name
from .entities import MockOverride, PathDiscoveryResult, ScenarioPath, TestScenario

HAPPY_PATH_PRIORITY = 100
BRANCH_PATH_PRIORITY = 50
FAILURE_MODE_PRIORITY = 25


def _describe_decisions(path: ScenarioPath) -> str:
    return ", ".join(f"{d.node_id}={d.condition}" for d in path.decisions)


def build_scenarios(
    structure: ProcessStructure, result: PathDiscoveryResult
) -> List[TestScenario]:
    """Return happy-path, branch-path and failure-mode scenarios.

    Failure-mode scenarios fail the integration behind each integration step
    on the happy path, one step at a time.
    """

    fingerprint = structure_fingerprint(structure)
    nodes = structure.node_map()
    scenarios: List[TestScenario] = []

    happy = result.happy_path()
    if happy is None:
        return scenarios

    scenarios.append(
        TestScenario(
            name="Happy path",
            description=" -> ".join(nodes[s].label for s in happy.step_ids),
            scenario_type="happy_path",
            path=happy,
            priority=HAPPY_PATH_PRIORITY,
            tags=("happy_path",),
            structure_hash=fingerprint,
        )
    )

    for index, path in enumerate(result.branch_paths(), start=1):
        if path.path_hash == happy.path_hash:
            continue
        scenarios.append(
            TestScenario(
                name=f"Branch {index}: {_describe_decisions(path)}",
                description=" -> ".join(nodes[s].label for s in path.step_ids),
                scenario_type="branch_path",
                path=path,
                priority=BRANCH_PATH_PRIORITY,
                tags=("branch_path",) + tuple(d.condition for d in path.decisions),
                structure_hash=fingerprint,
            )
        )

    for step_id in happy.step_ids:
        integration = normalize_integration_name(nodes[step_id].integration)
        if not integration:
            continue
        scenarios.append(
            TestScenario(
                name=f"Failure: {nodes[step_id].label} ({integration} error)",
                description=f"{integration} returns an error at step {step_id}",
                scenario_type="failure_mode",
                path=happy,
                mock_overrides=(
                    MockOverride(step_id=step_id, integration=integration, mock_type="error"),
                ),
                expected_result="fail",
                expected_failure_step=step_id,
                priority=FAILURE_MODE_PRIORITY,
                tags=("failure_mode", integration),
                structure_hash=fingerprint,
            )
        )
    return scenarios
