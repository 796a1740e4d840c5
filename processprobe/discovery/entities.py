"""Typed results of path discovery."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..constants import PATH_HASH_SEPARATOR


class DecisionPoint(BaseModel):
    """A labelled branch taken out of a multi-exit node."""

    node_id: str
    condition: str
    next_node_id: str

    model_config = ConfigDict(frozen=True)


class ScenarioPath(BaseModel):
    """One acyclic route through the step graph."""

    step_ids: tuple[str, ...]
    decisions: tuple[DecisionPoint, ...] = Field(default_factory=tuple)
    total_steps: int = 0
    path_hash: str = ""
    partial: bool = False

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _derive_counts(cls, data: Any) -> Any:
        if isinstance(data, dict) and "step_ids" in data:
            step_ids = tuple(data["step_ids"])
            data = {
                **data,
                "total_steps": len(step_ids),
                "path_hash": PATH_HASH_SEPARATOR.join(step_ids),
            }
        return data

    @model_validator(mode="after")
    def _ensure_acyclic(self) -> ScenarioPath:
        if len(set(self.step_ids)) != len(self.step_ids):
            raise ValueError("a scenario path must not visit a step twice")
        return self


class PathDiscoveryResult(BaseModel):
    """Catalogue of paths discovered in a process structure."""

    paths: tuple[ScenarioPath, ...] = Field(default_factory=tuple)
    entry_points: tuple[str, ...] = Field(default_factory=tuple)
    exit_points: tuple[str, ...] = Field(default_factory=tuple)
    total_branches: int = 0
    truncated: bool = False
    warnings: tuple[str, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True)

    def happy_path(self) -> Optional[ScenarioPath]:
        """Path with the fewest decisions, longest on ties."""
        if not self.paths:
            return None
        return min(self.paths, key=lambda p: (len(p.decisions), -p.total_steps))

    def branch_paths(self) -> list[ScenarioPath]:
        """All paths that take at least one decision."""
        return [p for p in self.paths if p.decisions]


ScenarioType = Literal["happy_path", "branch_path", "failure_mode"]


class MockOverride(BaseModel):
    """Simulated integration behaviour applied while a scenario runs."""

    step_id: str
    integration: str
    mock_type: Literal["success", "error", "timeout", "rate_limit", "auth_failure"]

    model_config = ConfigDict(frozen=True)


class TestScenario(BaseModel):
    """A runnable scenario built from a discovered path."""

    __test__ = False

    name: str
    description: str = ""
    scenario_type: ScenarioType
    path: ScenarioPath
    mock_overrides: tuple[MockOverride, ...] = Field(default_factory=tuple)
    expected_result: Literal["pass", "fail"] = "pass"
    expected_failure_step: Optional[str] = None
    priority: int = 0
    tags: tuple[str, ...] = Field(default_factory=tuple)
    structure_hash: Optional[str] = None

    model_config = ConfigDict(frozen=True)
