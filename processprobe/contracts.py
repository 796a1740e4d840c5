"""Process structure and workflow contracts for processprobe."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .constants import PATH_HASH_SEPARATOR


class StepType(str, Enum):
    """Kinds of step an authored process node can describe."""

    TRIGGER = "trigger"
    ACTION = "action"
    CONDITION = "condition"
    TRANSFORM = "transform"
    EXTERNAL_CALL = "external_call"
    STORAGE = "storage"
    NOTIFICATION = "notification"


MockType = Literal["success", "error", "timeout", "rate_limit", "auth_failure"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class NodeTestConfig(_CamelModel):
    """Per-node overrides of the step-type test defaults."""

    timeout_ms: Optional[int] = Field(default=None, ge=0)
    retry_count: Optional[int] = Field(default=None, ge=0)
    mockable: Optional[bool] = None
    requires_real_api: Optional[bool] = None
    operations: Optional[List[str]] = None


class ProcessNode(_CamelModel):
    """One authored step of a process structure."""

    id: str = Field(..., min_length=1)
    label: str = Field(..., min_length=1)
    step_type: StepType
    integration: Optional[str] = None
    execution_order: int = 0
    shape: Optional[str] = None
    test_config: Optional[NodeTestConfig] = None

    @field_validator("id")
    @classmethod
    def _no_separator(cls, v: str) -> str:
        if PATH_HASH_SEPARATOR in v:
            raise ValueError(f"node id must not contain {PATH_HASH_SEPARATOR!r}")
        return v

    @property
    def is_decision_shape(self) -> bool:
        return self.shape == "decision"


class ProcessConnection(_CamelModel):
    """Directed, optionally labelled edge between two nodes."""

    source: str = Field(..., alias="from")
    target: str = Field(..., alias="to")
    label: Optional[str] = None
    style: Optional[Literal["optional", "critical"]] = None


class ProcessStructure(_CamelModel):
    """Authored process graph. Immutable input to conversion and discovery."""

    schema_version: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    nodes: List[ProcessNode] = Field(default_factory=list)
    connections: List[ProcessConnection] = Field(default_factory=list)
    subgraphs: List[Dict[str, Any]] = Field(default_factory=list)

    def node_map(self) -> Dict[str, ProcessNode]:
        return {node.id: node for node in self.nodes}


class StepTestConfig(BaseModel):
    """Resolved test-execution settings of a workflow step."""

    timeout_ms: int
    retry_count: int = 0
    mockable: bool = True
    requires_real_api: bool = False
    operations: List[str] = Field(default_factory=lambda: ["read"])


class WorkflowStepDefinition(BaseModel):
    """Engine-native rendering of a process node."""

    id: str
    name: str
    type: StepType
    integration: Optional[str] = None
    description: str = ""
    input_schema: Dict[str, Any] = Field(default_factory=dict)
    output_schema: Dict[str, Any] = Field(default_factory=dict)
    dependencies: List[str] = Field(default_factory=list)
    test_config: StepTestConfig


class WorkflowConnection(BaseModel):
    """Workflow-level rendering of a process connection."""

    id: str
    source: str
    target: str
    condition: str
    label: Optional[str] = None


class IntegrationMock(BaseModel):
    """Controllable simulated response for one integration."""

    integration: str
    mock_type: MockType = "success"
    is_active: bool = True
    priority: int = 0
    delay_ms: int = Field(default=0, ge=0)
    response_data: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None


class Workflow(BaseModel):
    """Execution-ready workflow derived from a process structure."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    process_map_id: str
    org_id: str
    name: str
    description: str = ""
    schema_version: str
    steps: List[WorkflowStepDefinition] = Field(default_factory=list)
    connections: List[WorkflowConnection] = Field(default_factory=list)
    mock_config: Dict[str, IntegrationMock] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def get_step(self, step_id: str) -> Optional[WorkflowStepDefinition]:
        """Return the step with ``step_id`` if present."""
        return next((s for s in self.steps if s.id == step_id), None)

    def execution_order(self) -> List[str]:
        """Return step ids with every dependency ahead of its dependents.

        Steps are visited in their stored order; dependencies are resolved
        depth-first. Dependency cycles are broken at the first revisit.
        """
        steps = {step.id: step for step in self.steps}
        visited: set[str] = set()
        order: List[str] = []

        for root in self.steps:
            if root.id in visited:
                continue
            stack: List[tuple[str, bool]] = [(root.id, False)]
            while stack:
                step_id, expanded = stack.pop()
                if expanded:
                    order.append(step_id)
                    continue
                if step_id in visited or step_id not in steps:
                    continue
                visited.add(step_id)
                stack.append((step_id, True))
                for dep in reversed(steps[step_id].dependencies):
                    if dep not in visited:
                        stack.append((dep, False))
        return order
