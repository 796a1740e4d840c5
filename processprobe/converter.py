"""Convert authored process structures into executable workflows."""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from .constants import DEFAULT_STEP_TIMEOUT_MS, SUPPORTED_SCHEMA_VERSIONS
from .contracts import (
    IntegrationMock,
    NodeTestConfig,
    ProcessConnection,
    ProcessNode,
    ProcessStructure,
    StepTestConfig,
    StepType,
    Workflow,
    WorkflowConnection,
    WorkflowStepDefinition,
)
from .errors import ProcessStructureError
from .schemas import normalize_integration_name, schemas_for

logger = logging.getLogger(__name__)

__all__ = [
    "STEP_TYPE_TEST_DEFAULTS",
    "convert_process_structure",
    "load_process_structure",
    "structure_fingerprint",
    "validate_process_structure",
]

_BASE_TEST_DEFAULTS: Dict[str, Any] = {
    "timeout_ms": DEFAULT_STEP_TIMEOUT_MS,
    "retry_count": 0,
    "mockable": True,
    "requires_real_api": False,
    "operations": ["read"],
}

STEP_TYPE_TEST_DEFAULTS: Dict[StepType, Dict[str, Any]] = {
    StepType.TRIGGER: {"timeout_ms": 10_000},
    StepType.ACTION: {"operations": ["create"]},
    StepType.CONDITION: {"timeout_ms": 5_000},
    StepType.TRANSFORM: {"timeout_ms": 5_000},
    StepType.EXTERNAL_CALL: {"timeout_ms": 60_000, "retry_count": 2},
    StepType.STORAGE: {"operations": ["read", "write"]},
    StepType.NOTIFICATION: {"timeout_ms": 10_000, "operations": ["write"]},
}

_VALID_STEP_TYPES = {t.value for t in StepType}

RawStructure = Union[Mapping, ProcessStructure]


def _get(raw: Mapping, *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def validate_process_structure(structure: RawStructure) -> List[str]:
    """Return every problem that makes ``structure`` unconvertible.

    An empty list means the structure is well-formed.
    """

    if isinstance(structure, ProcessStructure):
        structure = structure.model_dump(by_alias=True)
    if not isinstance(structure, Mapping):
        return ["process structure must be a mapping"]

    problems: List[str] = []
    version = _get(structure, "schemaVersion", "schema_version")
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        problems.append(f"unsupported schemaVersion: {version!r}")

    nodes = _get(structure, "nodes") or []
    if not isinstance(nodes, list) or not nodes:
        problems.append("process structure must contain at least one node")
        return problems

    seen: set[str] = set()
    for index, node in enumerate(nodes):
        if not isinstance(node, Mapping):
            problems.append(f"node[{index}] must be a mapping")
            continue
        node_id = node.get("id")
        if not node_id:
            problems.append(f"node[{index}] is missing an id")
        elif node_id in seen:
            problems.append(f"duplicate node id: {node_id}")
        else:
            seen.add(node_id)
        if not node.get("label"):
            problems.append(f"node[{index}] ({node_id or '?'}) is missing a label")
        step_type = _get(node, "stepType", "step_type")
        if not step_type:
            problems.append(f"node[{index}] ({node_id or '?'}) is missing a stepType")
        elif str(getattr(step_type, "value", step_type)) not in _VALID_STEP_TYPES:
            problems.append(f"node[{index}] ({node_id or '?'}) has unknown stepType {step_type!r}")
    return problems


def load_process_structure(raw: RawStructure) -> ProcessStructure:
    """Validate and parse ``raw`` into a :class:`ProcessStructure`."""

    if isinstance(raw, ProcessStructure):
        problems = validate_process_structure(raw)
        if problems:
            raise ProcessStructureError(problems)
        return raw

    problems = validate_process_structure(raw)
    if problems:
        raise ProcessStructureError(problems)
    try:
        return ProcessStructure.model_validate(raw)
    except ValidationError as exc:
        raise ProcessStructureError(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ) from exc


def structure_fingerprint(structure: RawStructure) -> str:
    """Stable hash of a structure, used to detect stale scenario catalogues."""

    if isinstance(structure, ProcessStructure):
        data: Any = structure.model_dump(mode="json", by_alias=True)
    else:
        data = structure
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _resolve_test_config(
    node: ProcessNode, override: Optional[Mapping[str, Any]]
) -> StepTestConfig:
    values = dict(_BASE_TEST_DEFAULTS)
    values.update(STEP_TYPE_TEST_DEFAULTS.get(node.step_type, {}))
    if node.test_config is not None:
        values.update(node.test_config.model_dump(exclude_none=True))
    if override:
        values.update(
            NodeTestConfig.model_validate(override).model_dump(exclude_none=True)
        )
    return StepTestConfig(**values)


def _dependencies_by_target(connections: Iterable[ProcessConnection]) -> Dict[str, List[str]]:
    deps: Dict[str, List[str]] = {}
    for conn in connections:
        bucket = deps.setdefault(conn.target, [])
        if conn.source not in bucket:
            bucket.append(conn.source)
    return deps


def _connection_condition(conn: ProcessConnection) -> str:
    if conn.label:
        return conn.label
    return "optional" if conn.style == "optional" else "required"


def convert_process_structure(
    structure: RawStructure,
    *,
    process_map_id: str,
    org_id: str,
    test_config_overrides: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> Workflow:
    """Map a process structure onto the engine's workflow representation.

    Args:
        structure: Parsed structure or raw mapping (camelCase keys).
        process_map_id: Identifier of the process map being tested.
        org_id: Organisation owning the workflow.
        test_config_overrides: Optional per-node-id test config overrides,
            applied on top of node and step-type defaults.

    Raises:
        ProcessStructureError: If the structure is malformed.
    """

    parsed = load_process_structure(structure)
    overrides = test_config_overrides or {}
    deps = _dependencies_by_target(parsed.connections)

    ordered_nodes = sorted(parsed.nodes, key=lambda n: n.execution_order)
    steps: List[WorkflowStepDefinition] = []
    for node in ordered_nodes:
        input_schema, output_schema = schemas_for(node.step_type, node.integration)
        steps.append(
            WorkflowStepDefinition(
                id=node.id,
                name=node.label,
                type=node.step_type,
                integration=normalize_integration_name(node.integration),
                description=f"{node.step_type.value.replace('_', ' ')} step: {node.label}",
                input_schema=input_schema,
                output_schema=output_schema,
                dependencies=list(deps.get(node.id, [])),
                test_config=_resolve_test_config(node, overrides.get(node.id)),
            )
        )

    connections = [
        WorkflowConnection(
            id=f"{conn.source}->{conn.target}",
            source=conn.source,
            target=conn.target,
            condition=_connection_condition(conn),
            label=conn.label,
        )
        for conn in parsed.connections
    ]

    mock_config: Dict[str, IntegrationMock] = {}
    for step in steps:
        if step.integration and step.integration not in mock_config:
            mock_config[step.integration] = IntegrationMock(integration=step.integration)

    metadata = parsed.metadata
    workflow = Workflow(
        id=f"pm-{process_map_id}",
        process_map_id=process_map_id,
        org_id=org_id,
        name=str(metadata.get("title") or metadata.get("name") or process_map_id),
        description=str(metadata.get("description") or ""),
        schema_version=parsed.schema_version,
        steps=steps,
        connections=connections,
        mock_config=mock_config,
    )
    logger.info(
        f"Converted process map {process_map_id}: {len(steps)} steps, "
        f"{len(connections)} connections, {len(mock_config)} integrations"
    )
    return workflow
