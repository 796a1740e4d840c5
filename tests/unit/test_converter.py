"""Tests for process structure conversion."""

import pytest

from processprobe.contracts import StepType
from processprobe.converter import (
    convert_process_structure,
    load_process_structure,
    structure_fingerprint,
    validate_process_structure,
)
from processprobe.errors import ProcessStructureError


def test_linear_structure_converts_in_execution_order(linear_structure):
    linear_structure["nodes"].reverse()
    workflow = convert_process_structure(
        linear_structure, process_map_id="map-1", org_id="org-1"
    )

    assert workflow.id == "pm-map-1"
    assert workflow.name == "Linear follow-up"
    assert [s.id for s in workflow.steps] == ["A", "B", "C"]
    assert workflow.get_step("B").integration == "hubspot"
    assert workflow.get_step("B").type is StepType.ACTION


def test_dependencies_come_from_incoming_connections(diamond_structure):
    workflow = convert_process_structure(
        diamond_structure, process_map_id="map-2", org_id="org-1"
    )

    assert workflow.get_step("A").dependencies == []
    assert workflow.get_step("B").dependencies == ["A"]
    assert sorted(workflow.get_step("D").dependencies) == ["B", "C"]
    order = workflow.execution_order()
    assert order.index("A") < order.index("B") < order.index("D")
    assert order.index("C") < order.index("D")


def test_connection_conditions(diamond_structure):
    workflow = convert_process_structure(
        diamond_structure, process_map_id="map-2", org_id="org-1"
    )
    conditions = {(c.source, c.target): c.condition for c in workflow.connections}

    assert conditions[("A", "B")] == "qualified"
    assert conditions[("A", "C")] == "unqualified"
    assert conditions[("B", "D")] == "required"
    assert conditions[("C", "D")] == "optional"
    assert len(workflow.connections) == 4


def test_step_type_test_defaults(linear_structure):
    workflow = convert_process_structure(
        linear_structure, process_map_id="map-1", org_id="org-1"
    )

    trigger = workflow.get_step("A").test_config
    action = workflow.get_step("B").test_config
    notify = workflow.get_step("C").test_config
    assert trigger.timeout_ms == 10_000
    assert action.operations == ["create"]
    assert notify.timeout_ms == 10_000
    assert notify.operations == ["write"]


def test_external_call_and_storage_defaults():
    structure = {
        "schemaVersion": "1.0",
        "nodes": [
            {"id": "x", "label": "Call API", "stepType": "external_call", "executionOrder": 1},
            {"id": "y", "label": "Save", "stepType": "storage", "executionOrder": 2},
        ],
        "connections": [{"from": "x", "to": "y"}],
    }
    workflow = convert_process_structure(structure, process_map_id="m", org_id="o")

    external = workflow.get_step("x").test_config
    assert external.timeout_ms == 60_000
    assert external.retry_count == 2
    assert workflow.get_step("y").test_config.operations == ["read", "write"]


def test_node_config_and_overrides_take_precedence(onboarding_structure):
    workflow = convert_process_structure(
        onboarding_structure,
        process_map_id="onboarding",
        org_id="org-1",
        test_config_overrides={"contact": {"retryCount": 3, "requiresRealApi": True}},
    )

    announce = workflow.get_step("announce").test_config
    assert announce.operations == ["create"]
    assert announce.timeout_ms == 10_000

    contact = workflow.get_step("contact").test_config
    assert contact.retry_count == 3
    assert contact.requires_real_api is True
    assert contact.operations == ["create"]


def test_integration_schema_preferred_over_step_type(linear_structure):
    workflow = convert_process_structure(
        linear_structure, process_map_id="map-1", org_id="org-1"
    )

    assert "email" in workflow.get_step("B").input_schema["properties"]
    assert "event" in workflow.get_step("A").input_schema["properties"]


def test_unknown_integration_falls_back_to_generic_schema():
    structure = {
        "schemaVersion": "1.0",
        "nodes": [
            {"id": "n", "label": "Post to CRM", "stepType": "action", "integration": "pipedrive"}
        ],
    }
    workflow = convert_process_structure(structure, process_map_id="m", org_id="o")

    assert workflow.get_step("n").input_schema["properties"] == {"data": {"type": "object"}}


def test_mock_config_covers_each_integration_once(onboarding_structure):
    workflow = convert_process_structure(
        onboarding_structure, process_map_id="onboarding", org_id="org-1"
    )

    assert sorted(workflow.mock_config) == ["fathom", "google_calendar", "hubspot", "slack"]
    assert all(m.mock_type == "success" and m.is_active for m in workflow.mock_config.values())


@pytest.mark.parametrize(
    "mutate, expected",
    [
        (lambda s: s.update(schemaVersion="9.9"), "unsupported schemaVersion"),
        (lambda s: s.update(nodes=[]), "at least one node"),
        (lambda s: s["nodes"][1].pop("label"), "missing a label"),
        (lambda s: s["nodes"][1].update(id=""), "missing an id"),
        (lambda s: s["nodes"][2].update(id="A"), "duplicate node id"),
        (lambda s: s["nodes"][0].pop("stepType"), "missing a stepType"),
    ],
)
def test_malformed_structures_are_rejected(linear_structure, mutate, expected):
    mutate(linear_structure)

    problems = validate_process_structure(linear_structure)
    assert any(expected in p for p in problems), problems
    with pytest.raises(ProcessStructureError):
        convert_process_structure(linear_structure, process_map_id="m", org_id="o")


def test_node_ids_may_not_contain_path_separator(linear_structure):
    linear_structure["nodes"][0]["id"] = "A|1"
    linear_structure["connections"][0]["from"] = "A|1"

    with pytest.raises(ProcessStructureError) as exc_info:
        load_process_structure(linear_structure)
    assert exc_info.value.problems


def test_fingerprint_is_stable_across_parsing(linear_structure):
    parsed = load_process_structure(linear_structure)

    assert structure_fingerprint(parsed) == structure_fingerprint(
        load_process_structure(linear_structure)
    )
    assert validate_process_structure(parsed) == []
