"""Tests for the integration executor."""

import pytest

from processprobe.config import IntegrationContext
from processprobe.contracts import IntegrationMock, StepTestConfig, StepType, WorkflowStepDefinition
from processprobe.integrations import (
    HANDLERS,
    IntegrationExecutor,
    extract_display_name,
    infer_resource_type,
    normalize_operation,
)
from processprobe.errors import CapabilityError
from processprobe.registry import Integration, Operation, ResourceType
from processprobe.tracking import ResourceTracker
from processprobe.transports import FunctionResponse, SimulatedFunctionClient


def test_every_integration_has_a_handler():
    assert set(HANDLERS) == set(Integration)


@pytest.mark.parametrize(
    "verb, expected",
    [
        ("write", Operation.CREATE),
        ("Send", Operation.CREATE),
        ("fetch", Operation.READ),
        ("upsert", Operation.UPDATE),
        ("cancel", Operation.DELETE),
        (Operation.READ, Operation.READ),
    ],
)
def test_operation_aliases(verb, expected):
    assert normalize_operation(verb) is expected


def test_unknown_operation_is_capability_error():
    with pytest.raises(CapabilityError):
        normalize_operation("teleport")


@pytest.mark.asyncio
async def test_hubspot_contact_create_is_tracked(executor, client, tracker, step):
    result = await executor.execute("hubspot", "write", "contact", {"firstname": "Ada"}, step)

    assert result.success
    resource = result.resource
    assert resource is tracker.get_all_resources()[0]
    assert resource.display_name == "Ada Contact"
    assert resource.view_url == f"https://app.hubspot.com/contacts/12345/record/0-1/{resource.external_id}"
    body = client.calls_to("hubspot-admin")[0]
    assert body["action"] == "create_contact"
    assert body["org_id"] == "org-1"
    assert body["properties"]["email"].startswith("test-")


@pytest.mark.asyncio
async def test_hubspot_deal_defaults(executor, client, step):
    result = await executor.execute("hubspot", "create", "deal", {}, step)

    properties = client.calls_to("hubspot-admin")[0]["properties"]
    assert properties["dealname"].startswith("Test Deal")
    assert properties["pipeline"] == "default"
    assert len(properties["closedate"]) == 10
    assert result.resource.resource_type is ResourceType.DEAL


@pytest.mark.asyncio
async def test_hubspot_requires_org_id(client, step):
    tracker = ResourceTracker()
    executor = IntegrationExecutor(client, tracker, IntegrationContext())
    anonymous = step.model_copy(update={"org_id": None})

    result = await executor.execute("hubspot", "create", "contact", {}, anonymous)

    assert not result.success
    assert result.error_kind == "missing_context"
    assert client.calls == []
    assert len(tracker) == 0


@pytest.mark.asyncio
async def test_read_only_integration_rejects_create_without_remote_call(executor, client, step):
    result = await executor.execute("fathom", "create", "call", {}, step)

    assert not result.success
    assert result.error_kind == "capability"
    assert "not supported for Fathom" in result.error
    assert client.calls == []


@pytest.mark.asyncio
async def test_read_only_integration_reads(executor, client, tracker, step):
    result = await executor.execute("justcall", "list", "call", {"limit": 5}, step)

    assert result.success
    assert result.data == {"calls": []}
    assert len(tracker) == 0


@pytest.mark.asyncio
async def test_unmanaged_resource_kind_is_rejected(executor, client, step):
    result = await executor.execute("slack", "create", "deal", {}, step)

    assert result.error_kind == "capability"
    assert client.calls == []


@pytest.mark.asyncio
async def test_unknown_integration_is_rejected(executor, step):
    result = await executor.execute("salesforce", "create", "contact", {}, step)

    assert not result.success
    assert result.error_kind == "capability"


@pytest.mark.asyncio
async def test_slack_message_tracked_with_view_url(executor, tracker, step):
    result = await executor.execute("slack", "send", "message", {"text": "hi"}, step)

    resource = result.resource
    assert resource.display_name == "Slack message in #C0SALES"
    ts = resource.external_id.replace(".", "")
    assert resource.view_url == f"https://acme.slack.com/archives/C0SALES/p{ts}"


@pytest.mark.asyncio
async def test_slack_without_channel_is_missing_context(client, tracker, step):
    executor = IntegrationExecutor(client, tracker, IntegrationContext(org_id="org-1"))

    result = await executor.execute("slack", "create", "message", {}, step)
    assert result.error_kind == "missing_context"


@pytest.mark.asyncio
async def test_calendar_event_prefers_html_link(executor, client, step):
    client.respond(
        "google-calendar-create-event",
        lambda body: {"id": "evt9", "summary": body["summary"], "htmlLink": "https://cal/e?eid=XYZ"},
    )

    result = await executor.execute("google-calendar", "create", "calendar_event", {}, step)

    assert result.resource.view_url == "https://cal/e?eid=XYZ"
    assert result.resource.display_name == "Test Event - Create records"
    assert result.resource.raw_data["calendar_id"] == "primary"


@pytest.mark.asyncio
async def test_email_requires_recipient(executor, step):
    missing = await executor.execute("google_email", "send", "email", {}, step)
    sent = await executor.execute("google_email", "send", "email", {"to": "a@b.co"}, step)

    assert missing.error_kind == "missing_context"
    assert sent.resource.display_name == "Email to a@b.co"


@pytest.mark.asyncio
async def test_supabase_create_read_and_delete(executor, client, tracker, step):
    created = await executor.execute("supabase", "insert", "task", {"title": "Call back"}, step)
    assert created.resource.display_name == "Call back"
    assert created.data["org_id"] == "org-1"

    read = await executor.execute("supabase", "query", "task", {"title": "Call back"}, step)
    assert len(read.data["records"]) == 1

    deleted = await executor.delete_resource(created.resource)
    assert deleted.success
    assert client.live == {}


@pytest.mark.asyncio
async def test_remote_error_becomes_failure_result(executor, client, tracker, step):
    client.fail("hubspot-admin", "HubSpot is down")

    result = await executor.execute("hubspot", "create", "contact", {}, step)

    assert not result.success
    assert result.error == "HubSpot is down"
    assert result.error_kind == "remote"
    assert len(tracker) == 0


@pytest.mark.asyncio
async def test_transient_failures_are_retried_for_create(executor, client, step):
    client.fail("slack-send-message", "connection reset", times=2, transient=True)

    result = await executor.execute("slack", "create", "message", {}, step, retries=2)

    assert result.success
    assert len(client.calls_to("slack-send-message")) == 3


@pytest.mark.asyncio
async def test_retries_exhausted(executor, client, step):
    client.fail("slack-send-message", "connection reset", transient=True)

    result = await executor.execute("slack", "create", "message", {}, step, retries=1)

    assert result.error_kind == "remote"
    assert len(client.calls_to("slack-send-message")) == 2


@pytest.mark.asyncio
async def test_update_is_not_retried(executor, client, step):
    client.fail("hubspot-admin", "connection reset", transient=True)

    result = await executor.execute(
        "hubspot", "update", "contact", {"record_id": "1", "properties": {}}, step, retries=3
    )

    assert not result.success
    assert len(client.calls_to("hubspot-admin")) == 1


@pytest.mark.asyncio
async def test_unexpected_exceptions_are_caught(executor, client, step):
    def explode(body):
        raise RuntimeError("bad payload")

    client.respond("savvycal-create-booking", explode)

    result = await executor.execute("savvycal", "create", "booking", {}, step)
    assert not result.success
    assert result.error_kind == "unexpected"
    assert result.error == "bad payload"


@pytest.mark.asyncio
async def test_mocked_integration_error(executor, client, step):
    client.use_mocks({"HubSpot": IntegrationMock(integration="hubspot", mock_type="rate_limit")})

    result = await executor.execute("hubspot", "create", "contact", {}, step)
    assert result.error_kind == "remote"
    assert "rate_limit" in result.error


@pytest.mark.asyncio
async def test_execute_step_uses_step_settings(executor, client, tracker):
    step_def = WorkflowStepDefinition(
        id="deal",
        name="Create enterprise deal",
        type=StepType.ACTION,
        integration="hubspot",
        test_config=StepTestConfig(timeout_ms=1000, operations=["create"]),
    )

    result = await executor.execute_step(step_def, run_id="run-1")

    assert result.success
    assert result.resource.resource_type is ResourceType.DEAL
    assert result.resource.created_by_step_id == "deal"


def test_infer_resource_type_limits_to_managed_kinds():
    def make(name, integration):
        return WorkflowStepDefinition(
            id="x", name=name, type=StepType.ACTION, integration=integration,
            test_config=StepTestConfig(timeout_ms=1),
        )

    assert infer_resource_type(make("Book kickoff calendar event", "google_calendar")) is ResourceType.CALENDAR_EVENT
    assert infer_resource_type(make("Create HubSpot contact", "hubspot")) is ResourceType.CONTACT
    assert infer_resource_type(make("Announce", "slack")) is ResourceType.MESSAGE
    assert infer_resource_type(make("Do something", None)) is ResourceType.RECORD


def test_extract_display_name():
    assert extract_display_name({"title": "Kickoff"}, ResourceType.BOOKING) == "Kickoff"
    assert (
        extract_display_name({"properties": {"firstname": "Ada", "lastname": "L"}}, ResourceType.CONTACT)
        == "Ada L"
    )
    assert extract_display_name({"id": "9"}, ResourceType.TASK) == "task 9"


@pytest.mark.asyncio
async def test_failure_response_shape():
    client = SimulatedFunctionClient()
    response = await client.invoke("no-such-function", {})

    assert response == FunctionResponse.failure("Function not found: no-such-function", status_code=404)
