"""Per-integration request shaping, dispatch and teardown."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Type

from ..contracts import WorkflowStepDefinition
from ..errors import CapabilityError, MissingContextError
from ..registry import Integration, Operation, ResourceType, get_capability
from ..tracking import TrackedResource
from .base import IntegrationHandler, IntegrationResult, extract_display_name

logger = logging.getLogger(__name__)

TEST_EMAIL_DOMAIN = "60test.com"


def _test_email() -> str:
    return f"test-{int(time.time() * 1000)}@{TEST_EMAIL_DOMAIN}"


def _without_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


class HubSpotHandler(IntegrationHandler):
    """CRM objects through the ``hubspot-admin`` function."""

    integration = Integration.HUBSPOT

    _ACTIONS = {
        (Operation.READ, "status"): "status",
        (Operation.READ, "properties"): "get_properties",
        (Operation.READ, "pipelines"): "get_pipelines",
    }

    def _org_id(self, *candidates: Optional[str]) -> str:
        org_id = self.context.org_id or next((c for c in candidates if c), None)
        if not org_id:
            raise MissingContextError("org_id is required for HubSpot operations")
        return org_id

    def _properties(self, resource_type: ResourceType, data: Dict[str, Any]) -> Dict[str, Any]:
        extra = data.get("properties") or {}
        if resource_type is ResourceType.CONTACT:
            return _without_none({
                "email": data.get("email") or _test_email(),
                "firstname": data.get("firstname") or data.get("firstName") or "Test",
                "lastname": data.get("lastname") or data.get("lastName") or "Contact",
                "phone": data.get("phone"),
                "company": data.get("company"),
                **extra,
            })
        if resource_type is ResourceType.DEAL:
            close_date = datetime.now(timezone.utc) + timedelta(days=30)
            return _without_none({
                "dealname": data.get("dealname") or data.get("name") or f"Test Deal {int(time.time() * 1000)}",
                "amount": data.get("amount"),
                "pipeline": data.get("pipeline") or "default",
                "dealstage": data.get("dealstage") or data.get("stage"),
                "closedate": data.get("closedate") or close_date.date().isoformat(),
                **extra,
            })
        if resource_type is ResourceType.TASK:
            return _without_none({
                "hs_task_subject": data.get("subject") or data.get("title") or "Test Task",
                "hs_task_body": data.get("body"),
                **extra,
            })
        return dict(extra)

    async def execute(self, operation, resource_type, data, step):
        # named read views of the admin function
        view = data.get("view")
        action = self._ACTIONS.get(
            (operation, view), f"{operation.value}_{resource_type.value}"
        )
        body: Dict[str, Any] = {
            "action": action,
            "org_id": self._org_id(data.get("org_id"), step.org_id),
        }
        record_id = data.get("record_id") or data.get("id")
        if operation is Operation.CREATE:
            body["properties"] = self._properties(resource_type, data)
        elif operation is Operation.UPDATE:
            if not record_id:
                raise MissingContextError("record_id is required to update a HubSpot record")
            body["record_id"] = record_id
            body["properties"] = data.get("properties") or {}
        elif operation is Operation.DELETE:
            body["record_id"] = record_id or data.get("external_id")
        elif record_id:
            body["record_id"] = record_id

        logger.info(f"Calling hubspot-admin action={action} org_id={body['org_id']}")
        response = await self._invoke(self.capability.endpoint, body)

        if operation is Operation.CREATE and response.get("id"):
            resource = self._track(
                resource_type,
                extract_display_name(response, resource_type),
                response["id"],
                step,
                {**response, "org_id": body["org_id"]},
                url_context={
                    "portal_id": self.context.hubspot_portal_id,
                    "region": self.context.hubspot_region,
                },
            )
            return IntegrationResult(success=True, data=response, resource=resource)
        return IntegrationResult(success=True, data=response)

    async def delete(self, resource: TrackedResource) -> IntegrationResult:
        body = {
            "action": f"delete_{resource.resource_type.value}",
            "org_id": self._org_id(resource.raw_data.get("org_id")),
            "record_id": resource.external_id,
        }
        response = await self._invoke(self.capability.delete_endpoint, body)
        return IntegrationResult(success=True, data=response)


class SlackHandler(IntegrationHandler):
    integration = Integration.SLACK

    async def execute(self, operation, resource_type, data, step):
        channel = data.get("channel") or self.context.slack_channel
        if operation is Operation.CREATE and not channel:
            raise MissingContextError("A Slack channel is required to post a message")
        body = {
            **data,
            "channel": channel,
            "text": data.get("text") or f"Test message from step {step.step_name}",
            "operation": operation.value,
        }
        response = await self._invoke(self.capability.endpoint, body)

        if operation is Operation.CREATE and response.get("ts"):
            posted_in = response.get("channel") or channel
            resource = self._track(
                ResourceType.MESSAGE,
                f"Slack message in #{posted_in or 'unknown'}",
                response["ts"],
                step,
                response,
                url_context={
                    "workspace": self.context.slack_workspace,
                    "channel": posted_in,
                    "ts": response["ts"],
                },
            )
            return IntegrationResult(success=True, data=response, resource=resource)
        return IntegrationResult(success=True, data=response)

    async def delete(self, resource: TrackedResource) -> IntegrationResult:
        channel = resource.raw_data.get("channel") or self.context.slack_channel
        if not channel:
            raise MissingContextError("A Slack channel is required to delete a message")
        response = await self._invoke(
            self.capability.delete_endpoint, {"channel": channel, "ts": resource.external_id}
        )
        return IntegrationResult(success=True, data=response)


class GoogleCalendarHandler(IntegrationHandler):
    integration = Integration.GOOGLE_CALENDAR

    def _calendar_id(self, data: Dict[str, Any]) -> str:
        return data.get("calendar_id") or self.context.google_calendar_id or "primary"

    async def execute(self, operation, resource_type, data, step):
        body = {**data, "calendar_id": self._calendar_id(data), "operation": operation.value}
        if operation is Operation.CREATE:
            start = datetime.now(timezone.utc) + timedelta(hours=1)
            body.setdefault("summary", f"Test Event - {step.step_name}")
            body.setdefault("start", start.isoformat())
            body.setdefault("end", (start + timedelta(minutes=30)).isoformat())
        response = await self._invoke(self.capability.endpoint, body)

        if operation is Operation.CREATE and response.get("id"):
            html_link = response.get("htmlLink")
            encoded_id = html_link.split("eid=", 1)[1] if html_link and "eid=" in html_link else None
            resource = self._track(
                ResourceType.CALENDAR_EVENT,
                response.get("summary") or "Calendar Event",
                response["id"],
                step,
                {**response, "calendar_id": body["calendar_id"]},
                view_url=html_link,
                url_context={"encoded_id": encoded_id, "calendar_id": body["calendar_id"]},
            )
            return IntegrationResult(success=True, data=response, resource=resource)
        return IntegrationResult(success=True, data=response)

    async def delete(self, resource: TrackedResource) -> IntegrationResult:
        body = {
            "event_id": resource.external_id,
            "calendar_id": resource.raw_data.get("calendar_id") or self._calendar_id({}),
            "sendUpdates": "none",
        }
        response = await self._invoke(self.capability.delete_endpoint, body)
        return IntegrationResult(success=True, data=response)


class GoogleEmailHandler(IntegrationHandler):
    integration = Integration.GOOGLE_EMAIL

    async def execute(self, operation, resource_type, data, step):
        body = dict(data)
        if operation is Operation.CREATE:
            if not data.get("to"):
                raise MissingContextError("A recipient ('to') is required to send an email")
            body.setdefault("subject", f"Test email from {step.step_name}")
            body.setdefault("body", f"Sent by test run {step.run_id}.")
        else:
            body["operation"] = operation.value
        response = await self._invoke(self.capability.endpoint, body)

        if operation is Operation.CREATE and response.get("id"):
            resource = self._track(
                ResourceType.EMAIL,
                f"Email to {data['to']}",
                response["id"],
                step,
                response,
            )
            return IntegrationResult(success=True, data=response, resource=resource)
        return IntegrationResult(success=True, data=response)


class SavvyCalHandler(IntegrationHandler):
    integration = Integration.SAVVYCAL

    async def execute(self, operation, resource_type, data, step):
        body = {**data, "operation": operation.value}
        if operation is Operation.CREATE:
            body.setdefault("title", f"Test Booking - {step.step_name}")
            body.setdefault("email", _test_email())
        response = await self._invoke(self.capability.endpoint, body)

        if operation is Operation.CREATE and response.get("id"):
            resource = self._track(
                ResourceType.BOOKING,
                response.get("title") or "SavvyCal Booking",
                response["id"],
                step,
                response,
            )
            return IntegrationResult(success=True, data=response, resource=resource)
        return IntegrationResult(success=True, data=response)

    async def delete(self, resource: TrackedResource) -> IntegrationResult:
        response = await self._invoke(
            self.capability.delete_endpoint, {"booking_id": resource.external_id}
        )
        return IntegrationResult(success=True, data=response)


SUPABASE_TABLES: Dict[ResourceType, str] = {
    ResourceType.CONTACT: "contacts",
    ResourceType.DEAL: "deals",
    ResourceType.TASK: "tasks",
    ResourceType.ACTIVITY: "activities",
    ResourceType.MEETING: "meetings",
    ResourceType.CALENDAR_EVENT: "calendar_events",
    ResourceType.EMAIL: "emails",
    ResourceType.MESSAGE: "messages",
    ResourceType.CALL: "calls",
    ResourceType.BOOKING: "bookings",
    ResourceType.RECORD: "records",
}


class SupabaseHandler(IntegrationHandler):
    """Rows in the application's own database."""

    integration = Integration.SUPABASE

    async def execute(self, operation, resource_type, data, step):
        table = SUPABASE_TABLES[resource_type]
        endpoint = self.capability.endpoint
        if operation is Operation.CREATE:
            record = dict(data)
            org_id = self.context.org_id or step.org_id
            if org_id:
                record.setdefault("org_id", org_id)
            response = await self._invoke(endpoint, {"action": "insert", "table": table, "record": record})
            created = response.get("record") or {}
            if not created.get("id"):
                return IntegrationResult(success=True, data=response)
            resource = self._track(
                resource_type,
                extract_display_name(created, resource_type),
                created["id"],
                step,
                {**created, "table": table},
            )
            return IntegrationResult(success=True, data=created, resource=resource)

        if operation is Operation.READ:
            response = await self._invoke(endpoint, {"action": "select", "table": table, "match": data})
            return IntegrationResult(success=True, data={"records": response.get("records", [])})

        record_id = data.get("id")
        if not record_id:
            raise MissingContextError(f"An id is required to {operation.value} a {table} row")
        if operation is Operation.UPDATE:
            fields = {k: v for k, v in data.items() if k != "id"}
            body = {"action": "update", "table": table, "id": record_id, "record": fields}
        else:
            body = {"action": "delete", "table": table, "id": record_id}
        response = await self._invoke(endpoint, body)
        return IntegrationResult(success=True, data=response)

    async def delete(self, resource: TrackedResource) -> IntegrationResult:
        table = resource.raw_data.get("table") or SUPABASE_TABLES[resource.resource_type]
        response = await self._invoke(
            self.capability.delete_endpoint,
            {"action": "delete", "table": table, "id": resource.external_id},
        )
        return IntegrationResult(success=True, data=response)


class ReadOnlyHandler(IntegrationHandler):
    """Providers that only expose recorded data."""

    async def execute(self, operation, resource_type, data, step):
        if operation is not Operation.READ:
            raise CapabilityError(f"{self.capability.display_name} is read-only")
        response = await self._invoke(self.capability.endpoint, dict(data))
        return IntegrationResult(success=True, data=response)


class FathomHandler(ReadOnlyHandler):
    integration = Integration.FATHOM


class JustCallHandler(ReadOnlyHandler):
    integration = Integration.JUSTCALL


class MeetingBaaSHandler(ReadOnlyHandler):
    integration = Integration.MEETINGBAAS


HANDLERS: Dict[Integration, Type[IntegrationHandler]] = {
    handler.integration: handler
    for handler in (
        HubSpotHandler,
        SlackHandler,
        GoogleCalendarHandler,
        GoogleEmailHandler,
        SavvyCalHandler,
        SupabaseHandler,
        FathomHandler,
        JustCallHandler,
        MeetingBaaSHandler,
    )
}

_unhandled = set(Integration) - set(HANDLERS)
if _unhandled:  # pragma: no cover - import-time guard
    raise RuntimeError(f"No handler registered for: {sorted(i.value for i in _unhandled)}")


_RESOURCE_KEYWORDS = (
    ("contact", ResourceType.CONTACT),
    ("lead", ResourceType.CONTACT),
    ("deal", ResourceType.DEAL),
    ("opportunit", ResourceType.DEAL),
    ("task", ResourceType.TASK),
    ("booking", ResourceType.BOOKING),
    ("calendar", ResourceType.CALENDAR_EVENT),
    ("event", ResourceType.CALENDAR_EVENT),
    ("email", ResourceType.EMAIL),
    ("slack", ResourceType.MESSAGE),
    ("message", ResourceType.MESSAGE),
    ("call", ResourceType.CALL),
    ("meeting", ResourceType.MEETING),
    ("activity", ResourceType.ACTIVITY),
    ("note", ResourceType.ACTIVITY),
)


def infer_resource_type(step: WorkflowStepDefinition) -> ResourceType:
    """Guess the resource kind a step works on from its name and description.

    Only kinds the step's integration manages are considered; with no match
    the integration's first managed kind is used, or ``record``.
    """
    managed = None
    if step.integration:
        try:
            managed = get_capability(step.integration).resource_types
        except CapabilityError:
            managed = None

    text = f"{step.name} {step.description}".lower()
    for keyword, resource_type in _RESOURCE_KEYWORDS:
        if keyword in text and (managed is None or resource_type in managed):
            return resource_type
    if managed:
        return managed[0]
    return ResourceType.RECORD
