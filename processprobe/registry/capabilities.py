"""Static capability table and view-URL construction."""

from __future__ import annotations

import base64
import string
from collections.abc import Mapping
from typing import Any, Dict, Optional, Union

from .models import Integration, IntegrationCapability, Operation, ResourceType

_R = ResourceType

CAPABILITIES: Dict[Integration, IntegrationCapability] = {
    Integration.HUBSPOT: IntegrationCapability(
        integration=Integration.HUBSPOT,
        display_name="HubSpot",
        supports_create=True,
        supports_read=True,
        supports_update=True,
        supports_delete=True,
        resource_types=(_R.CONTACT, _R.DEAL, _R.TASK, _R.ACTIVITY),
        endpoint="hubspot-admin",
        view_url_pattern="https://{host}/contacts/{portal_id}/record/{object_type_id}/{id}",
        delete_endpoint="hubspot-admin",
        notes="Records are archived; HubSpot purges them after 90 days.",
    ),
    Integration.GOOGLE_CALENDAR: IntegrationCapability(
        integration=Integration.GOOGLE_CALENDAR,
        display_name="Google Calendar",
        supports_create=True,
        supports_read=True,
        supports_update=True,
        supports_delete=True,
        resource_types=(_R.CALENDAR_EVENT,),
        endpoint="google-calendar-create-event",
        view_url_pattern="https://calendar.google.com/calendar/event?eid={encoded_id}",
        delete_endpoint="google-calendar-delete-event",
        notes="Deleting an event notifies attendees unless sendUpdates is 'none'.",
    ),
    Integration.GOOGLE_EMAIL: IntegrationCapability(
        integration=Integration.GOOGLE_EMAIL,
        display_name="Gmail",
        supports_create=True,
        supports_read=True,
        resource_types=(_R.EMAIL,),
        endpoint="google-send-email",
        view_url_pattern="https://mail.google.com/mail/u/0/#all/{id}",
        notes="Sent email cannot be recalled; remove it from the mailbox by hand.",
    ),
    Integration.SLACK: IntegrationCapability(
        integration=Integration.SLACK,
        display_name="Slack",
        supports_create=True,
        supports_read=True,
        supports_update=True,
        supports_delete=True,
        resource_types=(_R.MESSAGE,),
        endpoint="slack-send-message",
        view_url_pattern="https://{workspace}.slack.com/archives/{channel}/p{ts}",
        delete_endpoint="slack-delete-message",
    ),
    Integration.SAVVYCAL: IntegrationCapability(
        integration=Integration.SAVVYCAL,
        display_name="SavvyCal",
        supports_create=True,
        supports_read=True,
        supports_delete=True,
        resource_types=(_R.BOOKING,),
        endpoint="savvycal-create-booking",
        view_url_pattern="https://savvycal.com/bookings/{id}",
        delete_endpoint="savvycal-cancel-booking",
        notes="Bookings are cancelled rather than deleted.",
    ),
    Integration.FATHOM: IntegrationCapability(
        integration=Integration.FATHOM,
        display_name="Fathom",
        supports_read=True,
        resource_types=(_R.MEETING, _R.CALL),
        endpoint="fathom-get-calls",
        view_url_pattern="https://fathom.video/calls/{id}",
        notes="Read-only call recordings.",
    ),
    Integration.JUSTCALL: IntegrationCapability(
        integration=Integration.JUSTCALL,
        display_name="JustCall",
        supports_read=True,
        resource_types=(_R.CALL,),
        endpoint="justcall-get-calls",
        notes="Read-only call logs.",
    ),
    Integration.MEETINGBAAS: IntegrationCapability(
        integration=Integration.MEETINGBAAS,
        display_name="MeetingBaaS",
        supports_read=True,
        resource_types=(_R.MEETING,),
        endpoint="meetingbaas-get-bots",
        notes="Read-only meeting bot transcripts.",
    ),
    Integration.SUPABASE: IntegrationCapability(
        integration=Integration.SUPABASE,
        display_name="Internal database",
        supports_create=True,
        supports_read=True,
        supports_update=True,
        supports_delete=True,
        resource_types=(_R.CONTACT, _R.DEAL, _R.TASK, _R.ACTIVITY, _R.MEETING, _R.RECORD),
        endpoint="internal-records",
        delete_endpoint="internal-records",
    ),
}

_missing = set(Integration) - set(CAPABILITIES)
if _missing:  # pragma: no cover - import-time guard
    raise RuntimeError(f"No capability declared for: {sorted(m.value for m in _missing)}")

# HubSpot CRM object type ids used in record URLs
HUBSPOT_OBJECT_TYPE_IDS: Dict[ResourceType, str] = {
    ResourceType.CONTACT: "0-1",
    ResourceType.DEAL: "0-3",
    ResourceType.ACTIVITY: "0-4",
}

HUBSPOT_TASK_URL = "https://{host}/tasks/{portal_id}/view/all/task/{id}"


def get_capability(integration: Union[str, Integration]) -> IntegrationCapability:
    """Return the capability record for ``integration``.

    Raises:
        CapabilityError: If the integration is unknown.
    """
    return CAPABILITIES[Integration.parse(integration)]


def supports_cleanup(integration: Union[str, Integration]) -> bool:
    """Return ``True`` if resources of ``integration`` can be deleted."""
    capability = get_capability(integration)
    return capability.supports_delete and capability.delete_endpoint is not None


def supports_operation(
    integration: Union[str, Integration], operation: Union[str, Operation]
) -> bool:
    return get_capability(integration).supports(Operation(operation))


def _hubspot_host(region: Optional[str]) -> str:
    if not region or region.lower() == "na1":
        return "app.hubspot.com"
    return f"app-{region.lower()}.hubspot.com"


def _calendar_event_id(external_id: str, calendar_id: Optional[str]) -> str:
    raw = f"{external_id} {calendar_id or 'primary'}"
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def _substitute(pattern: str, values: Mapping[str, Any]) -> Optional[str]:
    fields = [f for _, f, _, _ in string.Formatter().parse(pattern) if f]
    if any(values.get(f) in (None, "") for f in fields):
        return None
    return pattern.format(**{f: values[f] for f in fields})


def build_view_url(
    integration: Union[str, Integration],
    resource_type: Union[str, ResourceType],
    external_id: Optional[str],
    context: Optional[Mapping[str, Any]] = None,
) -> Optional[str]:
    """Return a human-viewable URL for a resource, or ``None``.

    ``None`` means no deep link can be built (no pattern, no external id, or
    a required context value such as the HubSpot portal id is missing).
    """

    capability = get_capability(integration)
    if not capability.view_url_pattern or not external_id:
        return None

    resource_type = ResourceType.parse(resource_type)
    values: Dict[str, Any] = dict(context or {})
    values["id"] = external_id
    pattern = capability.view_url_pattern

    if capability.integration is Integration.HUBSPOT:
        values["host"] = _hubspot_host(values.get("region"))
        if resource_type is ResourceType.TASK:
            pattern = HUBSPOT_TASK_URL
        else:
            values["object_type_id"] = HUBSPOT_OBJECT_TYPE_IDS.get(resource_type)
    elif capability.integration is Integration.SLACK:
        values["ts"] = str(values.get("ts") or external_id).replace(".", "")
    elif capability.integration is Integration.GOOGLE_CALENDAR:
        if not values.get("encoded_id"):
            values["encoded_id"] = _calendar_event_id(external_id, values.get("calendar_id"))

    return _substitute(pattern, values)
