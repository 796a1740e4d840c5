"""Tests for the capability registry."""

import base64

import pytest

from processprobe.errors import CapabilityError
from processprobe.registry import (
    CAPABILITIES,
    Integration,
    Operation,
    ResourceType,
    build_view_url,
    get_capability,
    supports_cleanup,
    supports_operation,
)


def test_every_integration_has_a_capability():
    assert set(CAPABILITIES) == set(Integration)


@pytest.mark.parametrize("name", ["fathom", "justcall", "meetingbaas"])
def test_recording_providers_are_read_only(name):
    capability = get_capability(name)

    assert capability.read_only
    assert not supports_cleanup(name)
    assert supports_operation(name, "read")
    assert not supports_operation(name, Operation.CREATE)


def test_email_can_be_sent_but_not_deleted():
    assert supports_operation("google_email", "create")
    assert not supports_cleanup("google_email")
    assert not get_capability("google_email").read_only


def test_cleanup_supported_for_deletable_integrations():
    deletable = {i for i in Integration if supports_cleanup(i)}
    assert deletable == {
        Integration.HUBSPOT,
        Integration.GOOGLE_CALENDAR,
        Integration.SLACK,
        Integration.SAVVYCAL,
        Integration.SUPABASE,
    }


def test_integration_names_are_normalised():
    assert get_capability("Google-Calendar").integration is Integration.GOOGLE_CALENDAR
    assert get_capability(" HubSpot ").integration is Integration.HUBSPOT


def test_unknown_integration_raises_capability_error():
    with pytest.raises(CapabilityError):
        get_capability("salesforce")


def test_hubspot_urls_use_region_host_and_object_type():
    url = build_view_url("hubspot", "deal", "901", {"portal_id": "123", "region": "eu1"})
    assert url == "https://app-eu1.hubspot.com/contacts/123/record/0-3/901"

    url = build_view_url("hubspot", ResourceType.CONTACT, "77", {"portal_id": "123"})
    assert url == "https://app.hubspot.com/contacts/123/record/0-1/77"


def test_hubspot_tasks_use_distinct_url_shape():
    url = build_view_url("hubspot", "task", "55", {"portal_id": "123", "region": "na1"})
    assert url == "https://app.hubspot.com/tasks/123/view/all/task/55"


def test_hubspot_url_requires_portal_id():
    assert build_view_url("hubspot", "contact", "77", {}) is None
    assert build_view_url("hubspot", "contact", "77", None) is None


def test_slack_url_strips_timestamp_dot():
    url = build_view_url(
        "slack", "message", "1700000000.000100", {"workspace": "acme", "channel": "C01"}
    )
    assert url == "https://acme.slack.com/archives/C01/p1700000000000100"
    assert build_view_url("slack", "message", "1.2", {"workspace": "acme"}) is None


def test_calendar_url_encodes_event_and_calendar():
    url = build_view_url("google_calendar", "calendar_event", "evt1", {})
    encoded = url.split("eid=", 1)[1]
    padded = encoded + "=" * (-len(encoded) % 4)
    assert base64.urlsafe_b64decode(padded).decode() == "evt1 primary"

    url = build_view_url("google_calendar", "calendar_event", "evt1", {"encoded_id": "abc"})
    assert url.endswith("eid=abc")


def test_no_url_without_pattern_or_external_id():
    assert build_view_url("justcall", "call", "c1", {}) is None
    assert build_view_url("savvycal", "booking", None, {}) is None
    assert build_view_url("savvycal", "booking", "b1") == "https://savvycal.com/bookings/b1"
