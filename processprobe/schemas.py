"""Default input/output schemas attached to converted workflow steps."""

from __future__ import annotations

import copy
from typing import Any, Dict, Optional, Tuple

from .contracts import StepType

SchemaPair = Tuple[Dict[str, Any], Dict[str, Any]]


def _object(properties: Dict[str, str], required: tuple[str, ...] = ()) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {name: {"type": kind} for name, kind in properties.items()},
        "required": list(required),
    }


STEP_TYPE_SCHEMAS: Dict[StepType, SchemaPair] = {
    StepType.TRIGGER: (
        _object({"event": "object"}),
        _object({"eventId": "string", "eventType": "string", "payload": "object"}, ("eventId",)),
    ),
    StepType.ACTION: (
        _object({"data": "object"}),
        _object({"success": "boolean", "data": "object"}, ("success",)),
    ),
    StepType.CONDITION: (
        _object({"value": "object"}),
        _object({"conditionMet": "boolean", "branch": "string"}, ("conditionMet",)),
    ),
    StepType.TRANSFORM: (
        _object({"input": "object"}),
        _object({"transformedData": "object"}, ("transformedData",)),
    ),
    StepType.EXTERNAL_CALL: (
        _object({"request": "object"}),
        _object({"statusCode": "number", "response": "object"}, ("statusCode",)),
    ),
    StepType.STORAGE: (
        _object({"record": "object"}),
        _object({"recordId": "string", "created": "boolean"}, ("recordId",)),
    ),
    StepType.NOTIFICATION: (
        _object({"recipient": "string", "message": "string"}),
        _object({"sent": "boolean", "notificationId": "string"}, ("sent",)),
    ),
}

INTEGRATION_SCHEMAS: Dict[str, SchemaPair] = {
    "hubspot": (
        _object({"email": "string", "firstname": "string", "lastname": "string", "dealname": "string"}),
        _object({"id": "string", "properties": "object"}, ("id",)),
    ),
    "google_calendar": (
        _object({"summary": "string", "start": "object", "end": "object", "attendees": "array"}),
        _object({"id": "string", "htmlLink": "string", "summary": "string"}, ("id",)),
    ),
    "google_email": (
        _object({"to": "string", "subject": "string", "body": "string"}, ("to",)),
        _object({"id": "string", "threadId": "string"}, ("id",)),
    ),
    "slack": (
        _object({"channel": "string", "text": "string"}),
        _object({"ts": "string", "channel": "string"}, ("ts",)),
    ),
    "savvycal": (
        _object({"link_id": "string", "email": "string", "start_at": "string"}),
        _object({"id": "string", "title": "string"}, ("id",)),
    ),
    "fathom": (
        _object({"call_id": "string"}),
        _object({"calls": "array"}, ("calls",)),
    ),
    "justcall": (
        _object({"call_id": "string"}),
        _object({"calls": "array"}, ("calls",)),
    ),
    "meetingbaas": (
        _object({"bot_id": "string"}),
        _object({"bots": "array"}, ("bots",)),
    ),
    "supabase": (
        _object({"table": "string", "record": "object"}),
        _object({"id": "string"}, ("id",)),
    ),
}


def normalize_integration_name(integration: Optional[str]) -> Optional[str]:
    """Lower-case ``integration`` and fold dashes and spaces into underscores."""
    if not integration:
        return None
    normalized = integration.strip().lower().replace("-", "_").replace(" ", "_")
    return normalized or None


def schemas_for(step_type: StepType, integration: Optional[str]) -> SchemaPair:
    """Return copies of the (input, output) schema pair for a step.

    Integration-specific schemas win; unknown or absent integrations fall
    back to the step-type schema.
    """
    key = normalize_integration_name(integration)
    pair = INTEGRATION_SCHEMAS.get(key) if key else None
    if pair is None:
        pair = STEP_TYPE_SCHEMAS[step_type]
    return copy.deepcopy(pair[0]), copy.deepcopy(pair[1])
