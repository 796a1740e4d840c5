"""In-process simulation of the remote integration functions."""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
import uuid
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..contracts import IntegrationMock
from ..errors import RemoteCallError
from ..registry import CAPABILITIES
from ..schemas import normalize_integration_name
from .base import BaseFunctionClient, FunctionResponse

logger = logging.getLogger(__name__)

Responder = Callable[[Dict[str, Any]], Dict[str, Any]]

_DELETE_FUNCTIONS = {
    cap.delete_endpoint
    for cap in CAPABILITIES.values()
    if cap.delete_endpoint and cap.delete_endpoint != cap.endpoint
}
_FUNCTION_INTEGRATIONS: Dict[str, str] = {}
for _cap in CAPABILITIES.values():
    _FUNCTION_INTEGRATIONS[_cap.endpoint] = _cap.integration.value
    if _cap.delete_endpoint:
        _FUNCTION_INTEGRATIONS[_cap.delete_endpoint] = _cap.integration.value


class _ScriptedFailure:
    def __init__(self, message: str, remaining: Optional[int], transient: bool) -> None:
        self.message = message
        self.remaining = remaining
        self.transient = transient


class SimulatedFunctionClient(BaseFunctionClient):
    """Answer integration calls from memory.

    Created records are kept in ``live`` until a matching delete call removes
    them, so tests can assert that a cleanup sweep left nothing behind.
    Failures can be scripted per function name, and integration mocks
    (as produced by workflow conversion) can override whole integrations.
    """

    def __init__(self, mocks: Optional[Mapping[str, IntegrationMock]] = None) -> None:
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.live: Dict[str, Dict[str, Any]] = {}
        self._failures: Dict[str, _ScriptedFailure] = {}
        self._responders: Dict[str, Responder] = {}
        self._mocks: Dict[str, IntegrationMock] = {}
        self._counter = itertools.count(1)
        self._handlers: Dict[str, Responder] = {
            "hubspot-admin": self._hubspot_admin,
            "slack-send-message": self._slack_send,
            "slack-delete-message": self._slack_delete,
            "google-calendar-create-event": self._calendar_event,
            "google-calendar-delete-event": self._calendar_delete,
            "google-send-email": self._send_email,
            "savvycal-create-booking": self._savvycal_booking,
            "savvycal-cancel-booking": self._savvycal_cancel,
            "fathom-get-calls": lambda body: {"calls": []},
            "justcall-get-calls": lambda body: {"calls": []},
            "meetingbaas-get-bots": lambda body: {"bots": []},
            "internal-records": self._internal_records,
        }
        if mocks:
            self.use_mocks(mocks)

    # ------------------------------------------------------------------
    # Scripting
    # ------------------------------------------------------------------
    def fail(
        self,
        function_name: str,
        message: str = "Simulated failure",
        *,
        times: Optional[int] = None,
        transient: bool = False,
    ) -> None:
        """Make ``function_name`` fail ``times`` times (forever if ``None``).

        Transient failures raise ``RemoteCallError`` as a dropped connection
        would; others return an error payload.
        """
        self._failures[function_name] = _ScriptedFailure(message, times, transient)

    def respond(self, function_name: str, responder: Responder) -> None:
        """Answer ``function_name`` with ``responder(body)``."""
        self._responders[function_name] = responder

    def use_mocks(self, mocks: Mapping[str, IntegrationMock]) -> None:
        """Install integration mocks, keyed by integration name in any case."""
        for name, mock in mocks.items():
            self._mocks[normalize_integration_name(name)] = mock

    def calls_to(self, function_name: str) -> List[Dict[str, Any]]:
        return [body for name, body in self.calls if name == function_name]

    # ------------------------------------------------------------------
    async def invoke(self, function_name: str, body: Dict[str, Any]) -> FunctionResponse:
        self.calls.append((function_name, dict(body)))
        logger.debug(f"Simulated call to {function_name}")

        failure = self._failures.get(function_name)
        if failure is not None and failure.remaining != 0:
            if failure.remaining is not None:
                failure.remaining -= 1
            if failure.transient:
                raise RemoteCallError(
                    failure.message, function_name=function_name, transient=True
                )
            return FunctionResponse.failure(failure.message, status_code=500)

        mocked = await self._apply_mock(function_name, body)
        if mocked is not None:
            return mocked

        handler = self._responders.get(function_name) or self._handlers.get(function_name)
        if handler is None:
            return FunctionResponse.failure(
                f"Function not found: {function_name}", status_code=404
            )
        data = handler(body)
        if data.get("success") is False or data.get("ok") is False:
            return FunctionResponse.failure(str(data.get("error", "Request failed")), status_code=400)
        return FunctionResponse(data=data)

    async def _apply_mock(
        self, function_name: str, body: Dict[str, Any]
    ) -> Optional[FunctionResponse]:
        # mocks shape step execution only; cleanup deletes always run
        if function_name in _DELETE_FUNCTIONS or str(body.get("action", "")).startswith("delete"):
            return None
        integration = _FUNCTION_INTEGRATIONS.get(function_name)
        mock = self._mocks.get(integration) if integration else None
        if mock is None or not mock.is_active:
            return None
        if mock.delay_ms:
            await asyncio.sleep(mock.delay_ms / 1000)
        if mock.mock_type == "timeout":
            raise RemoteCallError(
                mock.error_message or f"{integration} timed out",
                function_name=function_name,
                transient=True,
            )
        if mock.mock_type != "success":
            status = {"rate_limit": 429, "auth_failure": 401}.get(mock.mock_type, 500)
            return FunctionResponse.failure(
                mock.error_message or f"Mock {mock.mock_type}: {integration}",
                status_code=status,
            )
        if mock.response_data is not None:
            return FunctionResponse(data=dict(mock.response_data))
        return None

    # ------------------------------------------------------------------
    # Default function behaviour
    # ------------------------------------------------------------------
    def _new_id(self, prefix: str) -> str:
        return f"{prefix}_{next(self._counter)}_{uuid.uuid4().hex[:6]}"

    def _remember(self, integration: str, external_id: str, payload: Dict[str, Any]) -> None:
        self.live[f"{integration}:{external_id}"] = payload

    def _forget(self, integration: str, external_id: Any) -> bool:
        return self.live.pop(f"{integration}:{external_id}", None) is not None

    def _hubspot_admin(self, body: Dict[str, Any]) -> Dict[str, Any]:
        action = str(body.get("action", ""))
        if action.startswith("create_"):
            record_id = str(next(self._counter) + 1000)
            payload = {"success": True, "id": record_id, "properties": body.get("properties", {})}
            self._remember("hubspot", record_id, payload)
            return payload
        if action.startswith("delete_"):
            if self._forget("hubspot", body.get("record_id")):
                return {"success": True, "deleted": body.get("record_id")}
            return {"success": False, "error": f"Record {body.get('record_id')} not found"}
        if action.startswith("update_"):
            return {"success": True, "id": body.get("record_id")}
        return {"success": True, "action": action, "results": []}

    def _slack_send(self, body: Dict[str, Any]) -> Dict[str, Any]:
        ts = f"{int(time.time())}.{next(self._counter):06d}"
        payload = {"ok": True, "ts": ts, "channel": body.get("channel"), "text": body.get("text")}
        self._remember("slack", ts, payload)
        return payload

    def _slack_delete(self, body: Dict[str, Any]) -> Dict[str, Any]:
        if self._forget("slack", body.get("ts")):
            return {"ok": True, "ts": body.get("ts")}
        return {"ok": False, "error": "message_not_found"}

    def _calendar_event(self, body: Dict[str, Any]) -> Dict[str, Any]:
        if body.get("operation") == "read":
            return {"items": []}
        event_id = self._new_id("evt")
        payload = {
            "id": event_id,
            "summary": body.get("summary"),
            "start": body.get("start"),
            "end": body.get("end"),
        }
        self._remember("google_calendar", event_id, payload)
        return payload

    def _calendar_delete(self, body: Dict[str, Any]) -> Dict[str, Any]:
        if self._forget("google_calendar", body.get("event_id")):
            return {"success": True}
        return {"success": False, "error": "Event not found"}

    def _send_email(self, body: Dict[str, Any]) -> Dict[str, Any]:
        message_id = self._new_id("msg")
        payload = {"id": message_id, "threadId": self._new_id("thr"), "to": body.get("to")}
        self._remember("google_email", message_id, payload)
        return payload

    def _savvycal_booking(self, body: Dict[str, Any]) -> Dict[str, Any]:
        if body.get("operation") == "read":
            return {"bookings": []}
        booking_id = self._new_id("bkg")
        payload = {"id": booking_id, "title": body.get("title"), "email": body.get("email")}
        self._remember("savvycal", booking_id, payload)
        return payload

    def _savvycal_cancel(self, body: Dict[str, Any]) -> Dict[str, Any]:
        if self._forget("savvycal", body.get("booking_id")):
            return {"success": True, "state": "canceled"}
        return {"success": False, "error": "Booking not found"}

    def _internal_records(self, body: Dict[str, Any]) -> Dict[str, Any]:
        action = body.get("action")
        table = body.get("table")
        if action == "insert":
            record = {**(body.get("record") or {}), "id": str(uuid.uuid4())}
            self._remember("supabase", record["id"], {"table": table, **record})
            return {"record": record}
        if action == "select":
            match = body.get("match") or {}
            records = [
                row
                for key, row in self.live.items()
                if key.startswith("supabase:")
                and row.get("table") == table
                and all(row.get(k) == v for k, v in match.items())
            ]
            return {"records": records}
        if action == "update":
            key = f"supabase:{body.get('id')}"
            if key not in self.live:
                return {"success": False, "error": "Record not found"}
            self.live[key].update(body.get("record") or {})
            return {"record": self.live[key]}
        if action == "delete":
            if self._forget("supabase", body.get("id")):
                return {"deleted": body.get("id")}
            return {"success": False, "error": "Record not found"}
        return {"success": False, "error": f"Unknown action: {action}"}
