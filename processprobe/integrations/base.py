"""Shared plumbing for integration handlers."""

from __future__ import annotations

import abc
import logging
from typing import Any, ClassVar, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from ..config import IntegrationContext
from ..errors import CapabilityError, ProbeError, RemoteCallError
from ..registry import Integration, IntegrationCapability, Operation, ResourceType
from ..registry import build_view_url, get_capability
from ..tracking import ResourceTracker, TrackedResource
from ..transports import BaseFunctionClient

logger = logging.getLogger(__name__)

_NAME_FIELDS = ("name", "title", "subject", "summary", "dealname", "firstName", "email")


class StepContext(BaseModel):
    """Identifies the step on whose behalf an operation runs."""

    step_id: str
    step_name: str
    run_id: str
    org_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class IntegrationResult(BaseModel):
    """Outcome of one integration operation; never raised."""

    success: bool
    data: Optional[Dict[str, Any]] = None
    resource: Optional[TrackedResource] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @classmethod
    def from_error(cls, exc: BaseException) -> "IntegrationResult":
        kind = exc.kind if isinstance(exc, ProbeError) else "unexpected"
        return cls(success=False, error=str(exc) or type(exc).__name__, error_kind=kind)


def extract_display_name(data: Mapping[str, Any], resource_type: ResourceType) -> str:
    """Pick a human-readable name out of a response payload."""
    for field in _NAME_FIELDS:
        value = data.get(field)
        if isinstance(value, str) and value:
            return value
    properties = data.get("properties")
    if isinstance(properties, Mapping):
        first = properties.get("firstname") or ""
        last = properties.get("lastname") or ""
        if first or last:
            return f"{first} {last}".strip()
        for field in _NAME_FIELDS:
            value = properties.get(field)
            if isinstance(value, str) and value:
                return value
    first = data.get("firstName") or ""
    last = data.get("lastName") or ""
    if first or last:
        return f"{first} {last}".strip()
    return f"{resource_type.value} {data.get('id') or 'unknown'}"


class IntegrationHandler(metaclass=abc.ABCMeta):
    """Request shaping and resource tracking for one integration.

    Handlers raise ``ProbeError`` subclasses; the executor turns them into
    ``IntegrationResult`` failures.
    """

    integration: ClassVar[Integration]

    def __init__(
        self,
        client: BaseFunctionClient,
        tracker: ResourceTracker,
        context: IntegrationContext,
    ) -> None:
        self.client = client
        self.tracker = tracker
        self.context = context

    @property
    def capability(self) -> IntegrationCapability:
        return get_capability(self.integration)

    @abc.abstractmethod
    async def execute(
        self,
        operation: Operation,
        resource_type: ResourceType,
        data: Dict[str, Any],
        step: StepContext,
    ) -> IntegrationResult:
        """Run ``operation`` and track anything it creates."""
        raise NotImplementedError

    async def delete(self, resource: TrackedResource) -> IntegrationResult:
        """Remove ``resource`` from the remote system."""
        raise CapabilityError(f"{self.capability.display_name} does not support deletion")

    async def _invoke(self, function_name: str, body: Dict[str, Any]) -> Dict[str, Any]:
        response = await self.client.invoke(function_name, body)
        if not response.ok:
            raise RemoteCallError(
                response.error.message,
                function_name=function_name,
                status_code=response.error.status_code,
            )
        data = response.data or {}
        if data.get("success") is False or data.get("ok") is False:
            raise RemoteCallError(
                str(data.get("error") or f"{function_name} failed"),
                function_name=function_name,
            )
        return data

    def _track(
        self,
        resource_type: ResourceType,
        display_name: str,
        external_id: Any,
        step: StepContext,
        raw_data: Dict[str, Any],
        view_url: Optional[str] = None,
        url_context: Optional[Mapping[str, Any]] = None,
    ) -> TrackedResource:
        if view_url is None:
            view_url = build_view_url(
                self.integration, resource_type, str(external_id), url_context
            )
        return self.tracker.add_resource(
            integration=self.integration,
            resource_type=resource_type,
            display_name=display_name,
            external_id=str(external_id),
            view_url=view_url,
            created_by_step_id=step.step_id,
            created_by_step_name=step.step_name,
            raw_data=raw_data,
        )
