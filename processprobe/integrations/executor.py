"""Dispatch of single integration operations."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union

from ..config import IntegrationContext
from ..contracts import WorkflowStepDefinition
from ..errors import CapabilityError, MissingContextError, ProbeError, RemoteCallError
from ..registry import Integration, Operation, ResourceType, get_capability, supports_cleanup
from ..tracking import ResourceTracker, TrackedResource
from ..transports import BaseFunctionClient
from ..utils.retry import schedule_retry
from .base import IntegrationResult, StepContext
from .handlers import HANDLERS, IntegrationHandler, infer_resource_type

logger = logging.getLogger(__name__)

OPERATION_ALIASES: Dict[str, Operation] = {
    "create": Operation.CREATE,
    "write": Operation.CREATE,
    "insert": Operation.CREATE,
    "post": Operation.CREATE,
    "send": Operation.CREATE,
    "add": Operation.CREATE,
    "read": Operation.READ,
    "get": Operation.READ,
    "fetch": Operation.READ,
    "list": Operation.READ,
    "query": Operation.READ,
    "update": Operation.UPDATE,
    "patch": Operation.UPDATE,
    "modify": Operation.UPDATE,
    "edit": Operation.UPDATE,
    "upsert": Operation.UPDATE,
    "delete": Operation.DELETE,
    "remove": Operation.DELETE,
    "destroy": Operation.DELETE,
    "cancel": Operation.DELETE,
}

# only operations that are safe to repeat after a dropped connection
_RETRYABLE = {Operation.READ, Operation.CREATE}


def normalize_operation(operation: Union[str, Operation]) -> Operation:
    """Map an operation verb or alias to its canonical form."""
    if isinstance(operation, Operation):
        return operation
    try:
        return OPERATION_ALIASES[str(operation).strip().lower()]
    except KeyError:
        raise CapabilityError(f"Unknown operation: {operation}") from None


class IntegrationExecutor:
    """Run operations against integrations and track what they create.

    Every call resolves to an ``IntegrationResult``; failures are reported in
    the result instead of raised. Calls are awaited one at a time.
    """

    def __init__(
        self,
        client: BaseFunctionClient,
        tracker: ResourceTracker,
        context: Optional[IntegrationContext] = None,
        retry_base_s: float = 0.5,
    ) -> None:
        self.client = client
        self.tracker = tracker
        self.context = context or IntegrationContext()
        self.retry_base_s = retry_base_s
        self._handlers: Dict[Integration, IntegrationHandler] = {
            integration: handler_cls(client, tracker, self.context)
            for integration, handler_cls in HANDLERS.items()
        }

    def set_context(self, **values: Any) -> None:
        """Merge identifiers into the integration context."""
        self.context = self.context.merged(**values)
        for handler in self._handlers.values():
            handler.context = self.context

    def _check(
        self, integration: Integration, operation: Operation, resource_type: ResourceType
    ) -> None:
        capability = get_capability(integration)
        if not capability.supports(operation):
            raise CapabilityError(
                f'Operation "{operation.value}" not supported for {capability.display_name}'
            )
        if not capability.manages(resource_type):
            raise CapabilityError(
                f"{capability.display_name} does not manage {resource_type.value} resources"
            )

    async def execute(
        self,
        integration: Union[str, Integration],
        operation: Union[str, Operation],
        resource_type: Union[str, ResourceType],
        data: Optional[Mapping[str, Any]],
        step: StepContext,
        *,
        retries: int = 0,
    ) -> IntegrationResult:
        """Execute one operation against ``integration``.

        ``retries`` re-attempts read and create operations whose request
        never completed.
        """
        try:
            target = Integration.parse(integration)
            verb = normalize_operation(operation)
            kind = ResourceType.parse(resource_type)
            self._check(target, verb, kind)
        except CapabilityError as exc:
            logger.warning(f"Rejected {integration} {operation} for step {step.step_id}: {exc}")
            return IntegrationResult.from_error(exc)

        handler = self._handlers[target]
        attempt = 0
        while True:
            try:
                return await handler.execute(verb, kind, dict(data or {}), step)
            except RemoteCallError as exc:
                if exc.transient and verb in _RETRYABLE and attempt < retries:
                    logger.warning(
                        f"{target.value} {verb.value} failed ({exc}); "
                        f"retry {attempt + 1}/{retries}"
                    )
                    await schedule_retry(attempt, base=self.retry_base_s)
                    attempt += 1
                    continue
                logger.error(f"{target.value} {verb.value} failed for step {step.step_id}: {exc}")
                return IntegrationResult.from_error(exc)
            except ProbeError as exc:
                logger.error(f"{target.value} {verb.value} failed for step {step.step_id}: {exc}")
                return IntegrationResult.from_error(exc)
            except Exception as exc:
                logger.exception(f"Unexpected error executing {target.value} {verb.value}")
                return IntegrationResult.from_error(exc)

    async def execute_step(
        self,
        step: WorkflowStepDefinition,
        run_id: str,
        data: Optional[Mapping[str, Any]] = None,
        operation: Optional[str] = None,
    ) -> IntegrationResult:
        """Execute a converted workflow step with its own test settings."""
        if not step.integration:
            return IntegrationResult(
                success=False,
                error=f"Step {step.id} has no integration",
                error_kind=CapabilityError.kind,
            )
        operations = step.test_config.operations or ["read"]
        context = StepContext(
            step_id=step.id, step_name=step.name, run_id=run_id, org_id=self.context.org_id
        )
        return await self.execute(
            step.integration,
            operation or operations[0],
            infer_resource_type(step),
            data,
            context,
            retries=step.test_config.retry_count,
        )

    async def delete_resource(self, resource: TrackedResource) -> IntegrationResult:
        """Delete ``resource`` remotely. The tracker status is left unchanged."""
        try:
            if not supports_cleanup(resource.integration):
                raise CapabilityError(
                    f"{get_capability(resource.integration).display_name} does not support deletion"
                )
            if not resource.external_id:
                raise MissingContextError(
                    f"No external id recorded for {resource.display_name!r}"
                )
            return await self._handlers[resource.integration].delete(resource)
        except ProbeError as exc:
            logger.error(f"Delete of {resource.id} ({resource.integration.value}) failed: {exc}")
            return IntegrationResult.from_error(exc)
        except Exception as exc:
            logger.exception(f"Unexpected error deleting {resource.id}")
            return IntegrationResult.from_error(exc)
