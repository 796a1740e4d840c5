"""Reverse-order teardown of tracked resources."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional

from ..config import CleanupConfig
from ..integrations import IntegrationExecutor
from ..registry import Integration, supports_cleanup
from ..tracking import CleanupStatus, ResourceTracker, TrackedResource
from .models import CleanupResult, FailedResource
from .observers import CleanupObserver

logger = logging.getLogger(__name__)


class CleanupService:
    """Delete everything a run created, newest first.

    Integrations that cannot delete are marked ``not_supported`` up front.
    Deletes run one at a time with ``delete_delay_ms`` between them; a failed
    delete stops the sweep only when ``continue_cleanup_on_failure`` is off,
    in which case the remaining resources are marked ``skipped``.
    """

    def __init__(
        self,
        tracker: ResourceTracker,
        executor: IntegrationExecutor,
        config: Optional[CleanupConfig] = None,
    ) -> None:
        self.tracker = tracker
        self.executor = executor
        self.config = config or CleanupConfig()
        self._observers: List[CleanupObserver] = []

    def add_observer(self, observer: CleanupObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: CleanupObserver) -> None:
        self._observers.remove(observer)

    def _mark_unsupported(self) -> None:
        for integration in Integration:
            if supports_cleanup(integration):
                continue
            marked = self.tracker.mark_integration_as_not_supported(integration)
            if marked:
                logger.info(f"{marked} {integration.value} resources need manual cleanup")

    async def _delete(self, resource: TrackedResource) -> Optional[str]:
        """Delete one resource and record its status. Returns the error, if any."""
        result = await self.executor.delete_resource(resource)
        if result.success:
            self.tracker.update_cleanup_status(resource.id, CleanupStatus.SUCCESS)
            return None
        error = result.error or "Delete failed"
        self.tracker.update_cleanup_status(resource.id, CleanupStatus.FAILED, error)
        return error

    async def cleanup_all(self) -> CleanupResult:
        """Run the sweep and return its report."""
        started = datetime.now(timezone.utc)
        self._mark_unsupported()
        resources = self.tracker.get_resources_in_cleanup_order()
        total = len(resources)
        for observer in self._observers:
            observer.on_start(total)

        aborted = False
        attempted = False
        for index, resource in enumerate(resources):
            for observer in self._observers:
                observer.on_resource_start(resource, index, total)

            status = resource.cleanup_status
            if status is CleanupStatus.NOT_SUPPORTED:
                success, error = False, resource.cleanup_error
            elif status is CleanupStatus.SUCCESS:
                success, error = True, None
            elif aborted:
                self.tracker.update_cleanup_status(
                    resource.id, CleanupStatus.SKIPPED, "Skipped after an earlier failure"
                )
                success, error = False, resource.cleanup_error
            else:
                if attempted and self.config.delete_delay_ms:
                    await asyncio.sleep(self.config.delete_delay_ms / 1000)
                attempted = True
                error = await self._delete(resource)
                success = error is None
                if not success and not self.config.continue_cleanup_on_failure:
                    logger.warning("Stopping cleanup after failure")
                    aborted = True

            for observer in self._observers:
                observer.on_resource_complete(resource, success, error)

        result = self._build_result(resources, started)
        for observer in self._observers:
            observer.on_complete(result)
        return result

    def _build_result(self, resources: List[TrackedResource], started: datetime) -> CleanupResult:
        success_count = failed_count = skipped_count = 0
        failed: List[FailedResource] = []
        for resource in resources:
            status = resource.cleanup_status
            if status is CleanupStatus.SUCCESS:
                success_count += 1
            elif status is CleanupStatus.FAILED:
                failed_count += 1
                failed.append(
                    FailedResource(
                        resource_id=resource.id,
                        integration=resource.integration,
                        resource_type=resource.resource_type,
                        display_name=resource.display_name,
                        external_id=resource.external_id,
                        view_url=resource.view_url,
                        error=resource.cleanup_error or "Delete failed",
                    )
                )
            else:
                skipped_count += 1
        completed = datetime.now(timezone.utc)
        return CleanupResult(
            success=failed_count == 0,
            total_resources=len(resources),
            success_count=success_count,
            failed_count=failed_count,
            skipped_count=skipped_count,
            failed_resources=failed,
            manual_cleanup_instructions=self.tracker.get_manual_cleanup_instructions(),
            started_at=started,
            completed_at=completed,
            duration_ms=int((completed - started).total_seconds() * 1000),
        )
