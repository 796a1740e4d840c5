"""Append-only ledger of resources created during a test run."""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Union

from ..errors import InvalidStatusTransition
from ..registry import Integration, ResourceType, get_capability
from .models import CleanupStatus, LedgerSnapshot, TrackedResource, TrackerSummary

logger = logging.getLogger(__name__)

_FINAL_STATUSES = {CleanupStatus.SUCCESS, CleanupStatus.NOT_SUPPORTED}
_NEEDS_MANUAL_CLEANUP = {
    CleanupStatus.FAILED,
    CleanupStatus.NOT_SUPPORTED,
    CleanupStatus.SKIPPED,
}


class ResourceTracker:
    """Ledger of every resource a run created.

    Records live in a dense arena; ``_order`` holds arena slots in insertion
    order. Cleanup order is that index list reversed, so a resource that
    references an earlier one (a deal pointing at a contact) is torn down
    first. Records are never removed, only their cleanup status advances.

    One tracker belongs to one run; it is not safe to share between runs.
    """

    def __init__(self, run_id: Optional[str] = None) -> None:
        self.run_id = run_id or str(uuid.uuid4())
        self._arena: List[TrackedResource] = []
        self._order: List[int] = []
        self._slots: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[TrackedResource]:
        return iter(self.get_all_resources())

    # ------------------------------------------------------------------
    def add_resource(
        self,
        *,
        integration: Union[str, Integration],
        resource_type: Union[str, ResourceType],
        display_name: str,
        created_by_step_id: str,
        created_by_step_name: str,
        external_id: Optional[str] = None,
        view_url: Optional[str] = None,
        raw_data: Optional[Dict[str, Any]] = None,
    ) -> TrackedResource:
        """Register a newly created resource and return its record."""
        resource = TrackedResource(
            id=f"res_{uuid.uuid4().hex[:12]}",
            integration=Integration.parse(integration),
            resource_type=ResourceType.parse(resource_type),
            display_name=display_name,
            external_id=str(external_id) if external_id is not None else None,
            view_url=view_url,
            created_by_step_id=created_by_step_id,
            created_by_step_name=created_by_step_name,
            raw_data=dict(raw_data or {}),
        )
        self._insert(resource)
        logger.info(
            f"Tracking {resource.integration.value} {resource.resource_type.value} "
            f"{resource.display_name!r} (external_id={resource.external_id}) "
            f"from step {created_by_step_id}"
        )
        return resource

    def _insert(self, resource: TrackedResource) -> None:
        if resource.id in self._slots:
            raise ValueError(f"Resource {resource.id} is already tracked")
        self._arena.append(resource)
        slot = len(self._arena) - 1
        self._slots[resource.id] = slot
        self._order.append(slot)

    def get_resource(self, resource_id: str) -> Optional[TrackedResource]:
        slot = self._slots.get(resource_id)
        return self._arena[slot] if slot is not None else None

    def get_all_resources(self) -> List[TrackedResource]:
        """Resources in creation order."""
        return [self._arena[slot] for slot in self._order]

    def get_resources_in_cleanup_order(self) -> List[TrackedResource]:
        """Resources in reverse creation order."""
        return [self._arena[slot] for slot in reversed(self._order)]

    def get_resources_by_integration(
        self, integration: Union[str, Integration]
    ) -> List[TrackedResource]:
        target = Integration.parse(integration)
        return [r for r in self.get_all_resources() if r.integration is target]

    # ------------------------------------------------------------------
    def update_cleanup_status(
        self,
        resource_id: str,
        status: Union[str, CleanupStatus],
        error: Optional[str] = None,
    ) -> TrackedResource:
        """Advance the cleanup status of a tracked resource.

        Raises:
            KeyError: If ``resource_id`` is not tracked.
            InvalidStatusTransition: If the status would regress.
        """
        resource = self.get_resource(resource_id)
        if resource is None:
            raise KeyError(resource_id)
        status = CleanupStatus(status)
        current = resource.cleanup_status
        if current in _FINAL_STATUSES and status is not current:
            raise InvalidStatusTransition(
                f"{resource_id}: cannot move from {current.value} to {status.value}"
            )
        if status is CleanupStatus.PENDING and current is not CleanupStatus.PENDING:
            raise InvalidStatusTransition(
                f"{resource_id}: cannot return to pending from {current.value}"
            )
        resource.cleanup_status = status
        resource.cleanup_error = error
        if status is not CleanupStatus.PENDING:
            resource.cleanup_attempted_at = datetime.now(timezone.utc)
        return resource

    def mark_integration_as_not_supported(
        self, integration: Union[str, Integration], reason: Optional[str] = None
    ) -> int:
        """Mark every open resource of ``integration`` as not supported.

        Returns the number of resources marked.
        """
        target = Integration.parse(integration)
        reason = reason or f"{get_capability(target).display_name} does not support deletion"
        marked = 0
        for resource in self.get_all_resources():
            if resource.integration is not target:
                continue
            if resource.cleanup_status in _FINAL_STATUSES:
                continue
            self.update_cleanup_status(resource.id, CleanupStatus.NOT_SUPPORTED, reason)
            marked += 1
        return marked

    # ------------------------------------------------------------------
    def get_manual_cleanup_instructions(self) -> List[str]:
        """One actionable line per resource that may still exist remotely.

        Lines are grouped by integration. Each prefers the view URL, then the
        external id, then the step that created the resource.
        """
        grouped: Dict[Integration, List[TrackedResource]] = {}
        for resource in self.get_all_resources():
            if resource.cleanup_status in _NEEDS_MANUAL_CLEANUP:
                grouped.setdefault(resource.integration, []).append(resource)

        lines: List[str] = []
        for integration, resources in grouped.items():
            display = get_capability(integration).display_name
            for resource in resources:
                subject = (
                    f"[{display}] Delete {resource.resource_type.value} "
                    f"{resource.display_name!r}"
                )
                if resource.view_url:
                    line = f"{subject}: {resource.view_url}"
                elif resource.external_id:
                    line = f"{subject} (external id: {resource.external_id})"
                else:
                    line = (
                        f"{subject} created by step {resource.created_by_step_name} "
                        f"({resource.created_by_step_id})"
                    )
                if resource.cleanup_error:
                    line += f" [{resource.cleanup_error}]"
                lines.append(line)
        return lines

    def get_summary(self) -> TrackerSummary:
        resources = self.get_all_resources()
        statuses = Counter(r.cleanup_status.value for r in resources)
        integrations = Counter(r.integration.value for r in resources)
        return TrackerSummary(
            total=len(resources),
            by_status=dict(statuses),
            by_integration=dict(integrations),
            pending_cleanup=statuses.get(CleanupStatus.PENDING.value, 0),
        )

    # ------------------------------------------------------------------
    def snapshot(self) -> LedgerSnapshot:
        """Copy the ledger for persistence."""
        return LedgerSnapshot(
            run_id=self.run_id,
            resources=[r.model_copy(deep=True) for r in self.get_all_resources()],
        )

    @classmethod
    def restore(cls, snapshot: LedgerSnapshot) -> "ResourceTracker":
        """Rebuild a tracker from ``snapshot``, preserving creation order."""
        tracker = cls(run_id=snapshot.run_id)
        for resource in snapshot.resources:
            tracker._insert(resource.model_copy(deep=True))
        return tracker
