"""Progress observers for cleanup sweeps."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from ..tracking import TrackedResource

if TYPE_CHECKING:
    from .models import CleanupResult

logger = logging.getLogger(__name__)


class CleanupObserver:
    """Receives sweep events in order: start, then a start/complete pair per
    resource, then complete. Override the hooks you need."""

    def on_start(self, total: int) -> None:
        pass

    def on_resource_start(self, resource: TrackedResource, index: int, total: int) -> None:
        pass

    def on_resource_complete(
        self, resource: TrackedResource, success: bool, error: Optional[str] = None
    ) -> None:
        pass

    def on_complete(self, result: "CleanupResult") -> None:
        pass


class LoggingObserver(CleanupObserver):
    """Report sweep progress through the module logger."""

    def on_start(self, total: int) -> None:
        logger.info(f"Cleaning up {total} resources")

    def on_resource_start(self, resource: TrackedResource, index: int, total: int) -> None:
        logger.info(
            f"[{index + 1}/{total}] Deleting {resource.integration.value} "
            f"{resource.resource_type.value} {resource.display_name!r}"
        )

    def on_resource_complete(
        self, resource: TrackedResource, success: bool, error: Optional[str] = None
    ) -> None:
        if not success:
            logger.warning(f"Could not delete {resource.display_name!r}: {error}")

    def on_complete(self, result: "CleanupResult") -> None:
        logger.info(
            f"Cleanup finished: {result.success_count} deleted, "
            f"{result.failed_count} failed, {result.skipped_count} skipped"
        )
