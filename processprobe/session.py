"""Per-run wiring of tracker, executor and cleanup."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Optional

from .cleanup import CleanupObserver, CleanupResult, CleanupService
from .config import ProbeConfig, load_config
from .integrations import IntegrationExecutor, StepContext
from .tracking import ResourceTracker
from .transports import BaseFunctionClient, get_client

logger = logging.getLogger(__name__)


class TestRunSession:
    """Own every stateful collaborator of one test run.

    Usage::

        async with TestRunSession(config) as run:
            await run.executor.execute("hubspot", "create", "contact", {}, run.step("s1", "Create contact"))

    On exit, successful or not, the tracked resources are cleaned up when
    ``config.cleanup.auto_cleanup`` is set; the report is kept in
    ``cleanup_result``.
    """

    __test__ = False

    def __init__(
        self,
        config: Optional[ProbeConfig] = None,
        client: Optional[BaseFunctionClient] = None,
        run_id: Optional[str] = None,
        retry_base_s: float = 0.5,
    ) -> None:
        self.config = config or load_config()
        self.run_id = run_id or str(uuid.uuid4())
        self.client = client or get_client(config=self.config)
        self.tracker = ResourceTracker(run_id=self.run_id)
        self.executor = IntegrationExecutor(
            self.client, self.tracker, self.config.context, retry_base_s=retry_base_s
        )
        self.cleanup = CleanupService(self.tracker, self.executor, self.config.cleanup)
        self.cleanup_result: Optional[CleanupResult] = None

    def step(self, step_id: str, step_name: str) -> StepContext:
        """Build the context for a step executed in this run."""
        return StepContext(
            step_id=step_id,
            step_name=step_name,
            run_id=self.run_id,
            org_id=self.executor.context.org_id,
        )

    def add_observer(self, observer: CleanupObserver) -> None:
        self.cleanup.add_observer(observer)

    async def run_cleanup(self) -> CleanupResult:
        """Wait ``cleanup_delay_ms`` then sweep the tracked resources."""
        delay_ms = self.config.cleanup.cleanup_delay_ms
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)
        self.cleanup_result = await self.cleanup.cleanup_all()
        return self.cleanup_result

    async def __aenter__(self) -> "TestRunSession":
        await self.client.connect()
        logger.info(f"Started test run {self.run_id}")
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        try:
            if exc is not None:
                logger.error(f"Test run {self.run_id} failed: {exc}")
            if self.config.cleanup.auto_cleanup and len(self.tracker):
                await self.run_cleanup()
        finally:
            await self.client.close()
