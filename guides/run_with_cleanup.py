"""Example test run against the simulated backend, with automatic cleanup."""

import asyncio

from processprobe import TestRunSession
from processprobe.cleanup import LoggingObserver
from processprobe.config import CleanupConfig, IntegrationContext, ProbeConfig


async def main():
    config = ProbeConfig(
        cleanup=CleanupConfig(delete_delay_ms=100),
        context=IntegrationContext(
            org_id="org-demo",
            hubspot_portal_id="1234567",
            slack_workspace="acme",
            slack_channel="C0SALES",
        ),
    )

    async with TestRunSession(config) as session:
        session.add_observer(LoggingObserver())
        executor = session.executor

        contact = await executor.execute(
            "hubspot", "create", "contact", {"firstname": "Ada"}, session.step("contact", "Create contact")
        )
        deal = await executor.execute(
            "hubspot", "create", "deal", {"amount": 12000}, session.step("deal", "Create deal")
        )
        email = await executor.execute(
            "google_email", "send", "email", {"to": "ada@example.com"}, session.step("email", "Send welcome")
        )
        for result in (contact, deal, email):
            print(f"{result.resource.display_name}: {result.resource.view_url}")

    result = session.cleanup_result
    print(f"Deleted {result.success_count}, failed {result.failed_count}, skipped {result.skipped_count}")
    for line in result.manual_cleanup_instructions:
        print(line)


if __name__ == "__main__":
    asyncio.run(main())
