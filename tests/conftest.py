"""Shared fixtures for processprobe tests."""

import json
from pathlib import Path

import pytest
import yaml

from processprobe.config import CleanupConfig, IntegrationContext, ProbeConfig
from processprobe.integrations import IntegrationExecutor, StepContext
from processprobe.tracking import ResourceTracker
from processprobe.transports import SimulatedFunctionClient

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> dict:
    path = FIXTURES / name
    if path.suffix in (".yaml", ".yml"):
        return yaml.safe_load(path.read_text())
    return json.loads(path.read_text())


@pytest.fixture
def linear_structure() -> dict:
    return load_fixture("linear.json")


@pytest.fixture
def diamond_structure() -> dict:
    return load_fixture("diamond.json")


@pytest.fixture
def onboarding_structure() -> dict:
    return load_fixture("onboarding.yaml")


@pytest.fixture
def context() -> IntegrationContext:
    return IntegrationContext(
        org_id="org-1",
        hubspot_portal_id="12345",
        slack_workspace="acme",
        slack_channel="C0SALES",
    )


@pytest.fixture
def client() -> SimulatedFunctionClient:
    return SimulatedFunctionClient()


@pytest.fixture
def tracker() -> ResourceTracker:
    return ResourceTracker(run_id="run-1")


@pytest.fixture
def executor(client, tracker, context) -> IntegrationExecutor:
    return IntegrationExecutor(client, tracker, context, retry_base_s=0)


@pytest.fixture
def step() -> StepContext:
    return StepContext(step_id="s1", step_name="Create records", run_id="run-1", org_id="org-1")


@pytest.fixture
def probe_config(context) -> ProbeConfig:
    return ProbeConfig(
        cleanup=CleanupConfig(delete_delay_ms=0),
        context=context,
    )
