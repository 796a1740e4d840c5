from __future__ import annotations

import os
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field

from .constants import DEFAULT_DELETE_DELAY_MS, MAX_PATHS


class RemoteConfig(BaseModel):
    """How remote integration functions are reached."""

    backend: Literal["simulated", "http"] = "simulated"
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout_s: float = 30.0


class CleanupConfig(BaseModel):
    """Cleanup sweep behaviour."""

    auto_cleanup: bool = True
    continue_cleanup_on_failure: bool = True
    cleanup_delay_ms: int = Field(default=0, ge=0)
    delete_delay_ms: int = Field(default=DEFAULT_DELETE_DELAY_MS, ge=0)


class IntegrationContext(BaseModel):
    """Account identifiers used to shape requests and build view URLs."""

    org_id: Optional[str] = None
    hubspot_portal_id: Optional[str] = None
    hubspot_region: Optional[str] = None
    slack_workspace: Optional[str] = None
    slack_channel: Optional[str] = None
    google_calendar_id: Optional[str] = None

    def merged(self, **overrides: Any) -> "IntegrationContext":
        """Return a copy with non-empty ``overrides`` applied."""
        values: Dict[str, Any] = {k: v for k, v in overrides.items() if v}
        return self.model_copy(update=values)


class ProbeConfig(BaseModel):
    """Top-level configuration model."""

    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    cleanup: CleanupConfig = Field(default_factory=CleanupConfig)
    context: IntegrationContext = Field(default_factory=IntegrationContext)
    max_paths: int = Field(default=MAX_PATHS, ge=1)


def load_config(path: Optional[str] = None) -> ProbeConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to PROCESSPROBE_CONFIG
            env variable or 'processprobe.yaml' in the current directory.
    """

    config_path = path or os.getenv("PROCESSPROBE_CONFIG", "processprobe.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = ProbeConfig(**data)
    else:
        config = ProbeConfig()

    env_url = os.getenv("PROCESSPROBE_FUNCTIONS_URL")
    if env_url:
        config.remote.base_url = env_url
    env_key = os.getenv("PROCESSPROBE_API_KEY")
    if env_key:
        config.remote.api_key = env_key
    env_org = os.getenv("PROCESSPROBE_ORG_ID")
    if env_org:
        config.context.org_id = env_org
    return config
