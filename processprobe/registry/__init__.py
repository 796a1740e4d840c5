"""Capability registry for the integrations a test run can touch."""

from __future__ import annotations

from .capabilities import (
    CAPABILITIES,
    build_view_url,
    get_capability,
    supports_cleanup,
    supports_operation,
)
from .models import Integration, IntegrationCapability, Operation, ResourceType

__all__ = [
    "CAPABILITIES",
    "Integration",
    "IntegrationCapability",
    "Operation",
    "ResourceType",
    "build_view_url",
    "get_capability",
    "supports_cleanup",
    "supports_operation",
]
