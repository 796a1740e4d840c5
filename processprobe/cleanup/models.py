"""Cleanup report models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..registry import Integration, ResourceType


class FailedResource(BaseModel):
    """A resource the sweep could not remove."""

    resource_id: str
    integration: Integration
    resource_type: ResourceType
    display_name: str
    external_id: Optional[str] = None
    view_url: Optional[str] = None
    error: str


class CleanupResult(BaseModel):
    """Outcome of one cleanup sweep."""

    success: bool
    total_resources: int = 0
    success_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    failed_resources: List[FailedResource] = Field(default_factory=list)
    manual_cleanup_instructions: List[str] = Field(default_factory=list)
    started_at: datetime
    completed_at: datetime
    duration_ms: int = 0
