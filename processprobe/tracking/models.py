"""Data models for tracked resources."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..registry import Integration, ResourceType


class CleanupStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"
    NOT_SUPPORTED = "not_supported"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TrackedResource(BaseModel):
    """A side-effecting artifact created during a test run."""

    id: str
    integration: Integration
    resource_type: ResourceType
    display_name: str
    external_id: Optional[str] = None
    view_url: Optional[str] = None
    created_by_step_id: str
    created_by_step_name: str
    created_at: datetime = Field(default_factory=_utcnow)
    cleanup_status: CleanupStatus = CleanupStatus.PENDING
    cleanup_error: Optional[str] = None
    cleanup_attempted_at: Optional[datetime] = None
    # integration-defined payload; diagnostics only
    raw_data: Dict[str, Any] = Field(default_factory=dict)


class TrackerSummary(BaseModel):
    """Counts over a tracker's ledger."""

    total: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_integration: Dict[str, int] = Field(default_factory=dict)
    pending_cleanup: int = 0


class LedgerSnapshot(BaseModel):
    """Serializable copy of a tracker ledger, in creation order."""

    run_id: str
    resources: List[TrackedResource] = Field(default_factory=list)
    captured_at: datetime = Field(default_factory=_utcnow)

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, data: str) -> "LedgerSnapshot":
        return cls.model_validate_json(data)
