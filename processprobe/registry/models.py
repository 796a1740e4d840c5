"""Pydantic models describing integration capabilities."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..errors import CapabilityError


class Integration(str, Enum):
    """Closed set of external systems a test run can touch."""

    HUBSPOT = "hubspot"
    GOOGLE_CALENDAR = "google_calendar"
    GOOGLE_EMAIL = "google_email"
    SLACK = "slack"
    SAVVYCAL = "savvycal"
    FATHOM = "fathom"
    JUSTCALL = "justcall"
    MEETINGBAAS = "meetingbaas"
    SUPABASE = "supabase"

    @classmethod
    def parse(cls, value: Union[str, "Integration"]) -> "Integration":
        """Resolve ``value`` (any case, dashes allowed) to an integration."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(key)
        except ValueError:
            raise CapabilityError(f"Unknown integration: {value}") from None


class ResourceType(str, Enum):
    """Kinds of side-effecting resource an integration can create."""

    CONTACT = "contact"
    DEAL = "deal"
    TASK = "task"
    ACTIVITY = "activity"
    MEETING = "meeting"
    CALENDAR_EVENT = "calendar_event"
    EMAIL = "email"
    MESSAGE = "message"
    CALL = "call"
    BOOKING = "booking"
    RECORD = "record"

    @classmethod
    def parse(cls, value: Union[str, "ResourceType"]) -> "ResourceType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise CapabilityError(f"Unknown resource type: {value}") from None


class Operation(str, Enum):
    """Canonical CRUD verbs."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class IntegrationCapability(BaseModel):
    """Static description of what one integration supports."""

    integration: Integration
    display_name: str
    supports_create: bool = False
    supports_read: bool = False
    supports_update: bool = False
    supports_delete: bool = False
    resource_types: tuple[ResourceType, ...] = Field(default_factory=tuple)
    endpoint: str
    view_url_pattern: Optional[str] = None
    delete_endpoint: Optional[str] = None
    notes: str = ""

    model_config = ConfigDict(frozen=True)

    @property
    def read_only(self) -> bool:
        return self.supports_read and not (
            self.supports_create or self.supports_update or self.supports_delete
        )

    def supports(self, operation: Operation) -> bool:
        return {
            Operation.CREATE: self.supports_create,
            Operation.READ: self.supports_read,
            Operation.UPDATE: self.supports_update,
            Operation.DELETE: self.supports_delete,
        }[operation]

    def manages(self, resource_type: ResourceType) -> bool:
        return resource_type in self.resource_types
