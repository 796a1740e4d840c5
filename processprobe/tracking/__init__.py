"""Resource tracking for test runs."""

from .models import CleanupStatus, LedgerSnapshot, TrackedResource, TrackerSummary
from .tracker import ResourceTracker

__all__ = [
    "CleanupStatus",
    "LedgerSnapshot",
    "ResourceTracker",
    "TrackedResource",
    "TrackerSummary",
]
