"""Teardown of resources created during a test run."""

from .models import CleanupResult, FailedResource
from .observers import CleanupObserver, LoggingObserver
from .service import CleanupService

__all__ = [
    "CleanupObserver",
    "CleanupResult",
    "CleanupService",
    "FailedResource",
    "LoggingObserver",
]
