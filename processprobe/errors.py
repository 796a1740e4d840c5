"""
Error classes for processprobe.

Integration-level failures are raised inside handlers and converted into
structured ``IntegrationResult`` failures at the executor boundary:

- CapabilityError: the integration, verb or resource kind is not supported.
  Detected locally, never reaches a remote call.
- MissingContextError: an identifier the call needs (org id, channel,
  recipient, auth token) is absent. Detected before the call.
- RemoteCallError: the remote function failed or returned an error payload.

ProcessStructureError and InvalidStatusTransition are programming/input
errors and propagate to the caller.
"""

from __future__ import annotations

from typing import Iterable, Optional


class ProbeError(Exception):
    """Base exception for processprobe."""

    kind = "unexpected"


class CapabilityError(ProbeError):
    """Operation/integration/resource-kind combination not supported."""

    kind = "capability"


class MissingContextError(ProbeError):
    """A required identifier is missing from the call context."""

    kind = "missing_context"


class RemoteCallError(ProbeError):
    """The remote function call failed.

    ``transient`` marks failures where the request never completed
    (connection reset, timeout); only those are retried.
    """

    kind = "remote"

    def __init__(
        self,
        message: str,
        *,
        function_name: Optional[str] = None,
        status_code: Optional[int] = None,
        transient: bool = False,
    ) -> None:
        super().__init__(message)
        self.function_name = function_name
        self.status_code = status_code
        self.transient = transient


class ProcessStructureError(ProbeError, ValueError):
    """A process structure failed validation."""

    kind = "invalid_structure"

    def __init__(self, problems: Iterable[str]) -> None:
        self.problems = list(problems)
        super().__init__(
            "Invalid process structure: " + "; ".join(self.problems)
        )


class InvalidStatusTransition(ProbeError, ValueError):
    """A tracked resource's cleanup status would regress."""
