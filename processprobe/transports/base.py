"""Base client interface for remote integration functions."""

from __future__ import annotations

import abc
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class FunctionError(BaseModel):
    """Structured error returned by a remote function."""

    message: str
    status_code: Optional[int] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class FunctionResponse(BaseModel):
    """Either a success payload or a structured error."""

    data: Optional[Dict[str, Any]] = None
    error: Optional[FunctionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(
        cls, message: str, status_code: Optional[int] = None, **details: Any
    ) -> "FunctionResponse":
        return cls(
            error=FunctionError(message=message, status_code=status_code, details=details)
        )


class BaseFunctionClient(metaclass=abc.ABCMeta):
    """Abstract client for named remote callables taking a JSON body."""

    async def connect(self) -> None:
        """Open the underlying connection (no-op by default)."""
        pass

    async def close(self) -> None:
        """Release the underlying connection (no-op by default)."""
        pass

    async def __aenter__(self) -> "BaseFunctionClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @abc.abstractmethod
    async def invoke(self, function_name: str, body: Dict[str, Any]) -> FunctionResponse:
        """Call ``function_name`` with ``body``.

        Raises:
            RemoteCallError: If the request could not be completed at all.
            MissingContextError: If the client lacks credentials.
        """
        raise NotImplementedError
