"""Remote function client factory."""

from __future__ import annotations

import os
from typing import Optional

from ..config import ProbeConfig, load_config
from ..errors import MissingContextError
from .base import BaseFunctionClient, FunctionError, FunctionResponse
from .simulated import SimulatedFunctionClient


def get_client(
    backend: Optional[str] = None, config: Optional[ProbeConfig] = None
) -> BaseFunctionClient:
    """Factory function to get the configured function client."""

    config = config or load_config()
    backend = (
        backend
        or os.getenv("PROCESSPROBE_REMOTE")
        or config.remote.backend
    ).lower()

    if backend == "simulated":
        return SimulatedFunctionClient()
    elif backend == "http":
        from .http import HttpFunctionClient

        remote = config.remote
        if not remote.base_url:
            raise MissingContextError("remote.base_url is required for the http backend")
        return HttpFunctionClient(
            base_url=remote.base_url,
            api_key=remote.api_key,
            timeout_s=remote.timeout_s,
        )
    else:
        raise ValueError(f"Unsupported remote backend: {backend}")


__all__ = [
    "BaseFunctionClient",
    "FunctionError",
    "FunctionResponse",
    "SimulatedFunctionClient",
    "get_client",
]
