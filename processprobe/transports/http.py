"""HTTP client for hosted integration functions."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..errors import MissingContextError, RemoteCallError
from .base import BaseFunctionClient, FunctionResponse

logger = logging.getLogger(__name__)


class HttpFunctionClient(BaseFunctionClient):
    """POST JSON bodies to ``<base_url>/<function name>``."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout_s: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = httpx.Timeout(timeout_s, connect=5.0)
        self._client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        """Open the pooled HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise MissingContextError("An API key is required to call remote functions")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def invoke(self, function_name: str, body: Dict[str, Any]) -> FunctionResponse:
        headers = self._headers()
        if self._client is None:
            await self.connect()

        url = f"{self.base_url}/{function_name}"
        logger.debug(f"POST {url}")
        try:
            response = await self._client.post(url, json=body, headers=headers)
        except httpx.TimeoutException as exc:
            raise RemoteCallError(
                f"{function_name} timed out", function_name=function_name, transient=True
            ) from exc
        except httpx.TransportError as exc:
            raise RemoteCallError(
                f"{function_name} unreachable: {exc}",
                function_name=function_name,
                transient=True,
            ) from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {"raw": response.text}
        if not isinstance(payload, dict):
            payload = {"result": payload}

        if response.status_code >= 400:
            message = payload.get("error") or payload.get("message") or response.reason_phrase
            logger.warning(f"{function_name} returned {response.status_code}: {message}")
            return FunctionResponse.failure(str(message), status_code=response.status_code)
        return FunctionResponse(data=payload)
