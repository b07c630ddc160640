"""Gateway for JSON-RPC exchanges with the Stitch API.

This module handles:
- Building the JSON-RPC envelope for a remote method call
- Attaching a fresh bearer token and the project header
- Enforcing a wall-clock timeout on the whole exchange
- Classifying HTTP and network failures into ErrorCode values
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from stitch_mcp.config import Settings, get_settings
from stitch_mcp.credentials import CredentialProvider
from stitch_mcp.types import (
    Credential,
    ErrorCode,
    Failure,
    JSONValue,
    RemoteCall,
    RemoteResult,
    Success,
)

logger = logging.getLogger(__name__)

LIST_TOOLS_METHOD = "tools/list"
CALL_TOOL_METHOD = "tools/call"


class StitchGateway:
    """Performs one request/response exchange with the Stitch endpoint per call.

    Failures of the exchange are returned as ``Failure`` values; only
    credential errors are raised, unchanged from the credential provider.
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            credentials: Provider for the project id and access tokens.
            settings: Settings supplying the endpoint URL and timeout.
            client: Optional shared HTTPX client; one is created per call
                when omitted.
        """
        self._credentials = credentials
        self._settings = settings or get_settings()
        self._client = client

    @property
    def timeout(self) -> float:
        return self._settings.request_timeout

    @asynccontextmanager
    async def _http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
        else:
            async with httpx.AsyncClient() as client:
                yield client

    async def _exchange(self, call: RemoteCall, credential: Credential) -> RemoteResult:
        async with self._http_client() as client:
            response = await client.post(
                self._settings.api_url,
                json=call.to_envelope(),
                headers=credential.headers(),
                timeout=self.timeout,
            )

        if not response.is_success:
            return Failure(
                ErrorCode.from_http_status(response.status_code),
                f"HTTP {response.status_code}: {response.text}",
            )

        return Success(response.json())

    async def invoke(self, method: str, params: JSONValue = None) -> RemoteResult:
        """Call a remote method.

        Args:
            method: JSON-RPC method name.
            params: JSON parameters; an empty object when omitted.

        Returns:
            Success with the parsed response body, or Failure with a code.

        Raises:
            CredentialError: If the project or access token cannot be resolved.
        """
        credential = await self._credentials.credential()
        call = RemoteCall(method=method, params={} if params is None else params)

        logger.info("→ %s", method)

        try:
            result = await asyncio.wait_for(
                self._exchange(call, credential), timeout=self.timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            result = Failure(
                ErrorCode.TIMEOUT, f"Request timeout ({self.timeout:g} seconds)"
            )
        except Exception as e:
            result = Failure(ErrorCode.INTERNAL_ERROR, str(e) or "Internal error")

        if isinstance(result, Success):
            logger.info("Completed %s", method)
        else:
            logger.error("%s failed (%d): %s", method, result.code, result.message)
        return result

    async def list_tools(self) -> RemoteResult:
        """Ask the Stitch API for its tool definitions."""
        return await self.invoke(LIST_TOOLS_METHOD, {})

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None = None
    ) -> RemoteResult:
        """Invoke a remote tool by name."""
        return await self.invoke(
            CALL_TOOL_METHOD, {"name": name, "arguments": arguments or {}}
        )


__all__ = ["CALL_TOOL_METHOD", "LIST_TOOLS_METHOD", "StitchGateway"]
