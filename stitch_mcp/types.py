"""Shared type definitions for stitch_mcp.

This module contains the value objects exchanged between the credential
provider, the gateway and the tool handlers. They live here to avoid
circular imports between those modules.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from stitch_mcp.errors import RemoteError, TransportError

JSONValue = Any

JSONRPC_VERSION = "2.0"


class ErrorCode(int, Enum):
    """JSON-RPC style codes reported for failed remote calls."""

    INVALID_PARAMS = -32602
    AUTH_ERROR = -32001
    METHOD_NOT_FOUND = -32601
    SERVER_ERROR = -32000
    TIMEOUT = -32002
    INTERNAL_ERROR = -32603

    @classmethod
    def from_http_status(cls, status: int) -> ErrorCode:
        """Map a non-2xx HTTP status to an error code."""
        if status == 400:
            return cls.INVALID_PARAMS
        if status in (401, 403):
            return cls.AUTH_ERROR
        if status == 404:
            return cls.METHOD_NOT_FOUND
        return cls.SERVER_ERROR


@dataclass(frozen=True)
class Credential:
    """Bearer token and project pair attached to one remote call."""

    bearer_token: str
    project_id: str

    def __post_init__(self) -> None:
        if not self.bearer_token:
            raise ValueError("bearer_token must be provided")
        if not self.project_id:
            raise ValueError("project_id must be provided")

    def headers(self) -> dict[str, str]:
        """HTTP headers authorizing a request against the project."""
        return {
            "Authorization": f"Bearer {self.bearer_token}",
            "X-Goog-User-Project": self.project_id,
            "Content-Type": "application/json",
        }


def _wall_clock_id() -> int:
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class RemoteCall:
    """A single JSON-RPC request to the Stitch endpoint.

    Attributes:
        method: Remote method name (e.g. ``tools/list``).
        params: JSON parameters for the method.
        id: Correlation id derived from the wall clock.
    """

    method: str
    params: JSONValue = field(default_factory=dict)
    id: int = field(default_factory=_wall_clock_id)

    def to_envelope(self) -> dict[str, Any]:
        """Build the JSON-RPC request body."""
        return {
            "jsonrpc": JSONRPC_VERSION,
            "method": self.method,
            "params": self.params,
            "id": self.id,
        }


@dataclass(frozen=True)
class Success:
    """Remote exchange completed with a 2xx response and a JSON body."""

    payload: JSONValue

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Remote exchange failed before a usable body was received."""

    code: ErrorCode
    message: str

    @property
    def ok(self) -> bool:
        return False


RemoteResult = Union[Success, Failure]


def unwrap(result: RemoteResult) -> JSONValue:
    """Return the JSON-RPC ``result`` member of a remote result.

    Args:
        result: Outcome of a gateway invocation.

    Returns:
        The ``result`` member of the response body.

    Raises:
        TransportError: If the exchange itself failed.
        RemoteError: If the body carries an ``error`` object or no result.
    """
    if isinstance(result, Failure):
        raise TransportError(result.message, int(result.code))

    body = result.payload
    if not isinstance(body, dict):
        raise RemoteError("Unexpected response body from Stitch API")

    if body.get("result") is not None:
        return body["result"]

    error = body.get("error")
    if isinstance(error, dict):
        raise RemoteError(str(error.get("message", "Unknown error")), error.get("code"))
    if error is not None:
        raise RemoteError(str(error))

    raise RemoteError("Response carried neither result nor error")


__all__ = [
    "Credential",
    "ErrorCode",
    "Failure",
    "JSONRPC_VERSION",
    "JSONValue",
    "RemoteCall",
    "RemoteResult",
    "Success",
    "unwrap",
]
