"""Error definitions for MCP tools.

This module defines structured tool-level errors with stable codes.
They are returned to MCP clients as results flagged ``isError`` rather
than raised, so a failing tool call never takes the server down.
"""

from dataclasses import dataclass
from typing import Any

from mcp import types
from pydantic import ValidationError

from stitch_mcp.errors import (
    AssetDownloadError,
    CredentialError,
    RemoteError,
    StitchError,
    TransportError,
)

# Error code constants
VALIDATION_ERROR = "validation"
CODE_URL_NOT_FOUND = "code_url_not_found"
IMAGE_URL_NOT_FOUND = "image_url_not_found"
HTML_NOT_FOUND = "html_not_found"
DOWNLOAD_ERROR = "download_error"
CREDENTIAL_ERROR = "credential_error"
TRANSPORT_ERROR = "transport_error"
REMOTE_ERROR = "remote_error"
INTERNAL_ERROR = "internal_error"


@dataclass
class ToolError:
    """Structured error result for MCP tools.

    Attributes:
        code: Stable error code for programmatic handling.
        message: Human-readable error message shown to the client.
        details: Optional additional error details.
    """

    code: str
    message: str
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result

    def to_result(self) -> types.CallToolResult:
        """Render as an MCP tool result flagged as an error."""
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=self.message)],
            structuredContent={"error": self.to_dict()},
            isError=True,
        )


def make_error(
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> ToolError:
    """Create a ToolError instance."""
    return ToolError(code=code, message=message, details=details)


def validation_error(tool_name: str, error: ValidationError) -> ToolError:
    """Create an error for arguments that failed validation."""
    fields = sorted(
        {".".join(str(part) for part in e["loc"]) for e in error.errors()}
    )
    return make_error(
        VALIDATION_ERROR,
        f"Error: invalid arguments for {tool_name}: {', '.join(fields)}",
        details={"fields": fields},
    )


def code_url_not_found(screen_id: str) -> ToolError:
    """Create an error for a screen without generated code."""
    return make_error(
        CODE_URL_NOT_FOUND,
        "No code download URL found.",
        details={"screen_id": screen_id},
    )


def image_url_not_found(screen_id: str) -> ToolError:
    """Create an error for a screen without a screenshot."""
    return make_error(
        IMAGE_URL_NOT_FOUND,
        "No image URL found.",
        details={"screen_id": screen_id},
    )


def html_not_found(screen_id: str) -> ToolError:
    """Create an error for a screen without HTML source."""
    return make_error(
        HTML_NOT_FOUND,
        "HTML content not found in screen data.",
        details={"screen_id": screen_id},
    )


def from_exception(exc: Exception, prefix: str = "Error") -> ToolError:
    """Map an exception raised during a tool call to a ToolError.

    Args:
        exc: The exception.
        prefix: Leading text of the message.

    Returns:
        ToolError whose code reflects the exception type.
    """
    if isinstance(exc, RemoteError):
        return make_error(REMOTE_ERROR, f"API Error: {exc}", _rpc_details(exc))

    if isinstance(exc, TransportError):
        code = TRANSPORT_ERROR
    elif isinstance(exc, AssetDownloadError):
        code = DOWNLOAD_ERROR
    elif isinstance(exc, CredentialError):
        code = CREDENTIAL_ERROR
    else:
        code = INTERNAL_ERROR

    details = _rpc_details(exc)
    if isinstance(exc, StitchError):
        details = {**(details or {}), "reason": exc.code}
    return make_error(code, f"{prefix}: {exc}", details)


def _rpc_details(exc: Exception) -> dict[str, Any] | None:
    rpc_code = getattr(exc, "rpc_code", None)
    return {"rpc_code": rpc_code} if rpc_code is not None else None


__all__ = [
    "CODE_URL_NOT_FOUND",
    "CREDENTIAL_ERROR",
    "DOWNLOAD_ERROR",
    "HTML_NOT_FOUND",
    "IMAGE_URL_NOT_FOUND",
    "INTERNAL_ERROR",
    "REMOTE_ERROR",
    "TRANSPORT_ERROR",
    "ToolError",
    "VALIDATION_ERROR",
    "code_url_not_found",
    "from_exception",
    "html_not_found",
    "image_url_not_found",
    "make_error",
    "validation_error",
]
