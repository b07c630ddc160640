"""Exception types for stitch_mcp.

Each exception carries a stable ``code`` for structured error handling.
Credential errors are fatal at startup; the others are converted into
error results at the tool-invocation boundary.
"""


class StitchError(Exception):
    """Base class for stitch_mcp errors."""

    default_code = "stitch_error"

    def __init__(self, message: str, code: str | None = None) -> None:
        """Initialize StitchError.

        Args:
            message: Error description.
            code: Error code for structured error handling.
        """
        super().__init__(message)
        self.code = code or self.default_code


class CredentialError(StitchError):
    """Raised when credentials cannot be obtained from the gcloud CLI."""

    default_code = "credential_error"


class ConfigurationError(CredentialError):
    """Raised when no Google Cloud project can be resolved."""

    default_code = "configuration_error"


class AuthenticationError(CredentialError):
    """Raised when gcloud is missing or its credentials are stale."""

    default_code = "authentication_error"


class CredentialCommandError(CredentialError):
    """Raised when a gcloud invocation fails for any other reason."""

    default_code = "credential_command_error"


class TransportError(StitchError):
    """Raised when a remote exchange failed at the HTTP or network level.

    Attributes:
        rpc_code: Numeric JSON-RPC style code of the failure.
    """

    default_code = "transport_error"

    def __init__(self, message: str, rpc_code: int) -> None:
        super().__init__(message)
        self.rpc_code = rpc_code


class RemoteError(StitchError):
    """Raised when the Stitch API answered with a JSON-RPC error object."""

    default_code = "remote_error"

    def __init__(self, message: str, rpc_code: int | None = None) -> None:
        super().__init__(message)
        self.rpc_code = rpc_code


class AssetDownloadError(StitchError):
    """Raised when a referenced asset cannot be downloaded."""

    default_code = "download_error"


__all__ = [
    "AssetDownloadError",
    "AuthenticationError",
    "ConfigurationError",
    "CredentialCommandError",
    "CredentialError",
    "RemoteError",
    "StitchError",
    "TransportError",
]
