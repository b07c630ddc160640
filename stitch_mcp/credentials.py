"""Credential provider backed by the gcloud CLI.

This module handles:
- Selecting the platform-specific gcloud executable
- Running gcloud with a bounded lifetime and output size
- Resolving the active Google Cloud project (env vars, then gcloud config)
- Fetching a fresh application-default access token per call
- Classifying gcloud failures into configuration/authentication errors
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import shlex
import sys
from collections.abc import Awaitable, Callable, Mapping, Sequence

from stitch_mcp.config import Settings, get_settings
from stitch_mcp.errors import (
    AuthenticationError,
    ConfigurationError,
    CredentialCommandError,
    CredentialError,
)
from stitch_mcp.types import Credential

logger = logging.getLogger(__name__)

# Checked in order; the first non-empty value wins
PROJECT_ENV_VARS = ("GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT")

# gcloud prints this when a config property has no value
UNSET_MARKER = "(unset)"

TOKEN_ARGS = ("auth", "application-default", "print-access-token")
PROJECT_ARGS = ("config", "get-value", "project")

NOT_FOUND_MARKERS = ("ENOENT", "not recognized", "command not found")
STALE_CREDENTIAL_MARKERS = ("Reauthentication required", "Credentials")

LOGIN_HINT = "gcloud auth application-default login"
PROJECT_HINT = "gcloud config set project YOUR_PROJECT"

READ_CHUNK_SIZE = 64 * 1024

GcloudRunner = Callable[..., Awaitable[str]]


def gcloud_executable(platform: str | None = None) -> str:
    """Return the gcloud executable name for a platform.

    Args:
        platform: Platform string as in ``sys.platform``; defaults to current.

    Returns:
        ``gcloud.cmd`` on Windows, ``gcloud`` elsewhere.
    """
    platform = platform or sys.platform
    return "gcloud.cmd" if platform.startswith("win") else "gcloud"


def classify_cli_failure(message: str) -> CredentialError:
    """Map a gcloud failure message to a credential error.

    Args:
        message: Error text reported by the process or the OS.

    Returns:
        AuthenticationError for a missing CLI or stale credentials,
        CredentialCommandError with the original message otherwise.
    """
    if any(marker in message for marker in NOT_FOUND_MARKERS):
        return AuthenticationError(
            "gcloud CLI not found. Please install Google Cloud SDK.",
            code="gcloud_not_found",
        )
    if any(marker in message for marker in STALE_CREDENTIAL_MARKERS):
        return AuthenticationError(
            f"Authentication expired. Run: {LOGIN_HINT}",
            code="credentials_expired",
        )
    return CredentialCommandError(message)


async def _read_stream(stream: asyncio.StreamReader, limit: int) -> bytes:
    """Read a stream to EOF, failing once more than ``limit`` bytes arrived."""
    data = bytearray()
    while chunk := await stream.read(READ_CHUNK_SIZE):
        data.extend(chunk)
        if len(data) > limit:
            raise CredentialCommandError(
                f"gcloud output exceeded {limit} bytes",
                code="gcloud_output_limit",
            )
    return bytes(data)


async def _collect_output(
    proc: asyncio.subprocess.Process, max_output: int
) -> tuple[bytes, bytes]:
    assert proc.stdout is not None and proc.stderr is not None
    try:
        stdout, stderr = await asyncio.gather(
            _read_stream(proc.stdout, max_output),
            _read_stream(proc.stderr, max_output),
        )
    except CredentialCommandError:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()
        raise
    await proc.wait()
    return stdout, stderr


async def run_gcloud(
    args: Sequence[str],
    *,
    timeout: float = 10.0,
    max_output: int = 10 * 1024 * 1024,
    executable: str | None = None,
) -> str:
    """Run a gcloud command and return its trimmed stdout.

    Args:
        args: Arguments passed after the executable.
        timeout: Seconds before the process is killed.
        max_output: Maximum bytes accepted on stdout or stderr.
        executable: Override for the gcloud executable.

    Returns:
        Stripped stdout text.

    Raises:
        AuthenticationError: If gcloud is missing or credentials are stale.
        CredentialCommandError: On timeout, oversized output, or other failure.
    """
    cmd = [executable or gcloud_executable(), *args]
    logger.debug("Running %s", shlex.join(cmd))

    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise classify_cli_failure(f"ENOENT: {e}") from e
    except OSError as e:
        raise classify_cli_failure(str(e)) from e

    try:
        stdout, stderr = await asyncio.wait_for(
            _collect_output(proc, max_output), timeout
        )
    except asyncio.TimeoutError as e:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()
        raise CredentialCommandError(
            f"Command timed out after {timeout} seconds: {shlex.join(cmd)}",
            code="gcloud_timeout",
        ) from e

    if proc.returncode != 0:
        err_text = stderr.decode("utf-8", errors="replace").strip()
        message = f"Command failed: {shlex.join(cmd)}"
        if err_text:
            message = f"{message}\n{err_text}"
        raise classify_cli_failure(message)

    return stdout.decode("utf-8", errors="replace").strip()


class CredentialProvider:
    """Supplies the project id and access token for Stitch API calls.

    The project id is resolved once and reused for the lifetime of the
    provider. Access tokens are short-lived and fetched on every call.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        runner: GcloudRunner | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            settings: Settings supplying CLI timeout and output cap.
            runner: Coroutine function with the signature of ``run_gcloud``.
            environ: Environment mapping; defaults to ``os.environ``.
        """
        self._settings = settings or get_settings()
        self._runner = runner or run_gcloud
        self._environ = environ if environ is not None else os.environ
        self._project_id: str | None = None

    async def _gcloud(self, args: Sequence[str]) -> str:
        return await self._runner(
            args,
            timeout=self._settings.cli_timeout,
            max_output=self._settings.cli_max_output,
        )

    async def resolve_project_id(self) -> str:
        """Resolve the active Google Cloud project.

        Returns:
            The project id from the first of GOOGLE_CLOUD_PROJECT,
            GCLOUD_PROJECT, or ``gcloud config get-value project``.

        Raises:
            ConfigurationError: If no project is configured anywhere.
        """
        if self._project_id is not None:
            return self._project_id

        for name in PROJECT_ENV_VARS:
            value = self._environ.get(name, "").strip()
            if value:
                logger.debug("Using project from %s", name)
                self._project_id = value
                return value

        try:
            project = await self._gcloud(PROJECT_ARGS)
        except CredentialError as e:
            raise ConfigurationError(
                f"Project ID not found ({e}). Set GOOGLE_CLOUD_PROJECT env var "
                f"or run: {PROJECT_HINT}",
                code="project_not_found",
            ) from e

        if not project or project == UNSET_MARKER:
            raise ConfigurationError(
                "Project ID not found. Set GOOGLE_CLOUD_PROJECT env var "
                f"or run: {PROJECT_HINT}",
                code="project_not_found",
            )

        self._project_id = project
        return project

    async def resolve_access_token(self) -> str:
        """Fetch a fresh application-default access token.

        Raises:
            AuthenticationError: If gcloud is missing or credentials are stale.
            CredentialCommandError: If gcloud fails for another reason.
        """
        try:
            token = await self._gcloud(TOKEN_ARGS)
        except CredentialError:
            logger.error("Failed to get access token")
            raise
        if not token:
            raise AuthenticationError(
                f"gcloud returned an empty access token. Run: {LOGIN_HINT}",
                code="empty_token",
            )
        return token

    async def credential(self) -> Credential:
        """Return the project id paired with a fresh token."""
        project_id = await self.resolve_project_id()
        token = await self.resolve_access_token()
        return Credential(bearer_token=token, project_id=project_id)


__all__ = [
    "CredentialProvider",
    "LOGIN_HINT",
    "PROJECT_ARGS",
    "PROJECT_ENV_VARS",
    "TOKEN_ARGS",
    "UNSET_MARKER",
    "classify_cli_failure",
    "gcloud_executable",
    "run_gcloud",
]
