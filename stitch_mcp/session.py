"""Server session context.

A StitchSession is built once at startup and handed to every tool
handler. The project id is resolved during construction and never
changes afterwards; the tool list is not held here and is fetched
fresh on every listing.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass

from stitch_mcp import __version__
from stitch_mcp.assets import AssetFetcher
from stitch_mcp.config import Settings, get_settings
from stitch_mcp.credentials import LOGIN_HINT, CredentialProvider
from stitch_mcp.errors import AuthenticationError, CredentialError
from stitch_mcp.gateway import StitchGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StitchSession:
    """Everything a tool handler needs to serve one invocation.

    Attributes:
        settings: Effective settings.
        project_id: Google Cloud project billed for Stitch calls.
        gateway: Gateway to the Stitch endpoint.
        fetcher: Downloader for referenced assets.
    """

    settings: Settings
    project_id: str
    gateway: StitchGateway
    fetcher: AssetFetcher


async def create_session(
    settings: Settings | None = None,
    credentials: CredentialProvider | None = None,
    verify_auth: bool = True,
) -> StitchSession:
    """Run startup checks and build the session.

    Args:
        settings: Settings to use; loaded from the environment if omitted.
        credentials: Credential provider; a gcloud-backed one if omitted.
        verify_auth: Fetch one access token to prove credentials work.

    Returns:
        Ready StitchSession.

    Raises:
        ConfigurationError: If no project can be resolved.
        AuthenticationError: If credentials cannot be verified.
    """
    settings = settings or get_settings()
    credentials = credentials or CredentialProvider(settings)

    logger.info("Starting Stitch MCP Server v%s (%s)", __version__, sys.platform)

    project_id = await credentials.resolve_project_id()
    logger.info("Project: %s", project_id)

    if verify_auth:
        try:
            await credentials.resolve_access_token()
        except AuthenticationError:
            raise
        except CredentialError as e:
            raise AuthenticationError(
                f"Authentication failed. Run: {LOGIN_HINT}",
                code="authentication_failed",
            ) from e
        logger.info("Auth verified")

    return StitchSession(
        settings=settings,
        project_id=project_id,
        gateway=StitchGateway(credentials, settings),
        fetcher=AssetFetcher(settings),
    )


__all__ = ["StitchSession", "create_session"]
