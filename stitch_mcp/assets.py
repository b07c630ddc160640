"""Download of assets referenced by Stitch responses.

Generated code and screenshots are returned by the Stitch API as URLs.
This module fetches them as text or bytes and converts HTTP failures
into AssetDownloadError with a stable code.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from stitch_mcp.config import Settings, get_settings
from stitch_mcp.errors import AssetDownloadError

logger = logging.getLogger(__name__)


@dataclass
class Asset:
    """Downloaded asset bytes."""

    url: str
    data: bytes
    content_type: str | None = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class AssetFetcher:
    """Fetches referenced assets over HTTP GET."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client

    @asynccontextmanager
    async def _http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
        else:
            async with httpx.AsyncClient(follow_redirects=True) as client:
                yield client

    async def _get(self, url: str) -> httpx.Response:
        try:
            async with self._http_client() as client:
                response = await client.get(
                    url, timeout=self._settings.download_timeout
                )
                response.raise_for_status()
                return response

        except httpx.HTTPStatusError as e:
            raise AssetDownloadError(
                f"Failed to download: {e.response.status_code}",
                code="http_error",
            ) from e
        except httpx.TimeoutException as e:
            raise AssetDownloadError(
                f"Timeout downloading {url}",
                code="timeout",
            ) from e
        except httpx.RequestError as e:
            raise AssetDownloadError(
                f"Network error downloading {url}: {e}",
                code="network_error",
            ) from e

    async def fetch(self, url: str) -> Asset:
        """Download an asset.

        Args:
            url: Absolute URL of the asset.

        Returns:
            Asset with body bytes and the response content type.

        Raises:
            AssetDownloadError: If the download fails.
        """
        logger.debug("Fetching asset %s", url)
        response = await self._get(url)
        return Asset(
            url=url,
            data=response.content,
            content_type=response.headers.get("content-type"),
        )

    async def fetch_text(self, url: str) -> str:
        """Download an asset and decode it as text."""
        response = await self._get(url)
        return response.text


__all__ = ["Asset", "AssetFetcher"]
