"""Inline resolution of download references in tool results.

Objects carrying a string ``downloadUrl`` get the fetched text stored under
``content`` on the same object. Enrichment only adds keys: an object that
already has ``content`` is left as it is, and a failed download leaves the
object untouched without aborting the walk.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any

from stitch_mcp.walk import DEFAULT_MAX_DEPTH, iter_objects

logger = logging.getLogger(__name__)

DOWNLOAD_URL_FIELD = "downloadUrl"
CONTENT_FIELD = "content"

TextFetcher = Callable[[str], Awaitable[str]]


def needs_download(node: Any) -> bool:
    """Whether a node carries an unresolved download reference."""
    return (
        isinstance(node, MutableMapping)
        and isinstance(node.get(DOWNLOAD_URL_FIELD), str)
        and CONTENT_FIELD not in node
    )


async def enrich(
    value: Any,
    fetch_text: TextFetcher,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> int:
    """Resolve every download reference in ``value`` in place.

    Downloads run one at a time in document order.

    Args:
        value: Parsed JSON result, mutated in place.
        fetch_text: Coroutine function returning the text behind a URL.
        max_depth: Deepest nesting level visited.

    Returns:
        Number of objects that received content.
    """
    injected = 0
    for node in iter_objects(value, max_depth):
        if not needs_download(node):
            continue

        url = node[DOWNLOAD_URL_FIELD]
        logger.info("Auto-downloading content from: %s...", url[:50])
        try:
            text = await fetch_text(url)
        except Exception as e:
            logger.error("Download error for %s: %s", url[:50], e)
            continue

        node[CONTENT_FIELD] = text
        injected += 1
        logger.info("Content downloaded and injected")

    return injected


__all__ = ["CONTENT_FIELD", "DOWNLOAD_URL_FIELD", "enrich", "needs_download"]
