"""Asset searches over Stitch screen responses.

These helpers pick a single reference out of a ``get_screen`` result:
the generated code, the screenshot, or the HTML source of the screen.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from stitch_mcp.enrichment import CONTENT_FIELD, DOWNLOAD_URL_FIELD
from stitch_mcp.walk import DEFAULT_MAX_DEPTH, iter_objects

SCREENSHOT_FIELD = "screenshot"
URI_FIELD = "uri"
NAME_FIELD = "name"
HTML_FIELD = "htmlCode"

IMAGE_EXTENSIONS = (".png", ".jpg")
IMAGE_NAME_MARKERS = ("png", "jpg")
IMAGE_HOST = "googleusercontent.com"
# Hosts uploaded contributions, not rendered screens
NON_IMAGE_HOST = "contribution.usercontent"


def looks_like_image_url(value: Any) -> bool:
    """Heuristic for URLs pointing at a rendered image."""
    if not isinstance(value, str):
        return False
    if any(ext in value for ext in IMAGE_EXTENSIONS):
        return True
    return IMAGE_HOST in value and NON_IMAGE_HOST not in value


def _string_field(node: Mapping[str, Any], key: str) -> str | None:
    value = node.get(key)
    return value if isinstance(value, str) else None


def find_download_url(value: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> str | None:
    """Return the first download reference in document order."""
    for node in iter_objects(value, max_depth):
        url = _string_field(node, DOWNLOAD_URL_FIELD)
        if url:
            return url
    return None


def _screenshot_url(node: Mapping[str, Any]) -> str | None:
    screenshot = node.get(SCREENSHOT_FIELD)
    if isinstance(screenshot, Mapping):
        return _string_field(screenshot, DOWNLOAD_URL_FIELD)
    return None


def _image_like_url(node: Mapping[str, Any]) -> str | None:
    for key in (DOWNLOAD_URL_FIELD, URI_FIELD):
        url = _string_field(node, key)
        if looks_like_image_url(url):
            return url
    return None


def _image_named_url(node: Mapping[str, Any]) -> str | None:
    name = _string_field(node, NAME_FIELD)
    if name and any(marker in name.lower() for marker in IMAGE_NAME_MARKERS):
        return _string_field(node, DOWNLOAD_URL_FIELD)
    return None


def find_image_url(value: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> str | None:
    """Return the screenshot URL of a screen response.

    Rules are tried in priority order over the whole tree; a rule only
    applies when no higher-priority rule matched anywhere:

    1. ``screenshot.downloadUrl``
    2. a ``downloadUrl`` or ``uri`` that looks like an image URL
    3. a ``downloadUrl`` beside a ``name`` that looks like an image file

    Args:
        value: Parsed ``get_screen`` result.
        max_depth: Deepest nesting level visited.

    Returns:
        The selected URL, or None if no rule matched.
    """
    for rule in (_screenshot_url, _image_like_url, _image_named_url):
        for node in iter_objects(value, max_depth):
            url = rule(node)
            if url:
                return url
    return None


def find_html_source(
    value: Any, max_depth: int = DEFAULT_MAX_DEPTH
) -> tuple[str | None, str | None] | None:
    """Locate the HTML-bearing field of a screen response.

    Returns:
        ``(content, download_url)`` of the first ``htmlCode`` object that
        carries either, or None when the screen has no HTML.
    """
    for node in iter_objects(value, max_depth):
        html = node.get(HTML_FIELD)
        if not isinstance(html, Mapping):
            continue
        content = _string_field(html, CONTENT_FIELD) or None
        url = _string_field(html, DOWNLOAD_URL_FIELD) or None
        if content or url:
            return content, url
    return None


__all__ = [
    "HTML_FIELD",
    "SCREENSHOT_FIELD",
    "find_download_url",
    "find_html_source",
    "find_image_url",
    "looks_like_image_url",
]
