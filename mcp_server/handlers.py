"""Tool handlers for the Stitch MCP server.

Three tools are served locally on top of the remote ``get_screen`` tool;
every other tool name is forwarded to the Stitch API and its result is
enriched with the content of any download references it carries.

Handlers never raise: failures come back as results flagged ``isError``.
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import re
from pathlib import Path
from typing import Any

from mcp import types
from pydantic import ValidationError

from mcp_server.errors import (
    code_url_not_found,
    from_exception,
    html_not_found,
    image_url_not_found,
    validation_error,
)
from mcp_server.schemas import (
    EXTRACT_DESIGN_CONTEXT,
    FETCH_SCREEN_CODE,
    FETCH_SCREEN_IMAGE,
    LOCAL_TOOL_NAMES,
    LOCAL_TOOLS,
    ScreenArguments,
)
from stitch_mcp.design_context import build_design_context
from stitch_mcp.enrichment import enrich
from stitch_mcp.locate import find_download_url, find_html_source, find_image_url
from stitch_mcp.session import StitchSession
from stitch_mcp.types import Success, unwrap

logger = logging.getLogger(__name__)

GET_SCREEN = "get_screen"
DEFAULT_IMAGE_MIME_TYPE = "image/png"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def text_result(text: str) -> types.CallToolResult:
    """Build a successful single-text tool result."""
    return types.CallToolResult(content=[types.TextContent(type="text", text=text)])


def screen_image_filename(screen_id: str) -> str:
    """File name used to save the screenshot of a screen."""
    return f"screen_{_UNSAFE_FILENAME_CHARS.sub('_', screen_id)}.png"


def _image_mime_type(content_type: str | None) -> str:
    if content_type:
        mime = content_type.split(";", 1)[0].strip().lower()
        if mime.startswith("image/"):
            return mime
    return DEFAULT_IMAGE_MIME_TYPE


async def _get_screen(session: StitchSession, args: ScreenArguments) -> Any:
    response = await session.gateway.call_tool(GET_SCREEN, args.remote_arguments())
    return unwrap(response)


async def list_tools(session: StitchSession) -> list[types.Tool]:
    """List remote tools merged with the local ones.

    The remote list is fetched on every call. Local definitions replace
    remote tools of the same name. If the remote listing fails, only the
    local tools are returned.
    """
    remote_tools: list[types.Tool] = []
    try:
        result = unwrap(await session.gateway.list_tools())
        raw_tools = result.get("tools", []) if isinstance(result, dict) else []
    except Exception as e:
        logger.error("Tools list failed: %s", e)
        raw_tools = []

    for raw in raw_tools:
        try:
            tool = types.Tool.model_validate(raw)
        except ValidationError as e:
            logger.warning("Skipping malformed remote tool definition: %s", e)
            continue
        if tool.name not in LOCAL_TOOL_NAMES:
            remote_tools.append(tool)

    return [*remote_tools, *LOCAL_TOOLS]


async def fetch_screen_code(
    session: StitchSession, arguments: dict[str, Any]
) -> types.CallToolResult:
    """Return the generated code of a screen as text."""
    try:
        args = ScreenArguments.model_validate(arguments)
    except ValidationError as e:
        return validation_error(FETCH_SCREEN_CODE, e).to_result()

    try:
        logger.info("Fetching code for screen: %s", args.screen_id)
        screen = await _get_screen(session, args)

        url = find_download_url(screen, session.settings.max_walk_depth)
        if not url:
            return code_url_not_found(args.screen_id).to_result()

        code = await session.fetcher.fetch_text(url)
        return text_result(code)

    except Exception as e:
        return from_exception(e).to_result()


async def fetch_screen_image(
    session: StitchSession, arguments: dict[str, Any]
) -> types.CallToolResult:
    """Download the screenshot of a screen, save it and return it inline."""
    try:
        args = ScreenArguments.model_validate(arguments)
    except ValidationError as e:
        return validation_error(FETCH_SCREEN_IMAGE, e).to_result()

    try:
        logger.info("Fetching image for screen: %s", args.screen_id)
        screen = await _get_screen(session, args)

        url = find_image_url(screen, session.settings.max_walk_depth)
        if not url:
            return image_url_not_found(args.screen_id).to_result()

        logger.info("Downloading image from: %s", url)
        asset = await session.fetcher.fetch(url)

        file_name = screen_image_filename(args.screen_id)
        file_path = Path(session.settings.image_dir) / file_name
        await asyncio.to_thread(file_path.write_bytes, asset.data)
        logger.info("Saved image to: %s (%d bytes)", file_path, asset.size_bytes)

        return types.CallToolResult(
            content=[
                types.TextContent(type="text", text=f"Image saved to {file_name}"),
                types.ImageContent(
                    type="image",
                    data=base64.b64encode(asset.data).decode("ascii"),
                    mimeType=_image_mime_type(asset.content_type),
                ),
            ]
        )

    except Exception as e:
        return from_exception(e).to_result()


async def extract_design_context(
    session: StitchSession, arguments: dict[str, Any]
) -> types.CallToolResult:
    """Return the design-system prompt extracted from a screen's HTML."""
    try:
        args = ScreenArguments.model_validate(arguments)
    except ValidationError as e:
        return validation_error(EXTRACT_DESIGN_CONTEXT, e).to_result()

    try:
        logger.info("Extracting design context for: %s", args.screen_id)
        screen = await _get_screen(session, args)

        source = find_html_source(screen, session.settings.max_walk_depth)
        if source is None:
            return html_not_found(args.screen_id).to_result()

        html, url = source
        if html is None and url is not None:
            html = await session.fetcher.fetch_text(url)

        return text_result(build_design_context(html or ""))

    except Exception as e:
        return from_exception(e, prefix="Error extracting context").to_result()


async def passthrough(
    session: StitchSession, name: str, arguments: dict[str, Any]
) -> types.CallToolResult:
    """Forward a tool call to the Stitch API and inline its download references."""
    try:
        response = await session.gateway.call_tool(name, arguments)

        if isinstance(response, Success) and isinstance(response.payload, dict):
            body = response.payload
            if body.get("result") is None and body.get("error") is None:
                return text_result(json.dumps(body, indent=2))

        result = unwrap(response)

    except Exception as e:
        logger.error("Tool %s failed: %s", name, e)
        return from_exception(e).to_result()

    try:
        await enrich(result, session.fetcher.fetch_text, session.settings.max_walk_depth)
    except Exception as e:
        logger.error("Response enrichment failed: %s", e)

    try:
        return types.CallToolResult.model_validate(result)
    except ValidationError:
        return text_result(json.dumps(result, indent=2))


SPECIAL_CASES = {
    FETCH_SCREEN_CODE: fetch_screen_code,
    FETCH_SCREEN_IMAGE: fetch_screen_image,
    EXTRACT_DESIGN_CONTEXT: extract_design_context,
}


async def call_tool(
    session: StitchSession, name: str, arguments: dict[str, Any] | None
) -> types.CallToolResult:
    """Dispatch a tool call by exact name; unknown names are forwarded."""
    arguments = arguments or {}
    handler = SPECIAL_CASES.get(name)
    if handler is not None:
        return await handler(session, arguments)
    return await passthrough(session, name, arguments)


__all__ = [
    "GET_SCREEN",
    "SPECIAL_CASES",
    "call_tool",
    "extract_design_context",
    "fetch_screen_code",
    "fetch_screen_image",
    "list_tools",
    "passthrough",
    "screen_image_filename",
    "text_result",
]
