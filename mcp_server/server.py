"""MCP server implementation.

This module creates the MCP server for a StitchSession and registers the
list-tools and call-tool handlers. The tool list is not static: it is the
remote Stitch tool list merged with the local tools, so the low-level
server API is used instead of decorator-registered tools. Tool calls go
straight to the handlers without a tool-definition lookup.
"""

import logging

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from mcp_server import handlers
from stitch_mcp import __version__
from stitch_mcp.session import StitchSession

logger = logging.getLogger(__name__)

SERVER_NAME = "stitch"


def create_server(session: StitchSession) -> Server:
    """Create the MCP server bound to a session.

    Args:
        session: Session shared by all handlers.

    Returns:
        Configured low-level MCP server.
    """
    server: Server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return await handlers.list_tools(session)

    # A call must not refresh the tool list first, so no call_tool decorator
    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        result = await handlers.call_tool(
            session, req.params.name, req.params.arguments
        )
        return types.ServerResult(result)

    server.request_handlers[types.CallToolRequest] = call_tool

    return server


async def run_stdio(session: StitchSession) -> None:
    """Serve MCP over stdin/stdout until the client disconnects."""
    server = create_server(session)
    async with stdio_server() as (read_stream, write_stream):
        logger.info("Server ready and listening on stdio")
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


__all__ = ["SERVER_NAME", "create_server", "run_stdio"]
