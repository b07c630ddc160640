"""MCP server exposing Google Stitch tools.

This package implements the Model Context Protocol (MCP) server that
relays Stitch API tools to AI coding assistants.

MCP tools:
- Forward unknown tool names to the Stitch API
- Inline downloadable assets referenced by results
- Return structured errors instead of failing the call
"""

from mcp_server.server import create_server, run_stdio

__all__ = ["create_server", "run_stdio"]
