"""Pydantic schemas for the locally defined MCP tools.

The argument models validate incoming calls and also produce the JSON
schemas advertised in the tool list.
"""

from typing import Any

from mcp import types
from pydantic import BaseModel, ConfigDict, Field

FETCH_SCREEN_CODE = "fetch_screen_code"
FETCH_SCREEN_IMAGE = "fetch_screen_image"
EXTRACT_DESIGN_CONTEXT = "extract_design_context"


class ScreenArguments(BaseModel):
    """Arguments identifying one screen of a Stitch project."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    project_id: str = Field(
        alias="projectId", min_length=1, description="The project ID"
    )
    screen_id: str = Field(alias="screenId", min_length=1, description="The screen ID")

    def remote_arguments(self) -> dict[str, Any]:
        """Arguments for the remote get_screen tool."""
        return self.model_dump(by_alias=True)


def _screen_tool(name: str, description: str) -> types.Tool:
    return types.Tool(
        name=name,
        description=description,
        inputSchema=ScreenArguments.model_json_schema(by_alias=True),
    )


LOCAL_TOOLS: tuple[types.Tool, ...] = (
    _screen_tool(
        FETCH_SCREEN_CODE,
        "Retrieves the actual HTML/Code content of a screen. "
        "Use this when you need to SEE the code.",
    ),
    _screen_tool(
        FETCH_SCREEN_IMAGE,
        "Retrieves the screenshot/preview image of a screen and saves it "
        "as screen_<screenId>.png in the working directory.",
    ),
    _screen_tool(
        EXTRACT_DESIGN_CONTEXT,
        "Extracts the design system of a screen (Tailwind tokens, header, "
        "navigation and action button markup) as a prompt for generating "
        "consistent new screens.",
    ),
)

LOCAL_TOOL_NAMES = frozenset(tool.name for tool in LOCAL_TOOLS)


__all__ = [
    "EXTRACT_DESIGN_CONTEXT",
    "FETCH_SCREEN_CODE",
    "FETCH_SCREEN_IMAGE",
    "LOCAL_TOOLS",
    "LOCAL_TOOL_NAMES",
    "ScreenArguments",
]
