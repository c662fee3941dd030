"""FastMCP server implementation for brainlib."""

from typing import Any, Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult, TextContent, Tool

from brainlib.errors import ToolError
from brainlib.index import LiveIndex
from brainlib.server.tools import DocumentToolbox

SERVER_NAME = "brain-library"


class BrainLibraryServer(FastMCP):
    """FastMCP server whose tool surface is a DocumentToolbox.

    Listing and dispatch go through the toolbox so arguments are checked
    by its own validation, and boundary errors reach the caller tagged
    with their kind (InvalidArgument, ToolNotFound).
    """

    def __init__(self, index: LiveIndex):
        self.toolbox = DocumentToolbox(index)
        super().__init__(name=SERVER_NAME)

    async def list_tools(self) -> list[Tool]:
        return [Tool(**entry) for entry in self.toolbox.describe()]

    async def call_tool(
        self, name: str, arguments: Optional[dict[str, Any]]
    ) -> list[TextContent] | CallToolResult:
        try:
            text = self.toolbox.call(name, arguments)
        except ToolError as e:
            return CallToolResult(
                content=[TextContent(type="text", text=f"{e.kind}: {e}")],
                isError=True,
            )
        return [TextContent(type="text", text=text)]


def create_mcp_server(index: LiveIndex) -> BrainLibraryServer:
    """Create an MCP server exposing search over a live index.

    Design: 1 process = 1 documents folder. The caller owns the index
    lifecycle (initialize before running, close after).

    Args:
        index: The index to search; may still be filling up

    Returns:
        Configured server instance
    """
    return BrainLibraryServer(index)
