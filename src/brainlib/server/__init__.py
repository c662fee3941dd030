"""MCP tool server for brainlib."""

from brainlib.server.mcp_server import BrainLibraryServer, create_mcp_server
from brainlib.server.tools import (
    NO_MATCHES,
    SEARCH_TOOL,
    SEARCH_TOOL_NAME,
    DocumentToolbox,
    format_results,
    validate_search_arguments,
)

__all__ = [
    "BrainLibraryServer",
    "create_mcp_server",
    "DocumentToolbox",
    "format_results",
    "validate_search_arguments",
    "NO_MATCHES",
    "SEARCH_TOOL",
    "SEARCH_TOOL_NAME",
]
