"""The search_documents tool: argument validation, dispatch and formatting."""

import copy
import logging
from typing import Any, Mapping, Optional

from brainlib.errors import InvalidQueryError, ToolNotFoundError
from brainlib.index import LiveIndex
from brainlib.models import SearchResult

logger = logging.getLogger(__name__)

SEARCH_TOOL_NAME = "search_documents"
SEARCH_TOOL_DESCRIPTION = "Search your personal documents for information."
NO_MATCHES = "No matching information found."

SEARCH_TOOL: dict[str, Any] = {
    "name": SEARCH_TOOL_NAME,
    "description": SEARCH_TOOL_DESCRIPTION,
    "inputSchema": {
        "type": "object",
        "properties": {"query": {"type": "string"}},
        "required": ["query"],
    },
}


def validate_search_arguments(arguments: Optional[Mapping[str, Any]]) -> str:
    """Return the query string from raw tool arguments.

    Raises:
        InvalidQueryError: If arguments are missing, or query is absent or not a string
    """
    if not isinstance(arguments, Mapping):
        raise InvalidQueryError("Arguments must be an object with a 'query' field")
    if "query" not in arguments:
        raise InvalidQueryError("Missing required argument: query")
    query = arguments["query"]
    if not isinstance(query, str):
        raise InvalidQueryError(
            f"Argument 'query' must be a string, got {type(query).__name__}"
        )
    return query


def format_results(results: list[SearchResult]) -> str:
    """Render results as '[source] content' blocks separated by blank lines."""
    if not results:
        return NO_MATCHES
    return "\n\n".join(f"[{r.source}] {r.content}" for r in results)


class DocumentToolbox:
    """The tool surface an orchestration layer calls into."""

    def __init__(self, index: LiveIndex):
        self.index = index

    def describe(self) -> list[dict[str, Any]]:
        """Return name, description and input schema of every tool."""
        return [copy.deepcopy(SEARCH_TOOL)]

    def call(self, name: str, arguments: Optional[Mapping[str, Any]]) -> str:
        """Dispatch a raw tool call.

        Raises:
            ToolNotFoundError: If name is not an exposed tool
            InvalidQueryError: If the arguments are malformed
        """
        if name != SEARCH_TOOL_NAME:
            raise ToolNotFoundError(name)
        return self.search_documents(validate_search_arguments(arguments))

    def search_documents(self, query: str) -> str:
        """Search the index and format the ranked matches.

        Index failures are logged and reported as no matches.
        """
        try:
            results = self.index.search(query)
        except Exception:
            logger.exception(f"Search failed for query {query!r}")
            results = []
        return format_results(results)
