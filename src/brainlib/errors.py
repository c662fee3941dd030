"""Exception hierarchy for brainlib."""

from pathlib import Path
from typing import Optional


class BrainLibError(Exception):
    """Base exception for all brainlib errors."""


class ExtractionError(BrainLibError):
    """Raised when a file cannot be read or its text cannot be extracted."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class ConfigError(BrainLibError):
    """Raised when an environment setting has an invalid value."""


class ToolError(BrainLibError):
    """Raised when a tool call fails at the server boundary."""

    kind = "ToolError"


class InvalidQueryError(ToolError):
    """Raised when the query argument is missing or not a string."""

    kind = "InvalidArgument"


class ToolNotFoundError(ToolError):
    """Raised when a call names a tool the server does not expose."""

    kind = "ToolNotFound"

    def __init__(self, name: str):
        super().__init__(f"Tool not found: {name}")
        self.name = name
