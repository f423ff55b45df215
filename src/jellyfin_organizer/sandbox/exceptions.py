"""
Exceptions for sandboxed media file operations.

Everything deriving from ``OrganizerError`` except the startup faults at the
bottom of this module is recoverable: the tool executor turns it into a
failure-flagged tool result so the model can try again.
"""

from typing import Optional


class OrganizerError(Exception):
    """Base exception for the organizer."""

    pass


class ContainmentError(OrganizerError):
    """Raised when a path argument resolves outside every permitted root."""

    def __init__(self, path: str, reason: str = "Path is not within permitted folders"):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class NotFoundError(OrganizerError):
    """Raised when a referenced file or directory does not exist."""

    def __init__(self, path: str, what: str = "Path"):
        self.path = path
        super().__init__(f"{what} does not exist: {path}")


class ConflictError(OrganizerError):
    """Raised when a move/rename target already exists."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Target path already exists: {path}")


class MalformedInputError(OrganizerError):
    """Raised when a tool argument payload does not match its input shape."""

    def __init__(self, message: str, *, tool: Optional[str] = None):
        self.tool = tool
        prefix = f"Invalid input for {tool}: " if tool else ""
        super().__init__(f"{prefix}{message}")


class InvalidPathError(MalformedInputError):
    """Raised when a path is well-formed but names the wrong kind of entry."""

    def __init__(self, path: str, reason: str = "Invalid path"):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class BinaryFileError(MalformedInputError):
    """Raised when read_file is asked for an image or video file."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Cannot read image or video files: {path}")


class ToolIOError(OrganizerError):
    """Raised when the filesystem fails during a tool's I/O."""

    def __init__(self, action: str, error: OSError):
        self.action = action
        self.error = error
        super().__init__(f"Failed to {action}: {error}")


class LookupServiceError(OrganizerError):
    """Raised when the external title lookup fails."""

    pass


class ConfigurationError(OrganizerError):
    """Raised at startup when required configuration is missing or invalid."""

    pass
