"""
Sandboxed filesystem access for model-directed media organization.

Every path a tool receives is resolved by :class:`PathSandbox` against the
configured library roots before any I/O happens.
"""

from jellyfin_organizer.sandbox.config import LibraryRoots, RootType
from jellyfin_organizer.sandbox.exceptions import (
    BinaryFileError,
    ConfigurationError,
    ConflictError,
    ContainmentError,
    InvalidPathError,
    LookupServiceError,
    MalformedInputError,
    NotFoundError,
    OrganizerError,
    ToolIOError,
)
from jellyfin_organizer.sandbox.operations import (
    BINARY_MEDIA_EXTENSIONS,
    MediaFileOperations,
)
from jellyfin_organizer.sandbox.sandbox import PathSandbox

__all__ = [
    "LibraryRoots",
    "RootType",
    "PathSandbox",
    "MediaFileOperations",
    "BINARY_MEDIA_EXTENSIONS",
    "OrganizerError",
    "ContainmentError",
    "NotFoundError",
    "ConflictError",
    "MalformedInputError",
    "InvalidPathError",
    "BinaryFileError",
    "ToolIOError",
    "LookupServiceError",
    "ConfigurationError",
]
