"""
Model-invocable tools: definitions, registry and executor.
"""

from typing import Optional

from jellyfin_organizer.sandbox.operations import MediaFileOperations
from jellyfin_organizer.tools.executor import ToolExecutor
from jellyfin_organizer.tools.file_tools import (
    CopyFileInput,
    ListDirectoryInput,
    ReadFileInput,
    RenameMediaInput,
    file_tool_definitions,
)
from jellyfin_organizer.tools.imdb import (
    IMDbSearch,
    IMDbSettings,
    TitleMatch,
    imdb_tool_definition,
    parse_search_results,
)
from jellyfin_organizer.tools.registry import (
    ToolDefinition,
    ToolRegistry,
    ToolRegistryError,
)


def build_default_registry(
    operations: MediaFileOperations,
    lookup: Optional[IMDbSearch] = None,
) -> ToolRegistry:
    """
    Assemble the registry with the four file tools and the IMDb search.

    Args:
        operations: Sandboxed file operations
        lookup: IMDb search client (a default one is created if omitted)
    """
    definitions = file_tool_definitions(operations)
    definitions.append(imdb_tool_definition(lookup or IMDbSearch()))
    return ToolRegistry(definitions)


__all__ = [
    "ToolDefinition",
    "ToolRegistry",
    "ToolRegistryError",
    "ToolExecutor",
    "build_default_registry",
    "file_tool_definitions",
    "imdb_tool_definition",
    "IMDbSearch",
    "IMDbSettings",
    "TitleMatch",
    "parse_search_results",
    "ReadFileInput",
    "ListDirectoryInput",
    "CopyFileInput",
    "RenameMediaInput",
]
