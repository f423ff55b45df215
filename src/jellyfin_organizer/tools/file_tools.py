"""
Model-facing file tools.

Each tool declares its input shape as a pydantic model and delegates to
:class:`MediaFileOperations`, which checks every path with the sandbox.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from jellyfin_organizer.sandbox.config import RootType
from jellyfin_organizer.sandbox.operations import MediaFileOperations
from jellyfin_organizer.tools.registry import ToolDefinition


class ReadFileInput(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    path: str = Field(
        description="Absolute path of the file to read. Must not be an image or video file."
    )
    limit: int = Field(
        default=0,
        ge=0,
        alias="bytes",
        description="Number of bytes to read from the start of the file. If 0, reads the entire file.",
    )


class ListDirectoryInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["movies", "shows", "source"] = Field(
        description="Which folder to list: 'movies', 'shows', or 'source' (the scan folder, if configured)."
    )
    subpath: str = Field(
        default="",
        description="Path relative to that folder. Leave empty for the folder itself.",
    )


class CopyFileInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    initial_path: str = Field(
        description="Absolute path of the file to copy. Must be within the media or source folders."
    )
    ending_path: str = Field(
        description="Absolute destination file path. Must be within the movies or shows folder."
    )


class RenameMediaInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source_path: str = Field(
        description="Absolute path of the file or folder to move/rename. Must be within the movies or shows folder."
    )
    target_path: str = Field(
        description="Absolute new path. Must be within the movies or shows folder and must not exist yet."
    )


def file_tool_definitions(operations: MediaFileOperations) -> list[ToolDefinition]:
    """
    Build the read, list, copy and move tool definitions.

    Args:
        operations: Sandboxed file operations the handlers delegate to

    Returns:
        ToolDefinitions in the order they are presented to the model
    """

    async def read_file(args: ReadFileInput) -> str:
        return operations.read_file(args.path, args.limit)

    async def list_directory(args: ListDirectoryInput) -> str:
        return operations.list_directory(RootType(args.type), args.subpath)

    async def copy_file(args: CopyFileInput) -> str:
        return operations.copy_file(args.initial_path, args.ending_path)

    async def rename_media(args: RenameMediaInput) -> str:
        return operations.move(args.source_path, args.target_path)

    return [
        ToolDefinition(
            name="read_file",
            description=(
                "Read the contents of a text file such as an .nfo, .srt or .txt. "
                "Can read the entire file or a given number of bytes from the start. "
                "Image and video files cannot be read. Access is restricted to the "
                "movies, shows and source folders."
            ),
            input_model=ReadFileInput,
            handler=read_file,
        ),
        ToolDefinition(
            name="list_directory",
            description=(
                "List the contents of a media folder without recursing. Directories "
                "end with '/', files show their size in bytes. Returns an empty "
                "string for an empty folder."
            ),
            input_model=ListDirectoryInput,
            handler=list_directory,
        ),
        ToolDefinition(
            name="copy_file",
            description=(
                "Copy a file into the Jellyfin library, creating missing folders. "
                "The source is kept. The destination must be within the movies or "
                "shows folder; an existing destination file is overwritten."
            ),
            input_model=CopyFileInput,
            handler=copy_file,
        ),
        ToolDefinition(
            name="rename_jellyfin_media",
            description=(
                "Move or rename a file or folder within the Jellyfin movies and shows "
                "folders, like 'mv'. Missing parent folders are created. Fails if the "
                "target already exists."
            ),
            input_model=RenameMediaInput,
            handler=rename_media,
        ),
    ]
