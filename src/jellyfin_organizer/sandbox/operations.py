"""
Sandboxed file operations used by the model-facing tools.

Every public method passes each of its path arguments through
:class:`PathSandbox` before any filesystem call is made.
"""

import errno
import logging
import os
import shutil
from pathlib import Path

from jellyfin_organizer.sandbox.config import RootType
from jellyfin_organizer.sandbox.exceptions import (
    BinaryFileError,
    ConflictError,
    InvalidPathError,
    MalformedInputError,
    NotFoundError,
    ToolIOError,
)
from jellyfin_organizer.sandbox.sandbox import PathSandbox

logger = logging.getLogger(__name__)

# Extensions read_file refuses; it is for inspecting text (nfo, srt, txt), not media.
BINARY_MEDIA_EXTENSIONS = frozenset(
    {
        ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".svg", ".tiff", ".tif", ".ico",
        ".mp4", ".avi", ".mkv", ".mov", ".wmv", ".flv", ".webm", ".m4v", ".3gp", ".ogv",
        ".vob", ".ts", ".mts", ".m2ts",
    }
)

COPY_CHUNK_SIZE = 1024 * 1024


class MediaFileOperations:
    """
    Read, list, copy and move files inside the library sandbox.

    Usage:
        roots = LibraryRoots(movies=Path("/lib/movies"), shows=Path("/lib/shows"))
        ops = MediaFileOperations(PathSandbox(roots))

        print(ops.list_directory(RootType.MOVIES))
        ops.copy_file("/scan/Film.mkv", "/lib/movies/Film (2020)/Film.mkv")
    """

    def __init__(self, sandbox: PathSandbox, chunk_size: int = COPY_CHUNK_SIZE):
        """
        Initialize file operations.

        Args:
            sandbox: Path sandbox every argument is checked against
            chunk_size: Buffer size used when streaming a copy
        """
        self.sandbox = sandbox
        self.chunk_size = chunk_size

    def read_file(self, path: str, limit: int = 0) -> str:
        """
        Read a text file.

        Args:
            path: Absolute path inside a readable root
            limit: Read at most this many bytes from the start (0 = whole file)

        Returns:
            File contents decoded as UTF-8 (undecodable bytes are replaced)

        Raises:
            ContainmentError: If the path is outside the sandbox
            BinaryFileError: If the path has an image or video extension
            NotFoundError: If the file doesn't exist
            InvalidPathError: If the path is a directory
            ToolIOError: If reading fails
        """
        if limit < 0:
            raise MalformedInputError(f"byte limit must not be negative, got {limit}")

        resolved = self.sandbox.resolve(path)

        if resolved.suffix.lower() in BINARY_MEDIA_EXTENSIONS:
            raise BinaryFileError(str(resolved))

        if not resolved.exists():
            raise NotFoundError(str(resolved), "File")
        if resolved.is_dir():
            raise InvalidPathError(str(resolved), "Path is a directory, use list_directory")

        try:
            with open(resolved, "rb") as f:
                data = f.read(limit) if limit > 0 else f.read()
        except OSError as e:
            raise ToolIOError("read file", e)

        logger.debug(f"Read {len(data)} bytes from {resolved}")
        return data.decode("utf-8", errors="replace")

    def list_directory(self, root_type: RootType, subpath: str = "") -> str:
        """
        List one directory level inside a named root.

        Args:
            root_type: Which root to list
            subpath: Path relative to that root ("" for the root itself)

        Returns:
            One line per entry: ``name/`` for directories and
            ``name (N bytes)`` for files, sorted by name. Empty string for an
            empty directory.
        """
        root_type = RootType(root_type)
        if self.sandbox.roots.get(root_type) is None:
            raise MalformedInputError(f"no {root_type.value} folder is configured")

        directory = self.sandbox.resolve(subpath, base=root_type)

        if not directory.exists():
            raise NotFoundError(str(directory), "Directory")
        if not directory.is_dir():
            raise InvalidPathError(str(directory), "Path is not a directory")

        lines = []
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
            for entry in entries:
                if entry.is_dir():
                    lines.append(f"{entry.name}/\n")
                    continue
                try:
                    size = entry.stat().st_size
                except OSError:
                    lines.append(f"{entry.name}\n")
                else:
                    lines.append(f"{entry.name} ({size} bytes)\n")
        except OSError as e:
            raise ToolIOError("list directory", e)

        logger.debug(f"Listed {len(lines)} entries in {directory}")
        return "".join(lines)

    def copy_file(self, source: str, destination: str) -> str:
        """
        Copy a file into the library, creating missing parent directories.

        The source is left untouched. An existing destination file is
        overwritten. The copy is not atomic: a failure mid-copy can leave a
        partially written destination.

        Args:
            source: File inside a readable root
            destination: File path inside a writable root

        Returns:
            Confirmation naming both resolved paths
        """
        src = self.sandbox.resolve(source)
        dst = self.sandbox.resolve(destination, writable=True)

        if not src.exists():
            raise NotFoundError(str(src), "Source file")
        if src.is_dir():
            raise InvalidPathError(str(src), "Source path is a directory")
        if dst.is_dir():
            raise InvalidPathError(str(dst), "Destination path is a directory")
        if src == dst:
            raise InvalidPathError(str(dst), "Source and destination are the same file")

        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ToolIOError("create destination directory", e)

        try:
            with open(src, "rb") as fsrc, open(dst, "wb") as fdst:
                shutil.copyfileobj(fsrc, fdst, self.chunk_size)
        except OSError as e:
            logger.error(f"Copy {src} -> {dst} failed: {e}")
            raise ToolIOError("copy file contents", e)

        logger.info(f"Copied {src} -> {dst}")
        return f"Successfully copied file from {src} to {dst}"

    def move(self, source: str, target: str) -> str:
        """
        Move or rename a file or folder inside the library.

        Args:
            source: Existing file or folder inside a writable root
            target: New path inside a writable root; must not exist

        Returns:
            Confirmation naming both resolved paths

        Raises:
            ConflictError: If the target already exists (nothing is changed)
        """
        src = self.sandbox.resolve(source, writable=True)
        dst = self.sandbox.resolve(target, writable=True)

        if not os.path.lexists(src):
            raise NotFoundError(str(src), "Source path")
        if src in self.sandbox.roots.writable:
            raise InvalidPathError(str(src), "Cannot move a library root")
        if os.path.lexists(dst):
            raise ConflictError(str(dst))
        if src.is_dir() and _is_relative_to(dst, src):
            raise InvalidPathError(str(dst), "Cannot move a folder inside itself")

        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ToolIOError("create target directory", e)

        try:
            os.rename(src, dst)
        except OSError as e:
            if e.errno != errno.EXDEV:
                raise ToolIOError("move/rename", e)
            # Different filesystem: fall back to copy-then-delete.
            logger.debug(f"Cross-device move {src} -> {dst}, copying instead")
            try:
                shutil.move(str(src), str(dst))
            except OSError as e2:
                raise ToolIOError("move/rename", e2)

        logger.info(f"Moved {src} -> {dst}")
        return f"Successfully moved/renamed {src} to {dst}"


def _is_relative_to(path: Path, directory: Path) -> bool:
    try:
        path.relative_to(directory)
        return True
    except ValueError:
        return False
