"""
Permitted root directories for the media library sandbox.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class RootType(str, Enum):
    """Selector naming one configured root."""

    MOVIES = "movies"
    SHOWS = "shows"
    SOURCE = "source"


class LibraryRoots(BaseModel):
    """
    The set of directories the filesystem tools may touch.

    ``movies`` and ``shows`` are the Jellyfin library folders and are the only
    writable roots. ``source`` is an optional scan folder that can be read and
    copied from but never written to.

    Usage:
        roots = LibraryRoots(
            movies=Path("/lib/movies"),
            shows=Path("/lib/shows"),
            source=Path("/scan"),
        )
    """

    model_config = {"frozen": True, "extra": "forbid"}

    movies: Path = Field(description="Jellyfin movies library folder")
    shows: Path = Field(description="Jellyfin shows library folder")
    source: Optional[Path] = Field(
        default=None,
        description="Optional read-only folder to scan for new media",
    )

    @field_validator("movies", "shows", "source", mode="before")
    @classmethod
    def resolve_directories(cls, v):
        """Resolve roots to canonical absolute paths."""
        if v is None:
            return None
        if isinstance(v, str) and not v.strip():
            raise ValueError("root directory must not be empty")
        return Path(v).expanduser().resolve()

    @property
    def writable(self) -> tuple[Path, ...]:
        """Roots that may be written to."""
        return (self.movies, self.shows)

    @property
    def readable(self) -> tuple[Path, ...]:
        """Roots that may be read from."""
        if self.source is None:
            return self.writable
        return (self.movies, self.shows, self.source)

    def get(self, root_type: RootType) -> Optional[Path]:
        """Return the root named by ``root_type`` (None if not configured)."""
        return {
            RootType.MOVIES: self.movies,
            RootType.SHOWS: self.shows,
            RootType.SOURCE: self.source,
        }[RootType(root_type)]
