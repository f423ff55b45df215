"""
Assembly of the initial organize prompt.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from jellyfin_organizer.prompts.templates import ORGANIZE_PROMPT
from jellyfin_organizer.sandbox.config import LibraryRoots
from jellyfin_organizer.sandbox.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def load_docs(docs_dir: Optional[Union[str, Path]]) -> str:
    """
    Concatenate every Markdown file under a directory.

    Files are read recursively in sorted path order and each is followed by a
    newline. A missing directory yields an empty string.

    Args:
        docs_dir: Directory to read (None = no docs)

    Returns:
        The concatenated documentation
    """
    if docs_dir is None:
        return ""

    root = Path(docs_dir).expanduser()
    if not root.is_dir():
        logger.warning(f"Jellyfin docs directory not found: {root}")
        return ""

    parts = []
    for path in sorted(p for p in root.rglob("*.md") if p.is_file()):
        logger.debug(f"Loading docs: {path}")
        parts.append(path.read_text(encoding="utf-8", errors="replace"))
        parts.append("\n")
    return "".join(parts)


def load_template(template_path: Optional[Union[str, Path]]) -> str:
    """
    Read a prompt template, or return the built-in one.

    Raises:
        ConfigurationError: If the template file cannot be read
    """
    if template_path is None:
        return ORGANIZE_PROMPT

    path = Path(template_path).expanduser()
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read prompt template {path}: {e}") from e


def render_prompt(
    template: str,
    *,
    input_path: str,
    movies_folder: Union[str, Path],
    shows_folder: Union[str, Path],
    jellyfin_docs: str = "",
) -> str:
    """
    Fill in a prompt template.

    Templates use Python string formatting with the named placeholders
    {input_path}, {movies_folder}, {shows_folder} and {jellyfin_docs}.
    Literal braces are written doubled.

    Raises:
        ConfigurationError: If the template uses an unknown placeholder
    """
    try:
        return template.format(
            input_path=input_path,
            movies_folder=str(movies_folder),
            shows_folder=str(shows_folder),
            jellyfin_docs=jellyfin_docs,
        )
    except (KeyError, IndexError, ValueError) as e:
        raise ConfigurationError(f"Invalid prompt template: {e!r}") from e


def build_organize_prompt(
    input_path: str,
    library: LibraryRoots,
    template_path: Optional[Union[str, Path]] = None,
    docs_dir: Optional[Union[str, Path]] = None,
) -> str:
    """Render the initial prompt for organizing ``input_path`` into ``library``."""
    return render_prompt(
        load_template(template_path),
        input_path=input_path,
        movies_folder=library.movies,
        shows_folder=library.shows,
        jellyfin_docs=load_docs(docs_dir),
    )
