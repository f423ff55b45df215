"""
Path containment for every filesystem-touching tool.

The sandbox is a pure policy layer: it canonicalizes a candidate path and
decides whether it lies inside one of the configured roots. It never opens,
creates or lists anything.
"""

import logging
from pathlib import Path, PurePath
from typing import Optional, Union

from jellyfin_organizer.sandbox.config import LibraryRoots, RootType
from jellyfin_organizer.sandbox.exceptions import ContainmentError

logger = logging.getLogger(__name__)

PathLike = Union[str, PurePath]


class PathSandbox:
    """
    Resolves model-supplied paths against the permitted library roots.

    Absolute candidates are accepted when their canonical form is equal to, or
    a path-segment descendant of, a permitted root. Relative candidates are
    only accepted when the caller names the root to join them against
    (``base``); they are never resolved against the working directory.

    Usage:
        sandbox = PathSandbox(roots)

        src = sandbox.resolve("/scan/Film.mkv")
        dst = sandbox.resolve("/lib/movies/Film (2020)/Film.mkv", writable=True)
        listing_dir = sandbox.resolve("Film (2020)", base=RootType.MOVIES)
    """

    def __init__(self, roots: LibraryRoots):
        """
        Initialize the sandbox.

        Args:
            roots: Permitted root directories (fixed for the process lifetime)
        """
        self.roots = roots
        self._readable = tuple(self._canonicalize(p) for p in roots.readable)
        self._writable = tuple(self._canonicalize(p) for p in roots.writable)

    def resolve(
        self,
        candidate: PathLike,
        *,
        writable: bool = False,
        base: Optional[RootType] = None,
    ) -> Path:
        """
        Resolve a candidate path to a canonical path inside the sandbox.

        Args:
            candidate: Path supplied by the model
            writable: Require containment in a writable root
            base: Root to join a relative candidate against; when given,
                containment is checked against that root only

        Returns:
            Canonical absolute path

        Raises:
            ContainmentError: If the path is empty, contains a parent-directory
                segment, cannot be resolved, or lies outside the permitted roots
        """
        text = str(candidate)

        # Checks on the raw text; nothing below this block runs for these.
        if "\x00" in text:
            raise self._reject(text, "Path contains a NUL byte")
        if ".." in PurePath(text).parts:
            raise self._reject(text, "Path contains invalid directory traversal")

        if base is not None:
            root = self.roots.get(base)
            if root is None:
                raise self._reject(text, f"No {RootType(base).value} folder is configured")
            allowed = (self._canonicalize(root),)
            if writable and allowed[0] not in self._writable:
                raise self._reject(text, f"The {RootType(base).value} folder is read-only")
        else:
            allowed = self._writable if writable else self._readable

        if not text.strip():
            if base is None:
                raise self._reject(text, "Path must not be empty")
            return allowed[0]

        try:
            path = Path(text).expanduser()
        except RuntimeError as e:
            raise self._reject(text, f"Cannot expand path ({e})")

        if not path.is_absolute():
            if base is None:
                raise self._reject(
                    text,
                    "Relative paths are not accepted, use an absolute path inside "
                    + self._describe(allowed),
                )
            path = allowed[0] / path

        resolved = self._canonicalize(path)
        if not any(self._is_within_directory(resolved, root) for root in allowed):
            kind = "writable" if writable else "permitted"
            raise self._reject(
                text, f"Path is not within {kind} folders ({self._describe(allowed)})"
            )

        return resolved

    def is_allowed(self, candidate: PathLike, *, writable: bool = False) -> tuple[bool, str]:
        """
        Check a path without raising.

        Returns:
            Tuple of (is_allowed, reason)
        """
        try:
            self.resolve(candidate, writable=writable)
        except ContainmentError as e:
            return False, e.reason
        return True, "Path is allowed"

    @staticmethod
    def _canonicalize(path: Path) -> Path:
        try:
            return Path(path).expanduser().resolve()
        except (OSError, RuntimeError, ValueError) as e:
            raise ContainmentError(str(path), f"Cannot resolve path ({e})")

    @staticmethod
    def _is_within_directory(path: Path, directory: Path) -> bool:
        """Check if path is within directory (segment-wise, not string prefix)."""
        try:
            path.relative_to(directory)
            return True
        except ValueError:
            return False

    @staticmethod
    def _describe(roots: tuple[Path, ...]) -> str:
        return ", ".join(str(r) for r in roots)

    @staticmethod
    def _reject(path: str, reason: str) -> ContainmentError:
        logger.warning(f"Sandbox rejected {path!r}: {reason}")
        return ContainmentError(path, reason)

    def __repr__(self) -> str:
        return (
            f"PathSandbox(readable={[str(p) for p in self._readable]}, "
            f"writable={[str(p) for p in self._writable]})"
        )
