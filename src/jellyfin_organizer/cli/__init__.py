"""
CLI module for jellyfin-organizer.

Provides the command-line interface that runs the organize conversation.
"""

from jellyfin_organizer.cli.main import cli

__all__ = ["cli"]
