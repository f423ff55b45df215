"""
Prompt templates for the Jellyfin organizer.

Templates use Python string formatting with named placeholders:
- {input_path}: The file or folder to organize
- {movies_folder}: Movies library folder
- {shows_folder}: Shows library folder
- {jellyfin_docs}: Concatenated Jellyfin naming documentation
"""

from jellyfin_organizer.prompts.templates import ORGANIZE_PROMPT, SYSTEM_PROMPT
from jellyfin_organizer.prompts.builder import (
    build_organize_prompt,
    load_docs,
    load_template,
    render_prompt,
)

__all__ = [
    "ORGANIZE_PROMPT",
    "SYSTEM_PROMPT",
    "build_organize_prompt",
    "load_docs",
    "load_template",
    "render_prompt",
]
