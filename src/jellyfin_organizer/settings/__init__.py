"""
Organizer settings.
"""

from jellyfin_organizer.settings.config import (
    ConversationSettings,
    LLMSettings,
    OrganizerConfig,
    PromptSettings,
    api_key_from_env,
)

__all__ = [
    "OrganizerConfig",
    "LLMSettings",
    "PromptSettings",
    "ConversationSettings",
    "api_key_from_env",
]
