"""
Conversation history and the tool-augmented turn-taking loop.
"""

from jellyfin_organizer.conversation.turns import (
    Conversation,
    ConversationStateError,
    ModelText,
    ModelToolCall,
    OperatorText,
    ToolCall,
    ToolResult,
    ToolResultBatch,
    Turn,
)
from jellyfin_organizer.conversation.controller import (
    ControllerState,
    ConversationController,
    Display,
    NullDisplay,
)

__all__ = [
    "Conversation",
    "ConversationStateError",
    "Turn",
    "OperatorText",
    "ModelText",
    "ModelToolCall",
    "ToolResultBatch",
    "ToolCall",
    "ToolResult",
    "ConversationController",
    "ControllerState",
    "Display",
    "NullDisplay",
]
