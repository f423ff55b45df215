"""
Jellyfin Organizer - model-driven media library organization.

This package lets a tool-using language model sort downloaded media into a
Jellyfin library. Every filesystem tool is confined to the configured library
roots by a path sandbox.
"""

__version__ = "0.1.0"

from jellyfin_organizer.llm import (
    AnthropicProvider,
    DummyProvider,
    DummyProviderConfig,
    LLMConfig,
    LLMProvider,
    LLMResponse,
    OpenAIProvider,
    ProviderType,
    get_provider,
    list_providers,
)

from jellyfin_organizer.sandbox import (
    LibraryRoots,
    MediaFileOperations,
    OrganizerError,
    PathSandbox,
    RootType,
)

from jellyfin_organizer.tools import (
    ToolDefinition,
    ToolExecutor,
    ToolRegistry,
    build_default_registry,
)

from jellyfin_organizer.conversation import (
    Conversation,
    ConversationController,
    ControllerState,
    ToolCall,
    ToolResult,
)

from jellyfin_organizer.settings import OrganizerConfig

__all__ = [
    # Version
    "__version__",
    # LLM
    "LLMConfig",
    "DummyProviderConfig",
    "ProviderType",
    "LLMProvider",
    "LLMResponse",
    "AnthropicProvider",
    "OpenAIProvider",
    "DummyProvider",
    "get_provider",
    "list_providers",
    # Sandbox
    "LibraryRoots",
    "RootType",
    "PathSandbox",
    "MediaFileOperations",
    "OrganizerError",
    # Tools
    "ToolDefinition",
    "ToolRegistry",
    "ToolExecutor",
    "build_default_registry",
    # Conversation
    "Conversation",
    "ConversationController",
    "ControllerState",
    "ToolCall",
    "ToolResult",
    # Settings
    "OrganizerConfig",
]
