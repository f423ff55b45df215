"""
Model provider abstraction layer.

Example:
    ```python
    from jellyfin_organizer.llm import LLMConfig, ProviderType, get_provider

    provider = get_provider(LLMConfig(provider=ProviderType.ANTHROPIC, api_key="..."))
    response = await provider.complete(conversation.turns, tools=registry.schemas())
    for call in response.tool_calls:
        ...
    ```
"""

from jellyfin_organizer.llm.anthropic_provider import AnthropicProvider
from jellyfin_organizer.llm.base import HTTPProvider, LLMProvider, LLMResponse
from jellyfin_organizer.llm.config import (
    DEFAULT_BASE_URLS,
    DEFAULT_MODELS,
    DummyProviderConfig,
    LLMConfig,
    ProviderType,
)
from jellyfin_organizer.llm.dummy_provider import DummyProvider
from jellyfin_organizer.llm.exceptions import (
    LLMAuthenticationError,
    LLMConfigurationError,
    LLMConnectionError,
    LLMContextLengthError,
    LLMError,
    LLMModelNotFoundError,
    LLMProviderNotFoundError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
)
from jellyfin_organizer.llm.factory import (
    default_base_url,
    get_provider,
    list_providers,
    register_provider,
)
from jellyfin_organizer.llm.openai_provider import OpenAIProvider

__all__ = [
    # Config
    "LLMConfig",
    "DummyProviderConfig",
    "ProviderType",
    "DEFAULT_BASE_URLS",
    "DEFAULT_MODELS",
    # Base classes
    "LLMProvider",
    "HTTPProvider",
    "LLMResponse",
    # Providers
    "AnthropicProvider",
    "OpenAIProvider",
    "DummyProvider",
    # Factory
    "get_provider",
    "list_providers",
    "register_provider",
    "default_base_url",
    # Exceptions
    "LLMError",
    "LLMConnectionError",
    "LLMAuthenticationError",
    "LLMRateLimitError",
    "LLMTimeoutError",
    "LLMResponseError",
    "LLMModelNotFoundError",
    "LLMContextLengthError",
    "LLMProviderNotFoundError",
    "LLMConfigurationError",
]
