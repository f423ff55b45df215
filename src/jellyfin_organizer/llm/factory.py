"""
Model provider factory.

Maps provider types to constructors; custom providers can be registered.
"""

from typing import Callable, Optional

from jellyfin_organizer.llm.anthropic_provider import AnthropicProvider
from jellyfin_organizer.llm.base import LLMProvider
from jellyfin_organizer.llm.config import (
    DEFAULT_BASE_URLS,
    DummyProviderConfig,
    LLMConfig,
    ProviderType,
)
from jellyfin_organizer.llm.dummy_provider import DummyProvider
from jellyfin_organizer.llm.exceptions import LLMProviderNotFoundError
from jellyfin_organizer.llm.openai_provider import OpenAIProvider

ProviderFactory = Callable[[LLMConfig], LLMProvider]

_PROVIDER_REGISTRY: dict[ProviderType, ProviderFactory] = {}


def register_provider(
    provider_type: ProviderType,
    factory: Optional[ProviderFactory] = None,
) -> Callable[[ProviderFactory], ProviderFactory]:
    """
    Register a provider factory for a provider type.

    Can be used as a decorator or called directly.
    """

    def decorator(func: ProviderFactory) -> ProviderFactory:
        _PROVIDER_REGISTRY[provider_type] = func
        return func

    if factory is not None:
        return decorator(factory)
    return decorator


def get_provider(
    config: LLMConfig,
    *,
    dummy_config: Optional[DummyProviderConfig] = None,
) -> LLMProvider:
    """
    Create a provider for ``config.provider``.

    Raises:
        LLMProviderNotFoundError: If the provider type is not registered
    """
    if config.provider == ProviderType.DUMMY:
        return DummyProvider(config, dummy_config)

    factory = _PROVIDER_REGISTRY.get(config.provider)
    if factory is None:
        available = ", ".join(p.value for p in _PROVIDER_REGISTRY)
        raise LLMProviderNotFoundError(
            f"Unknown provider type: {config.provider.value}. "
            f"Available providers: {available}",
            provider=config.provider.value,
        )

    return factory(config)


@register_provider(ProviderType.ANTHROPIC)
def _create_anthropic_provider(config: LLMConfig) -> LLMProvider:
    return AnthropicProvider(config)


@register_provider(ProviderType.OPENAI)
def _create_openai_provider(config: LLMConfig) -> LLMProvider:
    return OpenAIProvider(config)


@register_provider(ProviderType.LMSTUDIO)
def _create_lmstudio_provider(config: LLMConfig) -> LLMProvider:
    """LM Studio speaks the OpenAI format."""
    return OpenAIProvider(config)


@register_provider(ProviderType.OLLAMA)
def _create_ollama_provider(config: LLMConfig) -> LLMProvider:
    """Ollama's /v1 endpoint speaks the OpenAI format."""
    return OpenAIProvider(config)


def list_providers() -> list[str]:
    """List all provider type names."""
    return [p.value for p in _PROVIDER_REGISTRY] + [ProviderType.DUMMY.value]


def default_base_url(provider: str) -> str:
    """Default API base URL for a provider name."""
    return DEFAULT_BASE_URLS[ProviderType(provider)]
