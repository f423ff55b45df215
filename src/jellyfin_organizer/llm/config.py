"""
Model provider configuration.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator


class ProviderType(str, Enum):
    """Supported model provider types."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    OLLAMA = "ollama"
    LMSTUDIO = "lmstudio"
    DUMMY = "dummy"


DEFAULT_BASE_URLS: dict[ProviderType, str] = {
    ProviderType.ANTHROPIC: "https://api.anthropic.com/v1",
    ProviderType.OPENAI: "https://api.openai.com/v1",
    ProviderType.OLLAMA: "http://localhost:11434/v1",
    ProviderType.LMSTUDIO: "http://localhost:1234/v1",
    ProviderType.DUMMY: "",
}

DEFAULT_MODELS: dict[ProviderType, str] = {
    ProviderType.ANTHROPIC: "claude-3-7-sonnet-latest",
    ProviderType.OPENAI: "gpt-4o",
    ProviderType.OLLAMA: "qwen2.5:14b",
    ProviderType.LMSTUDIO: "qwen2.5-14b-instruct",
    ProviderType.DUMMY: "dummy",
}


class LLMConfig(BaseModel):
    """
    Configuration for a model provider.

    Example:
        ```python
        config = LLMConfig(
            provider=ProviderType.ANTHROPIC,
            api_key="sk-ant-...",
        )

        # Local Ollama with its OpenAI-compatible endpoint
        config = LLMConfig(
            provider=ProviderType.OLLAMA,
            model="qwen2.5:14b",
        )
        ```
    """

    provider: ProviderType = Field(
        default=ProviderType.ANTHROPIC,
        description="The provider type to use",
    )
    model: Optional[str] = Field(
        default=None,
        description="Model identifier (None = provider default)",
    )
    base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the API endpoint (None = provider default)",
    )
    api_key: Optional[SecretStr] = Field(
        default=None,
        description="API key for authentication",
    )

    temperature: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=2.0,
        description="Sampling temperature (None = provider default)",
    )
    max_tokens: int = Field(
        default=1024,
        gt=0,
        description="Maximum tokens to generate per response",
    )

    # No retries are attempted; the timeout only bounds a single request.
    timeout: float = Field(
        default=120.0,
        gt=0,
        description="Request timeout in seconds",
    )

    extra_options: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional provider-specific request fields",
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: Optional[str]) -> Optional[str]:
        """Strip the trailing slash."""
        return v.rstrip("/") if v else v

    @property
    def effective_model(self) -> str:
        return self.model or DEFAULT_MODELS[self.provider]

    @property
    def effective_base_url(self) -> str:
        return self.base_url or DEFAULT_BASE_URLS[self.provider]

    def get_api_key(self) -> Optional[str]:
        """Get the API key as a plain string."""
        if self.api_key:
            return self.api_key.get_secret_value()
        return None

    def to_generation_params(self) -> dict[str, Any]:
        """Non-None generation parameters shared by all wire formats."""
        params: dict[str, Any] = {
            "model": self.effective_model,
            "max_tokens": self.max_tokens,
        }
        if self.temperature is not None:
            params["temperature"] = self.temperature
        params.update(self.extra_options)
        return params

    def with_overrides(self, **kwargs: Any) -> "LLMConfig":
        """Return a copy with the given fields replaced."""
        data = self.model_dump()
        data.update(kwargs)
        return LLMConfig.model_validate(data)

    def __repr__(self) -> str:
        api_key_str = "'***'" if self.api_key else "None"
        return (
            f"LLMConfig(provider={self.provider.value!r}, model={self.effective_model!r}, "
            f"api_key={api_key_str})"
        )


class DummyProviderConfig(BaseModel):
    """Configuration for the scripted dummy provider."""

    fallback_text: str = Field(
        default="Nothing left to do.",
        description="Text returned once the scripted responses are used up",
    )
    should_fail: bool = Field(
        default=False,
        description="If True, every call raises an LLMError",
    )
    error_message: str = Field(
        default="Simulated dummy provider error",
        description="Message of the simulated error",
    )
