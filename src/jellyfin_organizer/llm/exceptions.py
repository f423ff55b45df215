"""
Errors raised by model providers.

The conversation controller catches :class:`LLMError` and reports it to the
operator; nothing in this hierarchy is retried automatically.
"""

from typing import Any, Optional


class LLMError(Exception):
    """Base exception for all model provider errors."""

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.model = model
        self.details = details or {}

    def __str__(self) -> str:
        source = "/".join(p for p in (self.provider, self.model) if p)
        return f"[{source}] {self.message}" if source else self.message


class LLMConnectionError(LLMError):
    """The provider endpoint could not be reached."""


class LLMAuthenticationError(LLMError):
    """The provider rejected the API key."""


class LLMRateLimitError(LLMError):
    """The provider is throttling requests."""


class LLMTimeoutError(LLMError):
    """The request exceeded the configured timeout."""


class LLMResponseError(LLMError):
    """The provider answered with an error status or an unparseable body."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.response_body = response_body


class LLMModelNotFoundError(LLMError):
    """The configured model does not exist on the provider."""


class LLMContextLengthError(LLMError):
    """The conversation no longer fits in the model's context window."""


class LLMProviderNotFoundError(LLMError):
    """No provider is registered for the requested type."""


class LLMConfigurationError(LLMError):
    """The provider configuration is unusable (e.g. missing API key)."""
