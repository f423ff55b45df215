"""
Abstract base classes for model providers.

A provider turns the conversation history plus the tool surface into one model
response: some text and zero or more tool calls.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

import httpx

from jellyfin_organizer.conversation.turns import ToolCall, Turn
from jellyfin_organizer.llm.config import LLMConfig
from jellyfin_organizer.llm.exceptions import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMContextLengthError,
    LLMError,
    LLMModelNotFoundError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
)

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """
    One model response.

    Attributes:
        content: Generated text ("" when the model only called tools)
        tool_calls: Tool invocations requested by the model, in order
        model: The model that generated the response
        finish_reason: Why generation stopped (e.g. "end_turn", "tool_use", "stop")
        usage: Token usage statistics (if available)
        raw_response: The raw response body (for debugging)
    """

    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    model: str = ""
    finish_reason: Optional[str] = None
    usage: Optional[dict[str, int]] = None
    raw_response: Optional[dict[str, Any]] = field(default=None, repr=False)

    @property
    def total_tokens(self) -> Optional[int]:
        """Get the total number of tokens used."""
        if self.usage:
            return self.usage.get("total_tokens")
        return None


class LLMProvider(ABC):
    """
    Abstract base class for model providers.

    Example:
        ```python
        class MyProvider(LLMProvider):
            async def complete(self, turns, *, tools=None, system_prompt=None, **kwargs):
                return LLMResponse(content="Hello")
        ```
    """

    def __init__(self, config: LLMConfig):
        """
        Initialize the provider with configuration.

        Args:
            config: Provider configuration
        """
        self.config = config

    @property
    def provider_name(self) -> str:
        return self.config.provider.value

    @property
    def model_name(self) -> str:
        return self.config.effective_model

    @abstractmethod
    async def complete(
        self,
        turns: Sequence[Turn],
        *,
        tools: Optional[Sequence[dict[str, Any]]] = None,
        system_prompt: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Ask the model for its next response.

        Args:
            turns: Full ordered conversation history
            tools: Tool declarations as ``{name, description, input_schema}`` dicts
            system_prompt: Optional system prompt
            **kwargs: Generation parameter overrides

        Returns:
            LLMResponse with text and tool calls

        Raises:
            LLMError: Any provider failure (see llm.exceptions)
        """
        ...

    def _merge_generation_params(self, **kwargs: Any) -> dict[str, Any]:
        """Merge config generation params with call-time overrides."""
        params = self.config.to_generation_params()
        for key, value in kwargs.items():
            if value is not None:
                params[key] = value
        return params

    async def close(self) -> None:
        """Release resources held by the provider."""
        pass

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(provider={self.provider_name}, model={self.model_name})"


class HTTPProvider(LLMProvider):
    """
    Shared plumbing for providers that speak JSON over HTTP.

    Subclasses supply headers and the request/response mapping; this class owns
    the httpx client and maps transport and status failures to LLMError types.
    """

    def __init__(self, config: LLMConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            config: Provider configuration
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        super().__init__(config)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.effective_base_url,
                timeout=httpx.Timeout(self.config.timeout),
                headers=self._build_headers(),
                transport=self._transport,
            )
        return self._client

    async def _post_json(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON body and return the decoded JSON response."""
        client = await self._get_client()
        logger.debug(f"Sending request to {self.config.effective_base_url}{path}")

        try:
            response = await client.post(path, json=body)
            if not response.is_success:
                self._handle_error_response(response)
            return response.json()
        except httpx.TimeoutException as e:
            raise LLMTimeoutError(
                f"Request timed out after {self.config.timeout}s: {e}",
                provider=self.provider_name,
                model=self.model_name,
            )
        except httpx.ConnectError as e:
            raise LLMConnectionError(
                f"Failed to connect to {self.config.effective_base_url}: {e}",
                provider=self.provider_name,
                model=self.model_name,
            )
        except LLMError:
            raise
        except ValueError as e:
            raise LLMResponseError(
                f"Response is not valid JSON: {e}",
                provider=self.provider_name,
                model=self.model_name,
            )
        except httpx.HTTPError as e:
            raise LLMConnectionError(
                f"Request failed: {e}",
                provider=self.provider_name,
                model=self.model_name,
            )

    def _handle_error_response(self, response: httpx.Response) -> None:
        """Convert HTTP error responses to the matching LLMError."""
        status_code = response.status_code

        try:
            error_data = response.json()
            error = error_data.get("error", {})
            if isinstance(error, str):
                detail = error
                error_type = None
            else:
                detail = error.get("message", str(error_data))
                error_type = error.get("type")
        except Exception:
            detail = response.text or f"HTTP {status_code}"
            error_type = None

        common_kwargs = {
            "provider": self.provider_name,
            "model": self.model_name,
        }

        if status_code in (401, 403):
            raise LLMAuthenticationError(detail, **common_kwargs)
        elif status_code == 404:
            raise LLMModelNotFoundError(
                f"Model '{self.model_name}' not found: {detail}",
                **common_kwargs,
            )
        elif status_code == 429:
            raise LLMRateLimitError(detail, **common_kwargs)
        elif status_code in (400, 413):
            if error_type == "context_length_exceeded" or "context" in detail.lower():
                raise LLMContextLengthError(detail, **common_kwargs)
            raise LLMResponseError(detail, status_code=status_code, **common_kwargs)
        elif status_code >= 500:
            raise LLMResponseError(
                f"Server error: {detail}",
                status_code=status_code,
                **common_kwargs,
            )
        else:
            raise LLMResponseError(detail, status_code=status_code, **common_kwargs)

    def _malformed(self, what: str, data: Any) -> LLMResponseError:
        return LLMResponseError(
            f"Unexpected response shape ({what})",
            response_body=str(data)[:500],
            provider=self.provider_name,
            model=self.model_name,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
