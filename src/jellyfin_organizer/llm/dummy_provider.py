"""
Scripted model provider for tests and dry runs.

Returns queued responses in order without making any network calls.
"""

import copy
from typing import Any, Iterable, Optional, Sequence

from jellyfin_organizer.conversation.turns import Turn
from jellyfin_organizer.llm.base import LLMProvider, LLMResponse
from jellyfin_organizer.llm.config import DummyProviderConfig, LLMConfig
from jellyfin_organizer.llm.exceptions import LLMError


class DummyProvider(LLMProvider):
    """
    A provider that replays scripted responses.

    Example:
        ```python
        provider = DummyProvider(LLMConfig(provider=ProviderType.DUMMY))
        provider.queue_response(
            LLMResponse(tool_calls=[ToolCall("t1", "list_directory", {"type": "movies"})])
        )
        provider.queue_response(LLMResponse(content="Done."))
        ```
    """

    def __init__(
        self,
        config: LLMConfig,
        dummy_config: Optional[DummyProviderConfig] = None,
        responses: Optional[Iterable[LLMResponse]] = None,
    ):
        """
        Args:
            config: Base provider configuration
            dummy_config: Dummy-specific settings (defaults if not provided)
            responses: Initial response script
        """
        super().__init__(config)
        self.dummy_config = dummy_config or DummyProviderConfig()
        self._script: list[LLMResponse] = list(responses or [])
        self.calls: list[dict[str, Any]] = []

    @property
    def call_count(self) -> int:
        """Number of complete() calls so far."""
        return len(self.calls)

    @property
    def remaining(self) -> int:
        """Number of scripted responses not yet returned."""
        return len(self._script)

    def queue_response(self, response: LLMResponse) -> None:
        """Append a response to the script."""
        self._script.append(response)

    def set_should_fail(self, should_fail: bool, error_message: Optional[str] = None) -> None:
        """Make every following call raise (or stop raising)."""
        self.dummy_config.should_fail = should_fail
        if error_message:
            self.dummy_config.error_message = error_message

    async def complete(
        self,
        turns: Sequence[Turn],
        *,
        tools: Optional[Sequence[dict[str, Any]]] = None,
        system_prompt: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        # Snapshot the history so later appends don't change what was recorded.
        self.calls.append(
            {
                "turns": tuple(turns),
                "tools": copy.deepcopy(list(tools or [])),
                "system_prompt": system_prompt,
                **kwargs,
            }
        )

        if self.dummy_config.should_fail:
            raise LLMError(
                self.dummy_config.error_message,
                provider=self.provider_name,
                model=self.model_name,
            )

        if self._script:
            response = self._script.pop(0)
        else:
            response = LLMResponse(content=self.dummy_config.fallback_text)

        if not response.model:
            response.model = self.model_name
        if response.finish_reason is None:
            response.finish_reason = "tool_use" if response.tool_calls else "end_turn"
        return response
