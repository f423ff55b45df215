"""
Anthropic Messages API provider with tool use.
"""

import json
import logging
from typing import Any, Optional, Sequence

from jellyfin_organizer.conversation.turns import (
    ModelText,
    ModelToolCall,
    OperatorText,
    ToolCall,
    ToolResultBatch,
    Turn,
)
from jellyfin_organizer.llm.base import HTTPProvider, LLMResponse
from jellyfin_organizer.llm.exceptions import LLMConfigurationError

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(HTTPProvider):
    """
    Provider for the Anthropic Messages API.

    Tool results for one model response are sent as a single user message
    holding one ``tool_result`` block per call.
    """

    def _build_headers(self) -> dict[str, str]:
        headers = super()._build_headers()
        headers["anthropic-version"] = ANTHROPIC_VERSION
        api_key = self.config.get_api_key()
        if api_key:
            headers["x-api-key"] = api_key
        return headers

    async def complete(
        self,
        turns: Sequence[Turn],
        *,
        tools: Optional[Sequence[dict[str, Any]]] = None,
        system_prompt: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        if not self.config.get_api_key() and self._transport is None:
            raise LLMConfigurationError(
                "An API key is required (set ANTHROPIC_API_KEY)",
                provider=self.provider_name,
                model=self.model_name,
            )

        body: dict[str, Any] = {
            "messages": self._prepare_messages(turns),
            **self._merge_generation_params(**kwargs),
        }
        if system_prompt:
            body["system"] = system_prompt
        if tools:
            body["tools"] = [
                {
                    "name": tool["name"],
                    "description": tool["description"],
                    "input_schema": tool["input_schema"],
                }
                for tool in tools
            ]

        data = await self._post_json("/messages", body)
        return self._parse_response(data)

    def _prepare_messages(self, turns: Sequence[Turn]) -> list[dict[str, Any]]:
        """Map turns to alternating user/assistant messages of content blocks."""
        messages: list[dict[str, Any]] = []

        def add(role: str, block: dict[str, Any]) -> None:
            # Consecutive blocks from the same side share one message.
            if messages and messages[-1]["role"] == role:
                messages[-1]["content"].append(block)
            else:
                messages.append({"role": role, "content": [block]})

        for turn in turns:
            if isinstance(turn, OperatorText):
                add("user", {"type": "text", "text": turn.text})
            elif isinstance(turn, ModelText):
                add("assistant", {"type": "text", "text": turn.text})
            elif isinstance(turn, ModelToolCall):
                add(
                    "assistant",
                    {
                        "type": "tool_use",
                        "id": turn.call.id,
                        "name": turn.call.name,
                        "input": _arguments_dict(turn.call.arguments),
                    },
                )
            elif isinstance(turn, ToolResultBatch):
                for result in turn.results:
                    add(
                        "user",
                        {
                            "type": "tool_result",
                            "tool_use_id": result.call_id,
                            "content": result.output,
                            "is_error": result.is_error,
                        },
                    )

        return messages

    def _parse_response(self, data: dict[str, Any]) -> LLMResponse:
        if not isinstance(data, dict):
            raise self._malformed("response body is not an object", data)
        blocks = data.get("content")
        if not isinstance(blocks, list):
            raise self._malformed("missing content blocks", data)

        texts = []
        tool_calls = []
        for block in blocks:
            if not isinstance(block, dict):
                raise self._malformed("content block is not an object", data)
            kind = block.get("type")
            if kind == "text":
                texts.append(block.get("text", ""))
            elif kind == "tool_use":
                tool_calls.append(
                    ToolCall(
                        id=block.get("id") or "",
                        name=block.get("name", ""),
                        arguments=block.get("input"),
                    )
                )
            else:
                logger.debug(f"Ignoring content block of type {kind!r}")

        usage = None
        raw_usage = data.get("usage")
        if isinstance(raw_usage, dict):
            prompt_tokens = raw_usage.get("input_tokens", 0)
            completion_tokens = raw_usage.get("output_tokens", 0)
            usage = {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            }

        return LLMResponse(
            content="\n".join(t for t in texts if t),
            tool_calls=tool_calls,
            model=data.get("model", self.model_name),
            finish_reason=data.get("stop_reason"),
            usage=usage,
            raw_response=data,
        )


def _arguments_dict(arguments: Any) -> Any:
    # The API wants the input object back; fall back to {} for junk.
    if isinstance(arguments, dict):
        return arguments
    if isinstance(arguments, str):
        try:
            parsed = json.loads(arguments)
        except json.JSONDecodeError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}
