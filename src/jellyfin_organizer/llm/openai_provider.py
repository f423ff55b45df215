"""
OpenAI-compatible chat completions provider with function calling.

Works with the OpenAI API and with local servers that implement the same
``/chat/completions`` tool-calling format (LM Studio, Ollama, vLLM).
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

logger = logging.getLogger(__name__)


class OpenAIProvider(HTTPProvider):
    """
    OpenAI-compatible provider.

    Example:
        ```python
        config = LLMConfig(provider=ProviderType.OLLAMA, model="qwen2.5:14b")
        provider = OpenAIProvider(config)
        response = await provider.complete(conversation.turns, tools=registry.schemas())
        ```
    """

    def _build_headers(self) -> dict[str, str]:
        headers = super()._build_headers()
        api_key = self.config.get_api_key()
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    async def complete(
        self,
        turns: Sequence[Turn],
        *,
        tools: Optional[Sequence[dict[str, Any]]] = None,
        system_prompt: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        body: dict[str, Any] = {
            "messages": self._prepare_messages(turns, system_prompt),
            **self._merge_generation_params(**kwargs),
        }
        if tools:
            body["tools"] = [self._tool_schema(tool) for tool in tools]

        data = await self._post_json("/chat/completions", body)
        return self._parse_response(data)

    @staticmethod
    def _tool_schema(tool: dict[str, Any]) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": tool["name"],
                "description": tool["description"],
                "parameters": tool["input_schema"],
            },
        }

    def _prepare_messages(
        self, turns: Sequence[Turn], system_prompt: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """
        Map conversation turns to chat messages.

        Consecutive model turns become one assistant message; a tool result
        batch becomes one ``tool`` message per result.
        """
        messages: list[dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        assistant: Optional[dict[str, Any]] = None
        for turn in turns:
            if isinstance(turn, (ModelText, ModelToolCall)):
                if assistant is None:
                    assistant = {"role": "assistant", "content": None}
                    messages.append(assistant)
                if isinstance(turn, ModelText):
                    assistant["content"] = (assistant["content"] or "") + turn.text
                else:
                    assistant.setdefault("tool_calls", []).append(
                        {
                            "id": turn.call.id,
                            "type": "function",
                            "function": {
                                "name": turn.call.name,
                                "arguments": _arguments_json(turn.call.arguments),
                            },
                        }
                    )
                continue

            assistant = None
            if isinstance(turn, OperatorText):
                messages.append({"role": "user", "content": turn.text})
            elif isinstance(turn, ToolResultBatch):
                for result in turn.results:
                    content = f"Error: {result.output}" if result.is_error else result.output
                    messages.append(
                        {"role": "tool", "tool_call_id": result.call_id, "content": content}
                    )

        return messages

    def _parse_response(self, data: dict[str, Any]) -> LLMResponse:
        try:
            choice = data["choices"][0]
            message = choice["message"]
            raw_calls = message.get("tool_calls") or []
        except (KeyError, IndexError, TypeError, AttributeError):
            raise self._malformed("missing choices[0].message", data)
        if not isinstance(raw_calls, list):
            raise self._malformed("tool_calls is not a list", data)

        tool_calls = []
        for raw in raw_calls:
            if not isinstance(raw, dict):
                raise self._malformed("tool call is not an object", data)
            function = raw.get("function") or {}
            if not isinstance(function, dict):
                raise self._malformed("tool call function is not an object", data)
            tool_calls.append(
                ToolCall(
                    id=raw.get("id") or "",
                    name=function.get("name", ""),
                    arguments=function.get("arguments"),
                )
            )

        return LLMResponse(
            content=message.get("content") or "",
            tool_calls=tool_calls,
            model=data.get("model", self.model_name),
            finish_reason=choice.get("finish_reason"),
            usage=data.get("usage"),
            raw_response=data,
        )


def _arguments_json(arguments: Any) -> str:
    if arguments is None:
        return "{}"
    if isinstance(arguments, str):
        return arguments
    return json.dumps(arguments)
