"""
The turn-taking loop between operator, model and tools.

States:
    AWAITING_OPERATOR_INPUT -> read one line, then AWAITING_MODEL_RESPONSE
    AWAITING_MODEL_RESPONSE -> call the model; DISPATCHING_TOOLS if it asked
                               for tools, else AWAITING_OPERATOR_INPUT
    DISPATCHING_TOOLS       -> run every pending call, append all results as
                               one batch, then AWAITING_MODEL_RESPONSE
    FINISHED                -> operator input ended

Everything runs sequentially: one model call and all of its tool calls are
resolved before the next model call.
"""

import inspect
import logging
import uuid
from dataclasses import replace
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Protocol, Union

from jellyfin_organizer.conversation.turns import Conversation, ToolCall, ToolResult, Turn
from jellyfin_organizer.llm.exceptions import LLMError

if TYPE_CHECKING:
    from jellyfin_organizer.llm.base import LLMProvider
    from jellyfin_organizer.tools.executor import ToolExecutor
    from jellyfin_organizer.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

InputReader = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]


class ControllerState(str, Enum):
    """Where the conversation loop is."""

    AWAITING_OPERATOR_INPUT = "awaiting_operator_input"
    AWAITING_MODEL_RESPONSE = "awaiting_model_response"
    DISPATCHING_TOOLS = "dispatching_tools"
    FINISHED = "finished"


class Display(Protocol):
    """Operator-facing output of the conversation loop."""

    def prompt(self) -> None: ...

    def model_text(self, text: str) -> None: ...

    def tool_call(self, call: ToolCall) -> None: ...

    def tool_result(self, call: ToolCall, result: ToolResult) -> None: ...

    def error(self, message: str) -> None: ...


class NullDisplay:
    """Display that shows nothing."""

    def prompt(self) -> None:
        pass

    def model_text(self, text: str) -> None:
        pass

    def tool_call(self, call: ToolCall) -> None:
        pass

    def tool_result(self, call: ToolCall, result: ToolResult) -> None:
        pass

    def error(self, message: str) -> None:
        pass


class ConversationController:
    """
    Owns the conversation history and runs the turn-taking loop.

    Usage:
        controller = ConversationController(
            provider=provider,
            registry=registry,
            executor=ToolExecutor(registry),
            read_input=read_line,          # returns None at end of input
            display=console_display,
        )
        await controller.run(initial_prompt=prompt)
    """

    def __init__(
        self,
        provider: "LLMProvider",
        registry: "ToolRegistry",
        executor: "ToolExecutor",
        read_input: InputReader,
        *,
        display: Optional[Display] = None,
        system_prompt: Optional[str] = None,
        max_model_calls_per_input: Optional[int] = None,
    ):
        """
        Args:
            provider: Model provider
            registry: Fixed tool registry whose declarations are sent each call
            executor: Executes tool calls against the registry
            read_input: Returns the next operator line, or None at end of input
            display: Operator output (nothing is shown if omitted)
            system_prompt: Optional system prompt sent with every model call
            max_model_calls_per_input: Hand control back to the operator after
                this many consecutive model calls (None = no limit)
        """
        self.provider = provider
        self.registry = registry
        self.executor = executor
        self.read_input = read_input
        self.display = display or NullDisplay()
        self.system_prompt = system_prompt
        self.max_model_calls_per_input = max_model_calls_per_input

        self.conversation = Conversation()
        self.state = ControllerState.AWAITING_OPERATOR_INPUT
        self.model_calls = 0
        self._calls_since_input = 0
        self._tool_schemas = registry.schemas()

    @property
    def history(self) -> tuple[Turn, ...]:
        """The ordered conversation so far."""
        return self.conversation.turns

    def seed(self, prompt: str) -> None:
        """Start the conversation with a scripted prompt instead of operator input."""
        if self.state != ControllerState.AWAITING_OPERATOR_INPUT:
            raise RuntimeError(f"Cannot seed a conversation in state {self.state.value}")
        self.conversation.append_operator_text(prompt)
        self._calls_since_input = 0
        self.state = ControllerState.AWAITING_MODEL_RESPONSE

    async def run(self, initial_prompt: Optional[str] = None) -> None:
        """
        Run until operator input ends.

        Args:
            initial_prompt: If given, sent to the model before any operator input
        """
        if initial_prompt is not None:
            self.seed(initial_prompt)

        while await self.step():
            pass

        logger.info(f"Conversation finished after {self.model_calls} model call(s)")

    async def step(self) -> bool:
        """
        Perform one state transition.

        Returns:
            False once the loop has finished, True otherwise
        """
        if self.state == ControllerState.AWAITING_OPERATOR_INPUT:
            await self._read_operator_input()
        elif self.state == ControllerState.AWAITING_MODEL_RESPONSE:
            await self._invoke_model()
        elif self.state == ControllerState.DISPATCHING_TOOLS:
            await self._dispatch_tools()
        return self.state != ControllerState.FINISHED

    async def _read_operator_input(self) -> None:
        self.display.prompt()
        line = self.read_input()
        if inspect.isawaitable(line):
            line = await line

        if line is None:
            self.state = ControllerState.FINISHED
            return
        if not line.strip():
            return

        self.conversation.append_operator_text(line)
        self._calls_since_input = 0
        self.state = ControllerState.AWAITING_MODEL_RESPONSE

    async def _invoke_model(self) -> None:
        limit = self.max_model_calls_per_input
        if limit is not None and self._calls_since_input >= limit:
            self.display.error(
                f"Stopped after {limit} model calls without operator input. "
                "Type a message to continue."
            )
            self.state = ControllerState.AWAITING_OPERATOR_INPUT
            return

        self.conversation.require_ready_for_model()
        try:
            response = await self.provider.complete(
                self.conversation.turns,
                tools=self._tool_schemas,
                system_prompt=self.system_prompt,
            )
        except LLMError as e:
            logger.error(f"Model call failed: {e}")
            self.display.error(f"Model error: {e}")
            self.state = ControllerState.AWAITING_OPERATOR_INPUT
            return

        self.model_calls += 1
        self._calls_since_input += 1

        calls = _with_unique_ids(response.tool_calls)
        self.conversation.append_model_response(response.content, calls)

        if response.content:
            self.display.model_text(response.content)

        if calls:
            self.state = ControllerState.DISPATCHING_TOOLS
        else:
            self.state = ControllerState.AWAITING_OPERATOR_INPUT

    async def _dispatch_tools(self) -> None:
        results = []
        for call in self.conversation.pending_calls:
            self.display.tool_call(call)
            result = await self.executor.run(call)
            self.display.tool_result(call, result)
            results.append(result)

        self.conversation.append_tool_results(results)
        self.state = ControllerState.AWAITING_MODEL_RESPONSE


def _with_unique_ids(calls: list[ToolCall]) -> list[ToolCall]:
    """Give calls with a missing or repeated id a fresh one."""
    seen: set[str] = set()
    unique = []
    for call in calls:
        if not call.id or call.id in seen:
            call = replace(call, id=f"call_{uuid.uuid4().hex}")
        seen.add(call.id)
        unique.append(call)
    return unique
