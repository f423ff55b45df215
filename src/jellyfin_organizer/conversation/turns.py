"""
Conversation history types.

A conversation is an append-only sequence of turns. Every model tool call must
be answered by exactly one tool result, delivered in a single batch, before the
model is asked for its next response.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Sequence, Union


class ConversationStateError(Exception):
    """Raised when a turn would break the conversation ordering rules."""

    pass


@dataclass(frozen=True)
class ToolCall:
    """
    A model-issued request to run a tool.

    Attributes:
        id: Opaque correlation id chosen by the model API
        name: Tool name
        arguments: Raw argument payload (dict, or the JSON text the API sent)
    """

    id: str
    name: str
    arguments: Union[dict[str, Any], str, None] = None


@dataclass(frozen=True)
class ToolResult:
    """
    The answer to exactly one :class:`ToolCall`.

    Attributes:
        call_id: Id of the tool call this answers
        output: Result text (or the error message)
        is_error: Whether the tool failed
    """

    call_id: str
    output: str
    is_error: bool = False


@dataclass(frozen=True)
class OperatorText:
    """Text typed by the operator (or the scripted initial prompt)."""

    text: str


@dataclass(frozen=True)
class ModelText:
    """Text produced by the model."""

    text: str


@dataclass(frozen=True)
class ModelToolCall:
    """A tool call produced by the model."""

    call: ToolCall


@dataclass(frozen=True)
class ToolResultBatch:
    """All tool results for one model response, delivered together."""

    results: tuple[ToolResult, ...]


Turn = Union[OperatorText, ModelText, ModelToolCall, ToolResultBatch]


@dataclass
class Conversation:
    """
    Ordered, append-only turn history with tool-call bookkeeping.

    Usage:
        convo = Conversation()
        convo.append_operator_text("Organize /scan/Film.mkv")
        convo.append_model_response("Let me look.", [ToolCall("t1", "list_directory", {...})])
        convo.append_tool_results([ToolResult("t1", "Film.mkv (10 bytes)\\n")])
    """

    _turns: list[Turn] = field(default_factory=list)
    _pending: dict[str, ToolCall] = field(default_factory=dict)

    @property
    def turns(self) -> tuple[Turn, ...]:
        """Immutable view of the history."""
        return tuple(self._turns)

    @property
    def pending_calls(self) -> tuple[ToolCall, ...]:
        """Tool calls from the last model response that have no result yet."""
        return tuple(self._pending.values())

    @property
    def has_pending_calls(self) -> bool:
        return bool(self._pending)

    def append_operator_text(self, text: str) -> None:
        """Append operator input."""
        self._require_no_pending("operator text")
        self._turns.append(OperatorText(text))

    def append_model_response(
        self, text: Optional[str], tool_calls: Sequence[ToolCall] = ()
    ) -> None:
        """
        Append one model response: its text (if any) followed by its tool calls.

        Raises:
            ConversationStateError: If earlier tool calls are still unanswered
                or two calls share an id
        """
        self._require_no_pending("a model response")

        ids = [call.id for call in tool_calls]
        if len(set(ids)) != len(ids):
            raise ConversationStateError(f"Duplicate tool call ids in one response: {ids}")
        if any(not call_id for call_id in ids):
            raise ConversationStateError("Tool calls must carry a correlation id")

        if text:
            self._turns.append(ModelText(text))
        for call in tool_calls:
            self._turns.append(ModelToolCall(call))
            self._pending[call.id] = call

    def append_tool_results(self, results: Sequence[ToolResult]) -> None:
        """
        Append the results for every pending tool call as one batch.

        Raises:
            ConversationStateError: If the result ids are not exactly the
                pending call ids
        """
        result_ids = [r.call_id for r in results]
        if len(set(result_ids)) != len(result_ids):
            raise ConversationStateError(f"Duplicate tool result ids: {result_ids}")
        if set(result_ids) != set(self._pending):
            missing = sorted(set(self._pending) - set(result_ids))
            extra = sorted(set(result_ids) - set(self._pending))
            raise ConversationStateError(
                f"Tool results do not match pending calls (missing={missing}, unexpected={extra})"
            )
        if not results:
            raise ConversationStateError("No tool calls are pending")

        self._turns.append(ToolResultBatch(tuple(results)))
        self._pending.clear()

    def require_ready_for_model(self) -> None:
        """Raise unless the model may be invoked on this history."""
        self._require_no_pending("a model call")
        if not self._turns:
            raise ConversationStateError("Conversation is empty")

    def _require_no_pending(self, what: str) -> None:
        if self._pending:
            raise ConversationStateError(
                f"Cannot add {what} while tool calls are unanswered: "
                f"{sorted(self._pending)}"
            )

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))

    def __len__(self) -> int:
        return len(self._turns)
