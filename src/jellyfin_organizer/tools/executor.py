"""
Tool call execution.

Every call produces exactly one ToolResult; handler failures are converted to
failure-flagged results instead of propagating.
"""

import json
import logging
from typing import Any

from jellyfin_organizer.conversation.turns import ToolCall, ToolResult
from jellyfin_organizer.sandbox.exceptions import OrganizerError
from jellyfin_organizer.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolExecutor:
    """
    Resolves tool calls against the registry and runs them.

    Usage:
        executor = ToolExecutor(registry)
        result = await executor.execute("list_directory", {"type": "movies"}, call_id="t1")
        if result.is_error:
            ...
    """

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    async def execute(self, tool_name: str, raw_arguments: Any, *, call_id: str = "") -> ToolResult:
        """
        Run one tool.

        Args:
            tool_name: Exact tool name
            raw_arguments: Argument payload as sent by the model
            call_id: Correlation id copied onto the result

        Returns:
            ToolResult (never raises for tool-level failures)
        """
        definition = self.registry.get(tool_name)
        if definition is None:
            return ToolResult(call_id, f"tool not found: {tool_name}", is_error=True)

        logger.info(f"tool: {tool_name}({_format_arguments(raw_arguments)})")

        try:
            arguments = definition.parse_arguments(raw_arguments)
            output = await definition.handler(arguments)
        except OrganizerError as e:
            logger.debug(f"{tool_name} failed: {e}")
            return ToolResult(call_id, str(e), is_error=True)
        except OSError as e:
            logger.debug(f"{tool_name} I/O error: {e}")
            return ToolResult(call_id, f"I/O error: {e}", is_error=True)
        except Exception as e:
            logger.debug(f"{tool_name} unexpected error", exc_info=True)
            return ToolResult(call_id, f"Unexpected error: {e}", is_error=True)

        return ToolResult(call_id, output, is_error=False)

    async def run(self, call: ToolCall) -> ToolResult:
        """Execute a model-issued tool call."""
        return await self.execute(call.name, call.arguments, call_id=call.id)


def _format_arguments(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    try:
        return json.dumps(raw, ensure_ascii=False)
    except (TypeError, ValueError):
        return repr(raw)
