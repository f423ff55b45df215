"""
Tool definitions and the fixed tool registry.

The registry is assembled once at startup. It is the only place the model's
capability set is declared: adding a tool means adding a ToolDefinition.
"""

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Iterator

from pydantic import BaseModel, ValidationError

from jellyfin_organizer.sandbox.exceptions import MalformedInputError

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Any], Awaitable[str]]

TOOL_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")


class ToolRegistryError(Exception):
    """Raised at startup when tool definitions are inconsistent."""

    pass


@dataclass(frozen=True)
class ToolDefinition:
    """
    One model-invocable capability.

    Attributes:
        name: Unique tool name
        description: What the tool does, written for the model
        input_model: Pydantic model describing the accepted arguments
        handler: Coroutine taking a validated ``input_model`` instance and
            returning the result text
    """

    name: str
    description: str
    input_model: type[BaseModel]
    handler: ToolHandler

    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the accepted arguments."""
        schema = self.input_model.model_json_schema()
        schema.pop("title", None)
        return schema

    def schema(self) -> dict[str, Any]:
        """Provider-neutral declaration: name, description and input schema."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema(),
        }

    def parse_arguments(self, raw: Any) -> BaseModel:
        """
        Validate a raw argument payload.

        Args:
            raw: A dict, a JSON object string, or None (treated as {})

        Raises:
            MalformedInputError: If the payload does not match the input model
        """
        if raw is None or raw == "":
            raw = {}
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as e:
                raise MalformedInputError(f"arguments are not valid JSON ({e})", tool=self.name)
        if not isinstance(raw, dict):
            raise MalformedInputError(
                f"arguments must be a JSON object, got {type(raw).__name__}", tool=self.name
            )

        try:
            return self.input_model.model_validate(raw)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in e.errors()
            )
            raise MalformedInputError(problems, tool=self.name)


class ToolRegistry(Mapping):
    """
    Read-only mapping from tool name to :class:`ToolDefinition`.

    Usage:
        registry = ToolRegistry([read_def, list_def])
        registry["read_file"].description
        schemas = registry.schemas()
    """

    def __init__(self, definitions: Iterable[ToolDefinition]):
        """
        Build and validate the registry.

        Raises:
            ToolRegistryError: On duplicate or invalid names, empty
                descriptions, non-pydantic input models, inconsistent schemas,
                or non-callable handlers
        """
        tools: dict[str, ToolDefinition] = {}
        for definition in definitions:
            self._validate(definition)
            if definition.name in tools:
                raise ToolRegistryError(f"Duplicate tool name: {definition.name}")
            tools[definition.name] = definition

        self._tools = tools
        logger.debug(f"Registered tools: {', '.join(tools)}")

    @staticmethod
    def _validate(definition: ToolDefinition) -> None:
        name = definition.name
        if not isinstance(name, str) or not TOOL_NAME_PATTERN.match(name):
            raise ToolRegistryError(f"Invalid tool name: {name!r}")
        if not definition.description or not definition.description.strip():
            raise ToolRegistryError(f"Tool {name} has no description")
        if not (
            isinstance(definition.input_model, type)
            and issubclass(definition.input_model, BaseModel)
        ):
            raise ToolRegistryError(f"Tool {name} input model must be a pydantic model")
        if not callable(definition.handler):
            raise ToolRegistryError(f"Tool {name} handler is not callable")

        schema = definition.input_schema()
        if schema.get("type") != "object":
            raise ToolRegistryError(f"Tool {name} input schema is not an object schema")
        properties = schema.get("properties", {})
        missing = [field for field in schema.get("required", []) if field not in properties]
        if missing:
            raise ToolRegistryError(
                f"Tool {name} requires undeclared fields: {', '.join(missing)}"
            )

    def __getitem__(self, name: str) -> ToolDefinition:
        return self._tools[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def schemas(self) -> list[dict[str, Any]]:
        """Declarations of every tool, in registration order."""
        return [definition.schema() for definition in self._tools.values()]

    def __repr__(self) -> str:
        return f"ToolRegistry({list(self._tools)})"
