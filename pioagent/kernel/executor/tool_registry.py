"""ToolRegistry: central registry for agent-facing tool contracts."""

import logging
from typing import Any

from pydantic import BaseModel

from pioagent.kernel.errors import InvalidArgumentError, SchemaValidationFailedError
from pioagent.kernel.executor.schema_validator import SchemaValidator
from pioagent.kernel.executor.tool_contract import ToolContract

logger = logging.getLogger(__name__)


class ToolNotFoundError(Exception):
    """Raised when a requested tool is not found in the registry.

    Attributes:
        tool_name: Name of the tool that was not found
    """

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Tool '{tool_name}' not found in registry")
        self.tool_name = tool_name


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: _to_jsonable(item) for key, item in value.items()}
    return value


class ToolRegistry:
    """Central registry for tool contracts.

    Provides:
    - Registration of tools by name
    - Lookup by name
    - Invocation with argument validation before the handler runs
    """

    def __init__(self, schema_validator: SchemaValidator | None = None) -> None:
        self._tools: dict[str, ToolContract] = {}
        self._schema_validator = schema_validator or SchemaValidator()

    def register(self, tool: ToolContract) -> None:
        """Register a tool in the registry.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' already registered")

        self._tools[tool.name] = tool

    def lookup(self, name: str) -> ToolContract:
        """Look up a tool by name.

        Raises:
            ToolNotFoundError: If tool not found in registry
        """
        if name not in self._tools:
            raise ToolNotFoundError(name)

        return self._tools[name]

    def list_tools(self) -> dict[str, ToolContract]:
        return self._tools.copy()

    def describe_tools(self) -> list[dict[str, Any]]:
        """Tool catalogue for the agent, in registration order."""
        return [tool.describe() for tool in self._tools.values()]

    async def invoke(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        """Validate ``arguments`` against the tool's schema, then run its handler.

        Returns:
            The handler result converted to JSON-compatible data

        Raises:
            ToolNotFoundError: If the tool is unknown
            InvalidArgumentError: If the arguments do not match ``input_schema``
        """
        tool = self.lookup(name)
        arguments = arguments or {}

        try:
            self._schema_validator.validate(arguments, tool.input_schema)
        except SchemaValidationFailedError as e:
            raise InvalidArgumentError(
                f"Invalid arguments for tool '{name}': {e.message}",
                tool=name,
                errors=e.errors,
            ) from e

        logger.info("Invoking tool '%s'", name)
        result = await tool.handler(**arguments)
        return _to_jsonable(result)
