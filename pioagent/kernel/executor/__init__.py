"""Executor module: PlatformIO invocation, output validation and tool contracts."""

from pioagent.kernel.executor.command_executor import (
    CommandResult,
    ExecutionOptions,
    PlatformIOExecutor,
)
from pioagent.kernel.executor.schema_validator import SchemaValidator
from pioagent.kernel.executor.tool_contract import ToolContract
from pioagent.kernel.executor.tool_registry import ToolNotFoundError, ToolRegistry

__all__ = [
    "CommandResult",
    "ExecutionOptions",
    "PlatformIOExecutor",
    "SchemaValidator",
    "ToolContract",
    "ToolRegistry",
    "ToolNotFoundError",
]
