"""ToolContract: agent-facing tool definition with argument schema and handler."""

from collections.abc import Awaitable, Callable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ToolHandler = Callable[..., Awaitable[Any]]


class ToolContract(BaseModel):
    """One tool exposed to the agent.

    Arguments are checked against ``input_schema`` before ``handler`` runs;
    the handler receives them as keyword arguments.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(pattern=r"^[a-z][a-z0-9_]*$")
    description: str
    input_schema: dict[str, Any]  # JSON Schema
    side_effect_level: Literal["READ", "LOCAL_WRITE", "DEVICE_WRITE"]
    timeout_seconds: int = Field(gt=0)
    handler: ToolHandler = Field(exclude=True)

    def describe(self) -> dict[str, Any]:
        """Everything announced to the agent: all fields except the handler.

        ``side_effect_level`` lets a host ask for confirmation before
        ``LOCAL_WRITE`` or ``DEVICE_WRITE`` tools, and ``timeout_seconds`` is the
        longest the tool waits on PlatformIO by default.
        """
        return self.model_dump(mode="json")
