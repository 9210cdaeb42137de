"""Shared helpers for the PlatformIO tool functions."""

from pioagent.kernel.errors import (
    InputValidationError,
    InvalidArgumentError,
    PathTraversalError,
    ToolNotInstalledError,
)
from pioagent.kernel.executor import ExecutionOptions, PlatformIOExecutor

DEVICE_LIST_TIMEOUT = 10.0
DISCOVERY_TIMEOUT = 30.0
UNINSTALL_TIMEOUT = 60.0
INSTALL_TIMEOUT = 120.0
UPDATE_TIMEOUT = 180.0
BUILD_TIMEOUT = 300.0
UPLOAD_TIMEOUT = 300.0
MAX_CALLER_TIMEOUT = 1800.0

# Errors a tool function re-raises untouched instead of wrapping in its domain error
PASSTHROUGH_ERRORS = (ToolNotInstalledError, InputValidationError, PathTraversalError)


def resolve_executor(executor: PlatformIOExecutor | None) -> PlatformIOExecutor:
    return executor or PlatformIOExecutor()


def options(timeout: float, working_directory: str | None = None) -> ExecutionOptions:
    return ExecutionOptions(working_directory=working_directory, timeout_seconds=timeout)


def caller_timeout(requested: float | None, default: float) -> float:
    """Use the caller's timeout when given, capped at ``MAX_CALLER_TIMEOUT``."""
    if requested is None:
        return default
    if requested <= 0:
        raise InvalidArgumentError("Timeout must be positive", timeout_seconds=requested)
    return min(float(requested), MAX_CALLER_TIMEOUT)
