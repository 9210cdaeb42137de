"""Error taxonomy for PlatformIO invocations and input validation.

Every error carries a stable ``code`` and a ``context`` mapping so a
presentation layer can derive remediation text without parsing messages.
"""

from enum import Enum
from typing import Any

OUTPUT_SAMPLE_LIMIT = 500


class ErrorCode(str, Enum):
    """Stable error codes."""

    PLATFORMIO_ERROR = "PLATFORMIO_ERROR"
    PLATFORMIO_NOT_INSTALLED = "PLATFORMIO_NOT_INSTALLED"
    VERSION_UNAVAILABLE = "VERSION_UNAVAILABLE"
    COMMAND_TIMEOUT = "COMMAND_TIMEOUT"
    COMMAND_FAILED = "COMMAND_FAILED"
    OUTPUT_LIMIT_EXCEEDED = "OUTPUT_LIMIT_EXCEEDED"
    EMPTY_OUTPUT = "EMPTY_OUTPUT"
    INVALID_JSON = "INVALID_JSON"
    SCHEMA_VALIDATION_FAILED = "SCHEMA_VALIDATION_FAILED"
    SCHEMA_MALFORMED = "SCHEMA_MALFORMED"

    INVALID_BOARD_ID = "INVALID_BOARD_ID"
    INVALID_PROJECT_PATH = "INVALID_PROJECT_PATH"
    PATH_TRAVERSAL = "PATH_TRAVERSAL"
    INVALID_PORT = "INVALID_PORT"
    INVALID_LIBRARY_NAME = "INVALID_LIBRARY_NAME"
    INVALID_FRAMEWORK = "INVALID_FRAMEWORK"
    INVALID_ENVIRONMENT = "INVALID_ENVIRONMENT"
    INVALID_VERSION = "INVALID_VERSION"
    INVALID_BAUD_RATE = "INVALID_BAUD_RATE"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"

    BOARD_NOT_FOUND = "BOARD_NOT_FOUND"
    BOARD_ERROR = "BOARD_ERROR"
    DEVICE_ERROR = "DEVICE_ERROR"
    PROJECT_INIT_FAILED = "PROJECT_INIT_FAILED"
    BUILD_FAILED = "BUILD_FAILED"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    LIBRARY_ERROR = "LIBRARY_ERROR"


def truncate_output(output: str, limit: int = OUTPUT_SAMPLE_LIMIT) -> str:
    """Return at most ``limit`` characters of ``output`` for diagnostics."""
    return output[:limit]


class PlatformIOError(Exception):
    """Base error for everything raised by this package.

    Attributes:
        code: Standardized error code
        message: Human-readable error description
        context: Structured details (command, exit code, offending input...)
    """

    default_code = ErrorCode.PLATFORMIO_ERROR

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.context = dict(context or {})

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": type(self).__name__,
            "message": self.message,
            "code": self.code.value,
            "context": self.context,
        }


# --- Execution errors ---


class ToolNotInstalledError(PlatformIOError):
    """Neither the primary binary nor its alias could be found on PATH."""

    default_code = ErrorCode.PLATFORMIO_NOT_INSTALLED

    def __init__(
        self,
        binaries: tuple[str, ...] = ("pio", "platformio"),
        message: str = "PlatformIO CLI is not installed or not found in PATH",
    ) -> None:
        super().__init__(message, context={"binaries": list(binaries)})
        self.binaries = binaries


class CommandTimeoutError(PlatformIOError):
    default_code = ErrorCode.COMMAND_TIMEOUT

    def __init__(self, command: str, timeout_seconds: float) -> None:
        super().__init__(
            f"Command '{command}' timed out after {timeout_seconds}s",
            context={"command": command, "timeout_seconds": timeout_seconds},
        )
        self.command = command
        self.timeout_seconds = timeout_seconds


class CommandFailedError(PlatformIOError):
    default_code = ErrorCode.COMMAND_FAILED

    def __init__(self, command: str, exit_code: int, stderr: str) -> None:
        super().__init__(
            f"PlatformIO command failed: {command}",
            context={
                "command": command,
                "exit_code": exit_code,
                "stderr": truncate_output(stderr),
            },
        )
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr


class OutputLimitExceededError(PlatformIOError):
    default_code = ErrorCode.OUTPUT_LIMIT_EXCEEDED

    def __init__(self, command: str, limit_bytes: int) -> None:
        super().__init__(
            f"Command '{command}' produced more than {limit_bytes} bytes of output",
            context={"command": command, "limit_bytes": limit_bytes},
        )
        self.command = command
        self.limit_bytes = limit_bytes


class OutputParseError(PlatformIOError):
    """Output of a structured-output command could not be turned into data."""

    def __init__(
        self,
        message: str,
        output: str = "",
        context: dict[str, Any] | None = None,
    ) -> None:
        sample = truncate_output(output)
        super().__init__(message, context={**(context or {}), "output": sample})
        self.output_sample = sample


class EmptyOutputError(OutputParseError):
    default_code = ErrorCode.EMPTY_OUTPUT

    def __init__(self, command: str) -> None:
        super().__init__(
            f"Empty output from PlatformIO command: {command}",
            context={"command": command},
        )


class InvalidJsonError(OutputParseError):
    default_code = ErrorCode.INVALID_JSON


class SchemaValidationFailedError(OutputParseError):
    """Decoded output does not match the expected shape.

    Attributes:
        errors: One ``{"path": ..., "message": ...}`` entry per mismatched field
    """

    default_code = ErrorCode.SCHEMA_VALIDATION_FAILED

    def __init__(self, message: str, errors: list[dict[str, str]], output: str = "") -> None:
        super().__init__(message, output=output, context={"errors": errors})
        self.errors = errors


class SchemaDefinitionError(PlatformIOError):
    """The JSON Schema itself is malformed."""

    default_code = ErrorCode.SCHEMA_MALFORMED


# --- Input validation errors ---


class InputValidationError(PlatformIOError):
    """A caller-supplied value was rejected before any process was started."""

    default_code = ErrorCode.INVALID_ARGUMENT

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, context=context)


class InvalidArgumentError(InputValidationError):
    pass


class InvalidBoardIdError(InputValidationError):
    default_code = ErrorCode.INVALID_BOARD_ID


class InvalidProjectPathError(InputValidationError):
    default_code = ErrorCode.INVALID_PROJECT_PATH


class InvalidPortError(InputValidationError):
    default_code = ErrorCode.INVALID_PORT


class InvalidLibraryNameError(InputValidationError):
    default_code = ErrorCode.INVALID_LIBRARY_NAME


class InvalidFrameworkError(InputValidationError):
    default_code = ErrorCode.INVALID_FRAMEWORK


class InvalidEnvironmentError(InputValidationError):
    default_code = ErrorCode.INVALID_ENVIRONMENT


class InvalidVersionError(InputValidationError):
    default_code = ErrorCode.INVALID_VERSION


class InvalidBaudRateError(InputValidationError):
    default_code = ErrorCode.INVALID_BAUD_RATE


class PathTraversalError(PlatformIOError):
    default_code = ErrorCode.PATH_TRAVERSAL

    def __init__(self, path: str) -> None:
        super().__init__(
            "Invalid project path: path traversal detected",
            context={"path": path},
        )
        self.path = path


# --- Domain errors raised by the tool layer ---


class BoardNotFoundError(PlatformIOError):
    default_code = ErrorCode.BOARD_NOT_FOUND

    def __init__(self, board_id: str) -> None:
        super().__init__(
            f"Board '{board_id}' not found in PlatformIO registry",
            context={"board_id": board_id},
        )
        self.board_id = board_id


class BoardError(PlatformIOError):
    default_code = ErrorCode.BOARD_ERROR


class DeviceError(PlatformIOError):
    default_code = ErrorCode.DEVICE_ERROR


class ProjectInitError(PlatformIOError):
    default_code = ErrorCode.PROJECT_INIT_FAILED


class BuildError(PlatformIOError):
    default_code = ErrorCode.BUILD_FAILED


class UploadError(PlatformIOError):
    default_code = ErrorCode.UPLOAD_FAILED


class LibraryError(PlatformIOError):
    default_code = ErrorCode.LIBRARY_ERROR
