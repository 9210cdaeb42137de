"""Human-readable rendering of errors for the agent."""

import json

from pioagent.kernel.errors import (
    BoardNotFoundError,
    BuildError,
    CommandTimeoutError,
    InputValidationError,
    LibraryError,
    PathTraversalError,
    PlatformIOError,
    ProjectInitError,
    ToolNotInstalledError,
    UploadError,
)

ERROR_MARKERS = ("error:", "Error:", "ERROR:", "fatal:", "Failed")

TROUBLESHOOTING: list[tuple[type[PlatformIOError], list[str]]] = [
    (
        ToolNotInstalledError,
        [
            "Install PlatformIO Core CLI: https://docs.platformio.org/en/latest/core/installation.html",
            "Ensure 'pio' or 'platformio' is in your system PATH",
            "Try running: pip install platformio",
        ],
    ),
    (
        BoardNotFoundError,
        [
            "Check board ID spelling (case-sensitive)",
            "List available boards with: pio boards",
            "Search for your board at: https://docs.platformio.org/en/latest/boards/",
        ],
    ),
    (
        ProjectInitError,
        [
            "Ensure the target directory exists and is writable",
            "Verify the board ID is correct",
            "Check that the framework is supported for this board",
        ],
    ),
    (
        BuildError,
        [
            "Check your source code for syntax errors",
            "Ensure all required libraries are installed",
            "Verify platformio.ini configuration is correct",
            "Try cleaning the project: pio run -t clean",
        ],
    ),
    (
        UploadError,
        [
            "Ensure the device is connected and powered",
            "Check USB cable and drivers",
            "Verify the correct port is specified",
            "Try resetting the device",
            "Check that no other programs are using the serial port",
        ],
    ),
    (
        LibraryError,
        [
            "Check library name spelling",
            "Verify internet connection",
            "Try updating library registry: pio lib update",
        ],
    ),
    (
        CommandTimeoutError,
        [
            "Retry with a longer timeout",
            "Check that the device or network the command depends on is reachable",
        ],
    ),
    (
        PathTraversalError,
        ["Pass a project path without '..' segments"],
    ),
]


def format_error(error: BaseException) -> str:
    """Render ``error`` with troubleshooting steps where a known remedy exists."""
    if isinstance(error, PlatformIOError):
        for error_type, steps in TROUBLESHOOTING:
            if isinstance(error, error_type):
                numbered = "\n".join(f"{i}. {step}" for i, step in enumerate(steps, start=1))
                return f"{error.message}\n\nTroubleshooting:\n{numbered}"

        message = error.message
        if error.context and not isinstance(error, InputValidationError):
            message += "\n\nContext: " + json.dumps(error.context, indent=2, default=str)
        return message

    return str(error)


def parse_stderr_errors(output: str) -> list[str]:
    """Pick the lines of compiler / uploader output that report an error."""
    errors = []
    for line in output.splitlines():
        stripped = line.strip()
        if stripped and any(marker in stripped for marker in ERROR_MARKERS):
            errors.append(stripped)
    return errors
