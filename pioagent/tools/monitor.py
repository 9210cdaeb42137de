"""Serial monitor tools.

The monitor is interactive and cannot run behind an agent, so these tools
validate the parameters and hand back a command line for the user's terminal.
"""

import re
import shlex
from typing import Literal

from pioagent.kernel.errors import InvalidArgumentError, InvalidBaudRateError, InvalidPortError
from pioagent.kernel.validation import (
    validate_baud_rate,
    validate_project_path,
    validate_serial_port,
)
from pioagent.tools.types import MonitorResult

MONITOR_ARGV = ["pio", "device", "monitor"]
FILTER_PATTERN = re.compile(r"^[a-z0-9_\-]{1,40}$")

EndOfLine = Literal["CR", "LF", "CRLF"]


def _validate(port: str | None, baud: int | None) -> None:
    if port is not None and not validate_serial_port(port):
        raise InvalidPortError(f"Invalid serial port: {port}", port=port)
    if baud is not None and not validate_baud_rate(baud):
        raise InvalidBaudRateError(f"Invalid baud rate: {baud}", baud=baud)


def _render(argv: list[str], project_dir: str | None) -> str:
    command = shlex.join(argv)
    if project_dir:
        return f"cd {shlex.quote(validate_project_path(project_dir))} && {command}"
    return command


def get_monitor_command_with_filters(
    port: str | None = None,
    baud: int | None = None,
    project_dir: str | None = None,
    filters: list[str] | None = None,
    echo: bool = False,
    eol: EndOfLine | None = None,
) -> str:
    """Monitor command line with PlatformIO's optional filters, echo and line ending."""
    _validate(port, baud)

    argv = list(MONITOR_ARGV)
    if port is not None:
        argv += ["--port", port]
    if baud is not None:
        argv += ["--baud", str(baud)]
    if echo:
        argv.append("--echo")
    if eol is not None:
        if eol not in ("CR", "LF", "CRLF"):
            raise InvalidArgumentError(f"Invalid end-of-line mode: {eol}", eol=eol)
        argv += ["--eol", eol]
    for name in filters or []:
        if not FILTER_PATTERN.fullmatch(name):
            raise InvalidArgumentError(f"Invalid monitor filter: {name}", filter=name)
        argv += ["--filter", name]
    return _render(argv, project_dir)


def get_monitor_command(
    port: str | None = None, baud: int | None = None, project_dir: str | None = None
) -> str:
    return get_monitor_command_with_filters(port=port, baud=baud, project_dir=project_dir)


async def start_monitor(
    port: str | None = None, baud: int | float | None = None, project_dir: str | None = None
) -> MonitorResult:
    # JSON Schema counts 9600.0 as an integer, so agent calls may carry one
    if isinstance(baud, float) and baud.is_integer():
        baud = int(baud)
    command = get_monitor_command(port, baud, project_dir)
    message = (
        "Serial monitor requires interactive terminal access. "
        "Please run the following command in your terminal:\n\n"
        f"  {command}\n\n"
        "Press Ctrl+C to exit the monitor.\n\n"
        "Note: If port and baud rate are not specified, PlatformIO will auto-detect them "
        "from your platformio.ini configuration."
    )
    return MonitorResult(success=True, message=message, command=command)


def get_raw_monitor_instructions(port: str, baud: int) -> MonitorResult:
    """Instructions for unfiltered (``--raw``) serial output. Port and baud are required."""
    if port is None or baud is None:
        raise InvalidArgumentError("Raw monitor mode needs both port and baud rate")
    _validate(port, baud)

    command = shlex.join([*MONITOR_ARGV, "--port", port, "--baud", str(baud), "--raw"])
    message = (
        "Raw monitor mode provides unfiltered serial output.\n"
        "Run the following command in your terminal:\n\n"
        f"  {command}\n\n"
        "Press Ctrl+C to exit the monitor."
    )
    return MonitorResult(success=True, message=message, command=command)
