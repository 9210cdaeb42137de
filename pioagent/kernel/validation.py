"""Input validation and sanitization for values that reach a command line.

Every predicate that guards a command-line argument uses an allow-list
charset. Predicates are total: malformed or mistyped input returns ``False``
(or an empty string for the sanitizers). The only exception is
``validate_project_path``, which raises because a bad path cannot be fixed.
"""

import os
import re
from collections.abc import Mapping
from typing import Any

from pioagent.kernel.errors import InvalidProjectPathError, PathTraversalError

BOARD_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]{2,50}$")
SERIAL_PORT_PATTERN = re.compile(r"^/dev/(tty(USB|ACM|S)[0-9]+|cu\.[A-Za-z0-9_.\-]+)$")
WINDOWS_PORT_PATTERN = re.compile(r"^COM[0-9]{1,3}$")
LIBRARY_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.\- @]{1,100}$")
FRAMEWORK_PATTERN = re.compile(r"^[a-z0-9_\-]{1,30}$")
ENVIRONMENT_PATTERN = re.compile(r"^[A-Za-z0-9_\-]{1,50}$")
VERSION_PATTERN = re.compile(r"^(\^|~|>=|<=|>|<|=)?[0-9]+(\.[0-9]+){0,2}([-+][A-Za-z0-9.+\-]*)?$")
MAX_VERSION_LENGTH = 50

CONTROL_CHARACTERS = re.compile(r"[\x00-\x1f\x7f]")
SHELL_METACHARACTERS = re.compile(r"[;&|`$()]")
UNSAFE_TEXT = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

STANDARD_BAUD_RATES = frozenset(
    {
        300,
        1200,
        2400,
        4800,
        9600,
        14400,
        19200,
        28800,
        38400,
        57600,
        115200,
        230400,
        460800,
        921600,
    }
)
MAX_BAUD_RATE = 2_000_000


def _matches(pattern: re.Pattern[str], value: Any) -> bool:
    # fullmatch: "$" alone would accept a trailing newline
    return isinstance(value, str) and pattern.fullmatch(value) is not None


def validate_board_id(board_id: Any) -> bool:
    """Board ids are 2-50 characters of ``[A-Za-z0-9_.-]``."""
    return _matches(BOARD_ID_PATTERN, board_id)


def validate_project_path(project_path: Any) -> str:
    """Resolve ``project_path`` to a normalized absolute path.

    Args:
        project_path: User-supplied path, relative to the current directory
            or absolute

    Returns:
        The absolute, normalized path

    Raises:
        InvalidProjectPathError: If the path is empty, not a string or contains NUL
        PathTraversalError: If any segment of the path is ``..``
    """
    if not isinstance(project_path, str) or not project_path.strip():
        raise InvalidProjectPathError(
            "Project path is required and must be a string", path=project_path
        )

    candidate = project_path.strip()
    if "\0" in candidate:
        raise InvalidProjectPathError("Project path contains a NUL byte", path=candidate)

    # Both separators: a Windows-style "..\\" must not slip through on POSIX
    segments = re.split(r"[\\/]", candidate)
    if ".." in segments:
        raise PathTraversalError(candidate)

    absolute = os.path.normpath(os.path.abspath(candidate))
    if ".." in absolute.split(os.sep):
        raise PathTraversalError(candidate)

    return absolute


def validate_serial_port(port: Any) -> bool:
    """Accept ``/dev/tty{USB,ACM,S}<n>``, ``/dev/cu.<name>`` and ``COM<n>``."""
    return _matches(SERIAL_PORT_PATTERN, port) or _matches(WINDOWS_PORT_PATTERN, port)


def validate_library_name(name: Any) -> bool:
    """Library names admit alphanumerics, spaces and ``_-.@`` (scoped registry names)."""
    return _matches(LIBRARY_NAME_PATTERN, name)


def validate_framework(framework: Any) -> bool:
    return _matches(FRAMEWORK_PATTERN, framework)


def validate_environment_name(environment: Any) -> bool:
    """Environment names as declared in ``[env:<name>]`` sections of platformio.ini."""
    return _matches(ENVIRONMENT_PATTERN, environment)


def validate_version(version: Any) -> bool:
    """Semantic versions (``1.2.3``) and ranges (``^1.0.0``, ``>=2.1``)."""
    if not isinstance(version, str) or len(version) > MAX_VERSION_LENGTH:
        return False
    return _matches(VERSION_PATTERN, version)


def validate_baud_rate(baud: Any) -> bool:
    """Standard rates, or any positive integer up to 2,000,000."""
    if isinstance(baud, bool) or not isinstance(baud, int):
        return False
    return baud in STANDARD_BAUD_RATES or 0 < baud <= MAX_BAUD_RATE


def sanitize_input(text: Any) -> str:
    """Strip control characters and ``; & | ` $ ( )`` from free text."""
    if not isinstance(text, str) or not text:
        return ""
    text = CONTROL_CHARACTERS.sub("", text)
    return SHELL_METACHARACTERS.sub("", text).strip()


def sanitize_mapping(values: Mapping[str, Any]) -> dict[str, Any]:
    """Apply ``sanitize_input`` to every string value, descending into nested mappings."""
    sanitized: dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, str):
            sanitized[key] = sanitize_input(value)
        elif isinstance(value, Mapping):
            sanitized[key] = sanitize_mapping(value)
        else:
            sanitized[key] = value
    return sanitized


def is_text_safe(text: Any) -> bool:
    """True if ``text`` has no NUL or C0 control characters besides tab, LF and CR."""
    return isinstance(text, str) and UNSAFE_TEXT.search(text) is None


def check_directory_exists(path: Any) -> bool:
    try:
        return os.path.isdir(path)
    except (TypeError, ValueError):
        return False


def check_directory_writable(path: Any) -> bool:
    try:
        return os.path.isdir(path) and os.access(path, os.W_OK)
    except (TypeError, ValueError):
        return False
