"""Project initialization and inspection tools."""

import logging
import os
import re
from collections.abc import Mapping

from pioagent.kernel.errors import (
    InvalidArgumentError,
    InvalidBoardIdError,
    InvalidFrameworkError,
    PlatformIOError,
    ProjectInitError,
)
from pioagent.kernel.executor import PlatformIOExecutor
from pioagent.kernel.validation import (
    check_directory_exists,
    sanitize_input,
    validate_board_id,
    validate_framework,
    validate_project_path,
)
from pioagent.tools.common import (
    DISCOVERY_TIMEOUT,
    INSTALL_TIMEOUT,
    PASSTHROUGH_ERRORS,
    options,
    resolve_executor,
)
from pioagent.tools.types import ProjectInitResult

logger = logging.getLogger(__name__)

PROJECT_FILE = "platformio.ini"
# platformio.ini option names, e.g. "upload_speed" or "board_build.f_cpu"
PROJECT_OPTION_PATTERN = re.compile(r"^[a-z][a-z0-9_.]{0,63}$")


def _project_option_args(
    framework: str | None, platform_options: Mapping[str, str] | None
) -> list[str]:
    args: list[str] = []
    if framework:
        args += ["--project-option", f"framework={framework}"]

    for key, value in (platform_options or {}).items():
        if not isinstance(key, str) or not PROJECT_OPTION_PATTERN.fullmatch(key):
            raise InvalidArgumentError(f"Invalid project option name: {key}", option=key)
        cleaned = sanitize_input(str(value))
        if not cleaned:
            raise InvalidArgumentError(f"Empty value for project option '{key}'", option=key)
        args += ["--project-option", f"{key}={cleaned}"]
    return args


async def init_project(
    board: str,
    project_dir: str,
    framework: str | None = None,
    platform_options: Mapping[str, str] | None = None,
    *,
    executor: PlatformIOExecutor | None = None,
) -> ProjectInitResult:
    """Create (if needed) ``project_dir`` and run ``pio project init`` in it.

    Raises:
        InvalidBoardIdError: If ``board`` is malformed
        InvalidFrameworkError: If ``framework`` is malformed
        PathTraversalError: If ``project_dir`` contains ``..`` segments
        ProjectInitError: If PlatformIO fails to initialize the project
    """
    if not validate_board_id(board):
        raise InvalidBoardIdError(f"Invalid board ID: {board}", board=board)
    if framework and not validate_framework(framework):
        raise InvalidFrameworkError(f"Invalid framework: {framework}", framework=framework)

    project_path = validate_project_path(project_dir)
    args = ["init", "--board", board, *_project_option_args(framework, platform_options)]

    if not check_directory_exists(project_path):
        try:
            os.makedirs(project_path, exist_ok=True)
        except OSError as e:
            raise ProjectInitError(
                f"Cannot create project directory {project_path}: {e.strerror}",
                context={"project_dir": project_path},
            ) from e

    executor = resolve_executor(executor)
    try:
        result = await executor.execute("project", args, options(INSTALL_TIMEOUT, project_path))
    except PASSTHROUGH_ERRORS:
        raise
    except PlatformIOError as e:
        raise ProjectInitError(
            f"Failed to initialize project: {e.message}",
            context={"board": board, "project_dir": project_path, "cause": e.code.value},
        ) from e

    if result.exit_code != 0:
        raise ProjectInitError(
            f"Failed to initialize project: {result.stderr.strip()}",
            context={"board": board, "stderr": result.stderr, "exit_code": result.exit_code},
        )

    logger.info("Initialized project for board '%s' at %s", board, project_path)
    return ProjectInitResult(
        success=True,
        path=project_path,
        message=(
            f"Successfully initialized PlatformIO project for board '{board}' at {project_path}"
        ),
    )


def is_valid_project(project_dir: str) -> bool:
    """True if ``project_dir`` is a safe path holding a ``platformio.ini``."""
    try:
        project_path = validate_project_path(project_dir)
    except PlatformIOError:
        return False
    return os.path.isfile(os.path.join(project_path, PROJECT_FILE))


async def get_project_config(
    project_dir: str, *, executor: PlatformIOExecutor | None = None
) -> dict[str, str]:
    """Raw ``pio project config`` output for the project."""
    project_path = validate_project_path(project_dir)

    executor = resolve_executor(executor)
    try:
        result = await executor.execute(
            "project", ["config"], options(DISCOVERY_TIMEOUT, project_path)
        )
    except PASSTHROUGH_ERRORS:
        raise
    except PlatformIOError as e:
        raise ProjectInitError(
            f"Failed to get project configuration: {e.message}",
            context={"project_dir": project_path, "cause": e.code.value},
        ) from e

    if result.exit_code != 0:
        raise ProjectInitError(
            f"Failed to get project config: {result.stderr.strip()}",
            context={"project_dir": project_path, "stderr": result.stderr},
        )
    return {"raw_config": result.stdout}
