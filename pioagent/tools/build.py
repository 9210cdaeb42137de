"""Build, clean and upload tools (``pio run``)."""

import logging

from pioagent.kernel.errors import (
    BuildError,
    InvalidEnvironmentError,
    InvalidPortError,
    PlatformIOError,
    UploadError,
)
from pioagent.kernel.executor import CommandResult, PlatformIOExecutor
from pioagent.kernel.validation import (
    validate_environment_name,
    validate_project_path,
    validate_serial_port,
)
from pioagent.tools.common import (
    BUILD_TIMEOUT,
    PASSTHROUGH_ERRORS,
    UPLOAD_TIMEOUT,
    caller_timeout,
    options,
    resolve_executor,
)
from pioagent.tools.formatting import parse_stderr_errors
from pioagent.tools.types import BuildResult, OperationResult, UploadResult

logger = logging.getLogger(__name__)

# Build logs can be long; keep the tail, where the verdict is
OUTPUT_TAIL = 4000


def _environment_args(environment: str | None) -> list[str]:
    if environment is None:
        return []
    if not validate_environment_name(environment):
        raise InvalidEnvironmentError(
            f"Invalid environment name: {environment}", environment=environment
        )
    return ["-e", environment]


def _combined_output(result: CommandResult) -> str:
    # PlatformIO writes compiler diagnostics to stdout and its own failures to stderr
    return "\n".join(part for part in (result.stdout, result.stderr) if part)


async def _run(
    executor: PlatformIOExecutor,
    args: list[str],
    project_path: str,
    timeout: float,
    error_type: type[PlatformIOError],
    action: str,
) -> CommandResult:
    try:
        return await executor.execute("run", args, options(timeout, project_path))
    except PASSTHROUGH_ERRORS:
        raise
    except PlatformIOError as e:
        raise error_type(
            f"Failed to {action}: {e.message}",
            context={"project_dir": project_path, "cause": e.code.value, **e.context},
        ) from e


async def build_project(
    project_dir: str,
    environment: str | None = None,
    verbose: bool = False,
    timeout_seconds: float | None = None,
    *,
    executor: PlatformIOExecutor | None = None,
) -> BuildResult:
    """Compile the project, optionally for a single environment.

    Raises:
        BuildError: If compilation fails; ``context["errors"]`` holds the error lines
    """
    project_path = validate_project_path(project_dir)
    args = _environment_args(environment)
    if verbose:
        args.append("-v")
    timeout = caller_timeout(timeout_seconds, BUILD_TIMEOUT)

    result = await _run(
        resolve_executor(executor), args, project_path, timeout, BuildError, "build project"
    )
    output = _combined_output(result)

    if result.exit_code != 0:
        errors = parse_stderr_errors(output)
        raise BuildError(
            f"Build failed for {project_path}" + (f": {errors[0]}" if errors else ""),
            context={
                "project_dir": project_path,
                "environment": environment,
                "exit_code": result.exit_code,
                "errors": errors,
                "output": output[-OUTPUT_TAIL:],
            },
        )

    logger.info("Built %s (environment=%s)", project_path, environment or "all")
    return BuildResult(
        success=True,
        message=f"Successfully built project at {project_path}",
        project_dir=project_path,
        environment=environment,
        output=output[-OUTPUT_TAIL:],
    )


async def clean_project(
    project_dir: str,
    environment: str | None = None,
    *,
    executor: PlatformIOExecutor | None = None,
) -> OperationResult:
    """Remove build artifacts (``pio run -t clean``)."""
    project_path = validate_project_path(project_dir)
    args = [*_environment_args(environment), "-t", "clean"]

    result = await _run(
        resolve_executor(executor), args, project_path, BUILD_TIMEOUT, BuildError, "clean project"
    )
    if result.exit_code != 0:
        raise BuildError(
            f"Failed to clean project: {result.stderr.strip()}",
            context={"project_dir": project_path, "exit_code": result.exit_code},
        )
    return OperationResult(success=True, message=f"Cleaned build artifacts in {project_path}")


async def upload_firmware(
    project_dir: str,
    port: str | None = None,
    environment: str | None = None,
    timeout_seconds: float | None = None,
    *,
    executor: PlatformIOExecutor | None = None,
) -> UploadResult:
    """Build if needed and flash the firmware (``pio run -t upload``).

    Without ``port`` PlatformIO auto-detects the device or uses ``upload_port``
    from platformio.ini.

    Raises:
        InvalidPortError: If ``port`` is not a serial device path
        UploadError: If the upload fails
    """
    project_path = validate_project_path(project_dir)
    if port is not None and not validate_serial_port(port):
        raise InvalidPortError(f"Invalid serial port: {port}", port=port)

    args = [*_environment_args(environment), "-t", "upload"]
    if port is not None:
        args += ["--upload-port", port]
    timeout = caller_timeout(timeout_seconds, UPLOAD_TIMEOUT)

    result = await _run(
        resolve_executor(executor), args, project_path, timeout, UploadError, "upload firmware"
    )
    output = _combined_output(result)

    if result.exit_code != 0:
        errors = parse_stderr_errors(output)
        raise UploadError(
            f"Upload failed for {project_path}" + (f": {errors[0]}" if errors else ""),
            context={
                "project_dir": project_path,
                "port": port,
                "exit_code": result.exit_code,
                "errors": errors,
                "output": output[-OUTPUT_TAIL:],
            },
        )

    logger.info("Uploaded firmware from %s to %s", project_path, port or "auto-detected port")
    return UploadResult(
        success=True,
        message=f"Successfully uploaded firmware from {project_path}",
        project_dir=project_path,
        port=port,
        environment=environment,
        output=output[-OUTPUT_TAIL:],
    )
