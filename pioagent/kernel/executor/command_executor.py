"""PlatformIOExecutor: invoke the PlatformIO CLI and shape its output.

Processes are always spawned from an argument vector, never through a
shell. The executor distinguishes a missing tool, a timeout and an oversized
output from an ordinary non-zero exit, and decodes ``--json-output``
responses into validated data.
"""

import asyncio
import json
import logging
import re
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from pioagent.config import Settings
from pioagent.kernel.errors import (
    CommandFailedError,
    CommandTimeoutError,
    EmptyOutputError,
    ErrorCode,
    InvalidJsonError,
    OutputLimitExceededError,
    PlatformIOError,
    SchemaValidationFailedError,
    ToolNotInstalledError,
)
from pioagent.kernel.executor.schema_validator import SchemaValidator

logger = logging.getLogger(__name__)

T = TypeVar("T")

VERSION_TIMEOUT_SECONDS = 5.0
READ_CHUNK_SIZE = 64 * 1024
VERSION_PATTERN = re.compile(r"version\s+([\d.]+)", re.IGNORECASE)


class CommandResult(BaseModel):
    """Outcome of one invocation. ``exit_code`` 0 means PlatformIO reported success."""

    model_config = ConfigDict(frozen=True)

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0


class ExecutionOptions(BaseModel):
    """Per-call spawn parameters."""

    model_config = ConfigDict(frozen=True)

    working_directory: Path | None = None
    timeout_seconds: float | None = Field(default=None, gt=0)


@dataclass(frozen=True)
class _Spawned:
    process: asyncio.subprocess.Process
    binary: str


@dataclass(frozen=True)
class _NotFound:
    binary: str


def _pydantic_mismatches(error: PydanticValidationError) -> list[dict[str, str]]:
    return [
        {"path": ".".join(str(p) for p in detail["loc"]), "message": detail["msg"]}
        for detail in error.errors()
    ]


class PlatformIOExecutor:
    """Runs PlatformIO commands.

    Holds no per-call state, so one instance can serve concurrent callers.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        schema_validator: SchemaValidator | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self._schema_validator = schema_validator or SchemaValidator()

    async def execute(
        self,
        command: str,
        args: list[str] | tuple[str, ...] = (),
        options: ExecutionOptions | None = None,
    ) -> CommandResult:
        """Run ``<binary> <command> <args...>`` and capture its output.

        Args:
            command: PlatformIO verb, e.g. ``boards`` or ``run``
            args: Remaining arguments, each passed as its own argv entry
            options: Working directory and timeout; defaults from settings

        Returns:
            CommandResult for both zero and non-zero exits

        Raises:
            ToolNotInstalledError: If no candidate binary can be spawned
            CommandTimeoutError: If the process outlives its timeout
            OutputLimitExceededError: If a stream exceeds ``max_output_bytes``
        """
        options = options or ExecutionOptions()
        timeout = options.timeout_seconds or self.settings.default_timeout_seconds
        argv = [command, *args]
        command_line = shlex.join(argv)

        spawned = await self._spawn_first_available(argv, options.working_directory)
        process = spawned.process
        logger.debug(
            "Running %s %s (cwd=%s, timeout=%ss)",
            spawned.binary,
            command_line,
            options.working_directory,
            timeout,
        )

        try:
            stdout, stderr = await asyncio.wait_for(
                self._communicate(process, command_line), timeout=timeout
            )
        except asyncio.TimeoutError:
            await self._kill(process)
            logger.error("Command '%s' timed out after %ss", command_line, timeout)
            raise CommandTimeoutError(command_line, timeout) from None
        except OutputLimitExceededError:
            await self._kill(process)
            logger.error(
                "Command '%s' exceeded the %d byte output limit",
                command_line,
                self.settings.max_output_bytes,
            )
            raise
        except asyncio.CancelledError:
            # The caller gave up; the child must not outlive it
            await self._kill(process)
            logger.debug("Command '%s' cancelled, process killed", command_line)
            raise

        exit_code = process.returncode if process.returncode is not None else -1
        result = CommandResult(
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
            exit_code=exit_code,
        )
        if exit_code != 0:
            logger.warning("Command '%s' exited with code %d", command_line, exit_code)
            if result.stderr.strip():
                logger.warning("stderr:\n---\n%s\n---", result.stderr.strip())
        return result

    async def execute_with_json_output(
        self,
        command: str,
        args: list[str] | tuple[str, ...],
        schema: Any,
        options: ExecutionOptions | None = None,
    ) -> Any:
        """Run a command with ``--json-output`` and return the validated document.

        Args:
            command: PlatformIO verb
            args: Remaining arguments; the structured-output flag is appended once
            schema: A JSON Schema ``dict``, or a type accepted by ``pydantic.TypeAdapter``
            options: Working directory and timeout

        Returns:
            The decoded document for a dict schema, otherwise the typed value

        Raises:
            CommandFailedError: If the command exits non-zero
            EmptyOutputError: If stdout is blank
            InvalidJsonError: If stdout is not JSON
            SchemaValidationFailedError: If the document does not match ``schema``
        """
        flag = self.settings.json_output_flag
        full_args = list(args)
        if flag not in full_args:
            full_args.append(flag)

        result = await self.execute(command, full_args, options)
        command_line = shlex.join([command, *full_args])

        if result.exit_code != 0:
            raise CommandFailedError(command_line, result.exit_code, result.stderr)

        return self.parse_json_output(result.stdout, schema, command_line)

    def parse_json_output(self, output: str, schema: Any, command_line: str = "") -> Any:
        """Decode and validate structured output."""
        if not output or not output.strip():
            raise EmptyOutputError(command_line)

        try:
            document = json.loads(output)
        except json.JSONDecodeError as e:
            raise InvalidJsonError(
                f"Invalid JSON output from PlatformIO: {e.msg} (line {e.lineno}, column {e.colno})",
                output=output,
            ) from e

        if isinstance(schema, dict):
            self._schema_validator.validate(document, schema, output=output)
            return document

        try:
            return TypeAdapter(schema).validate_python(document)
        except PydanticValidationError as e:
            mismatches = _pydantic_mismatches(e)
            raise SchemaValidationFailedError(
                f"Failed to parse PlatformIO output: {e.error_count()} field(s) did not match",
                errors=mismatches,
                output=output,
            ) from e

    async def check_installation(self) -> bool:
        """True if a PlatformIO binary is on PATH and identifies itself."""
        try:
            result = await self.execute(
                "--version", options=ExecutionOptions(timeout_seconds=VERSION_TIMEOUT_SECONDS)
            )
        except ToolNotInstalledError:
            return False
        return result.exit_code == 0 and "PlatformIO" in result.stdout

    async def get_version(self) -> str:
        """Return the installed PlatformIO version, e.g. ``6.1.15``.

        Raises:
            ToolNotInstalledError: If PlatformIO is not on PATH
            PlatformIOError: If the version could not be determined
        """
        try:
            result = await self.execute(
                "--version", options=ExecutionOptions(timeout_seconds=VERSION_TIMEOUT_SECONDS)
            )
        except ToolNotInstalledError:
            raise
        except PlatformIOError as e:
            raise PlatformIOError(
                "Failed to get PlatformIO version", ErrorCode.VERSION_UNAVAILABLE, e.context
            ) from e

        if result.exit_code != 0:
            raise PlatformIOError(
                "Failed to get PlatformIO version",
                ErrorCode.VERSION_UNAVAILABLE,
                {"exit_code": result.exit_code, "stderr": result.stderr[:500]},
            )

        # Output format: "PlatformIO Core, version X.Y.Z"
        match = VERSION_PATTERN.search(result.stdout)
        return match.group(1) if match else result.stdout.strip()

    async def _spawn_first_available(
        self, argv: list[str], working_directory: Path | None
    ) -> _Spawned:
        for binary in self.settings.binary_names:
            attempt = await self._spawn(binary, argv, working_directory)
            if isinstance(attempt, _Spawned):
                return attempt
            logger.debug("Binary '%s' not found, trying next alias", attempt.binary)

        logger.error("PlatformIO not found (tried %s)", ", ".join(self.settings.binary_names))
        raise ToolNotInstalledError(self.settings.binary_names)

    async def _spawn(
        self, binary: str, argv: list[str], working_directory: Path | None
    ) -> _Spawned | _NotFound:
        try:
            process = await asyncio.create_subprocess_exec(
                binary,
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=working_directory,
            )
        except FileNotFoundError as e:
            # A missing working directory also surfaces as FileNotFoundError
            if e.filename is not None and str(e.filename) != binary:
                raise
            return _NotFound(binary)
        return _Spawned(process, binary)

    async def _communicate(
        self, process: asyncio.subprocess.Process, command_line: str
    ) -> tuple[bytes, bytes]:
        assert process.stdout is not None and process.stderr is not None
        readers = [
            asyncio.ensure_future(self._read_capped(stream, command_line))
            for stream in (process.stdout, process.stderr)
        ]
        try:
            stdout, stderr = await asyncio.gather(*readers)
        except BaseException:
            for reader in readers:
                reader.cancel()
            raise
        await process.wait()
        return stdout, stderr

    async def _read_capped(self, stream: asyncio.StreamReader, command_line: str) -> bytes:
        limit = self.settings.max_output_bytes
        chunks: list[bytes] = []
        total = 0
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                return b"".join(chunks)
            total += len(chunk)
            if total > limit:
                raise OutputLimitExceededError(command_line, limit)
            chunks.append(chunk)

    async def _kill(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        await process.wait()
