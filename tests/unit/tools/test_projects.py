"""Project init and inspection tool tests."""

import os
from pathlib import Path

import pytest

from pioagent.kernel.errors import (
    CommandTimeoutError,
    InvalidArgumentError,
    InvalidBoardIdError,
    InvalidFrameworkError,
    PathTraversalError,
    ProjectInitError,
)
from pioagent.tools.projects import get_project_config, init_project, is_valid_project
from tests.fakes.executor import ScriptedExecutor, failed, ok


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.asyncio
class TestInitProject:
    async def test_creates_directory_and_runs_init(self, tmp_path: Path) -> None:
        project_dir = tmp_path / "blink"
        executor = ScriptedExecutor(ok("Project has been successfully initialized!"))

        result = await init_project("uno", str(project_dir), "arduino", executor=executor)

        assert project_dir.is_dir()
        assert result.success
        assert result.path == str(project_dir)
        call = executor.calls[0]
        assert call.command == "project"
        assert call.args == [
            "init",
            "--board",
            "uno",
            "--project-option",
            "framework=arduino",
        ]
        assert call.cwd == str(project_dir)
        assert call.timeout == 120.0

    async def test_platform_options_are_passed_as_project_options(self, tmp_path: Path) -> None:
        executor = ScriptedExecutor(ok())

        await init_project(
            "esp32dev",
            str(tmp_path),
            platform_options={"upload_speed": "921600", "board_build.f_cpu": "240000000L"},
            executor=executor,
        )

        assert executor.calls[0].args[3:] == [
            "--project-option",
            "upload_speed=921600",
            "--project-option",
            "board_build.f_cpu=240000000L",
        ]

    async def test_option_values_are_sanitized(self, tmp_path: Path) -> None:
        executor = ScriptedExecutor(ok())

        await init_project(
            "uno", str(tmp_path), platform_options={"monitor_speed": "9600; rm -rf ~"}, executor=executor
        )

        assert executor.calls[0].args[-1] == "monitor_speed=9600 rm -rf ~"

    async def test_bad_option_name_rejected(self, tmp_path: Path) -> None:
        executor = ScriptedExecutor()

        with pytest.raises(InvalidArgumentError):
            await init_project(
                "uno", str(tmp_path), platform_options={"--board": "x"}, executor=executor
            )

        assert executor.calls == []

    async def test_invalid_board_rejected_before_spawning(self, tmp_path: Path) -> None:
        executor = ScriptedExecutor()

        with pytest.raises(InvalidBoardIdError):
            await init_project("uno && reboot", str(tmp_path), executor=executor)

        assert executor.calls == []

    async def test_invalid_framework_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidFrameworkError):
            await init_project("uno", str(tmp_path), "Arduino!", executor=ScriptedExecutor())

    async def test_path_traversal_rejected(self, tmp_path: Path) -> None:
        executor = ScriptedExecutor()

        with pytest.raises(PathTraversalError):
            await init_project("uno", f"{tmp_path}/../escape", executor=executor)

        assert executor.calls == []
        assert not (tmp_path.parent / "escape").exists()

    async def test_non_zero_exit_raises_project_init_error(self, tmp_path: Path) -> None:
        executor = ScriptedExecutor(failed("Error: Unknown board ID 'unoo'"))

        with pytest.raises(ProjectInitError) as exc_info:
            await init_project("unoo", str(tmp_path), executor=executor)

        assert "Unknown board ID" in exc_info.value.message
        assert exc_info.value.context["exit_code"] == 1

    async def test_timeout_wrapped_in_project_init_error(self, tmp_path: Path) -> None:
        executor = ScriptedExecutor(CommandTimeoutError("project init --board uno", 120.0))

        with pytest.raises(ProjectInitError) as exc_info:
            await init_project("uno", str(tmp_path), executor=executor)

        assert exc_info.value.context["cause"] == "COMMAND_TIMEOUT"


@pytest.mark.unit
@pytest.mark.P1
class TestProjectInspection:
    def test_is_valid_project(self, tmp_path: Path) -> None:
        assert not is_valid_project(str(tmp_path))

        (tmp_path / "platformio.ini").write_text("[env:uno]\nboard = uno\n")

        assert is_valid_project(str(tmp_path))

    def test_is_valid_project_rejects_traversal(self, tmp_path: Path) -> None:
        (tmp_path / "platformio.ini").write_text("")

        assert not is_valid_project(os.path.join(str(tmp_path), "sub", "..", ""))

    @pytest.mark.asyncio
    async def test_get_project_config_returns_raw_output(self, tmp_path: Path) -> None:
        executor = ScriptedExecutor(ok("env:uno\n-------\nboard = uno\n"))

        config = await get_project_config(str(tmp_path), executor=executor)

        assert config == {"raw_config": "env:uno\n-------\nboard = uno\n"}
        assert executor.calls[0].args == ["config"]
        assert executor.calls[0].cwd == str(tmp_path)

    @pytest.mark.asyncio
    async def test_get_project_config_failure(self, tmp_path: Path) -> None:
        executor = ScriptedExecutor(failed("Error: Not a PlatformIO project"))

        with pytest.raises(ProjectInitError):
            await get_project_config(str(tmp_path), executor=executor)
