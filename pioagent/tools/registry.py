"""Agent-facing tool catalogue: one ToolContract per PlatformIO operation."""

from functools import partial
from typing import Any

from pioagent.kernel.errors import ToolNotInstalledError
from pioagent.kernel.executor import PlatformIOExecutor, ToolContract, ToolRegistry
from pioagent.tools import boards, build, devices, libraries, monitor, projects
from pioagent.tools.common import (
    BUILD_TIMEOUT,
    DEVICE_LIST_TIMEOUT,
    DISCOVERY_TIMEOUT,
    INSTALL_TIMEOUT,
    MAX_CALLER_TIMEOUT,
    UNINSTALL_TIMEOUT,
    UPDATE_TIMEOUT,
    UPLOAD_TIMEOUT,
)

STRING = {"type": "string", "minLength": 1}
PROJECT_DIR = {"type": "string", "minLength": 1, "description": "Path to the PlatformIO project"}
ENVIRONMENT = {"type": "string", "description": "Environment from platformio.ini, e.g. 'esp32dev'"}
TIMEOUT = {"type": "number", "exclusiveMinimum": 0, "maximum": MAX_CALLER_TIMEOUT}


def _object(properties: dict[str, Any], required: tuple[str, ...] = ()) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": list(required),
        "additionalProperties": False,
    }


async def _platformio_status(executor: PlatformIOExecutor) -> dict[str, Any]:
    try:
        version = await executor.get_version()
    except ToolNotInstalledError:
        return {"installed": False, "version": None}
    return {"installed": True, "version": version}


def build_tool_registry(executor: PlatformIOExecutor | None = None) -> ToolRegistry:
    """Registry with every PlatformIO tool bound to ``executor``."""
    executor = executor or PlatformIOExecutor()
    registry = ToolRegistry()

    def add(
        handler: Any,
        name: str,
        description: str,
        schema: dict[str, Any],
        side_effect_level: str,
        timeout: float,
        bind_executor: bool = True,
    ) -> None:
        registry.register(
            ToolContract(
                name=name,
                description=description,
                input_schema=schema,
                side_effect_level=side_effect_level,
                timeout_seconds=int(timeout),
                handler=partial(handler, executor=executor) if bind_executor else handler,
            )
        )

    add(
        partial(_platformio_status, executor),
        "platformio_status",
        "Report whether PlatformIO is installed and its version.",
        _object({}),
        "READ",
        DISCOVERY_TIMEOUT,
        bind_executor=False,
    )
    add(
        boards.list_boards,
        "list_boards",
        "List development boards, optionally filtered by id, name, platform, MCU or framework.",
        _object({"filter": {"type": "string"}}),
        "READ",
        DISCOVERY_TIMEOUT,
    )
    add(
        boards.get_board_info,
        "get_board_info",
        "Get details (MCU, clock, memory, frameworks) of one board by its exact id.",
        _object({"board_id": STRING}, ("board_id",)),
        "READ",
        DISCOVERY_TIMEOUT,
    )
    add(
        devices.list_devices,
        "list_devices",
        "List connected serial devices with port, description and hardware id.",
        _object({}),
        "READ",
        DEVICE_LIST_TIMEOUT,
    )
    add(
        projects.init_project,
        "init_project",
        "Create a PlatformIO project for a board in the given directory.",
        _object(
            {
                "board": STRING,
                "project_dir": PROJECT_DIR,
                "framework": {"type": "string"},
                "platform_options": {"type": "object", "additionalProperties": {"type": "string"}},
            },
            ("board", "project_dir"),
        ),
        "LOCAL_WRITE",
        INSTALL_TIMEOUT,
    )
    add(
        build.build_project,
        "build_project",
        "Compile a PlatformIO project and report compiler errors.",
        _object(
            {
                "project_dir": PROJECT_DIR,
                "environment": ENVIRONMENT,
                "verbose": {"type": "boolean"},
                "timeout_seconds": TIMEOUT,
            },
            ("project_dir",),
        ),
        "LOCAL_WRITE",
        BUILD_TIMEOUT,
    )
    add(
        build.clean_project,
        "clean_project",
        "Remove build artifacts of a PlatformIO project.",
        _object({"project_dir": PROJECT_DIR, "environment": ENVIRONMENT}, ("project_dir",)),
        "LOCAL_WRITE",
        BUILD_TIMEOUT,
    )
    add(
        build.upload_firmware,
        "upload_firmware",
        "Build and flash firmware to a connected board.",
        _object(
            {
                "project_dir": PROJECT_DIR,
                "port": {"type": "string"},
                "environment": ENVIRONMENT,
                "timeout_seconds": TIMEOUT,
            },
            ("project_dir",),
        ),
        "DEVICE_WRITE",
        UPLOAD_TIMEOUT,
    )
    add(
        monitor.start_monitor,
        "start_monitor",
        "Get the terminal command for a serial monitor session.",
        _object(
            {
                "port": {"type": "string"},
                "baud": {"type": "integer", "minimum": 1},
                "project_dir": PROJECT_DIR,
            }
        ),
        "READ",
        DISCOVERY_TIMEOUT,
        bind_executor=False,
    )
    add(
        libraries.search_libraries,
        "search_libraries",
        "Search the PlatformIO library registry.",
        _object({"query": STRING, "limit": {"type": "integer", "minimum": 1}}, ("query",)),
        "READ",
        DISCOVERY_TIMEOUT,
    )
    add(
        libraries.get_library_info,
        "get_library_info",
        "Get registry details of a library by name or numeric id.",
        _object({"name_or_id": STRING}, ("name_or_id",)),
        "READ",
        DISCOVERY_TIMEOUT,
    )
    add(
        libraries.install_library,
        "install_library",
        "Install a library globally or into a project, optionally pinned to a version.",
        _object(
            {"library_name": STRING, "project_dir": PROJECT_DIR, "version": {"type": "string"}},
            ("library_name",),
        ),
        "LOCAL_WRITE",
        INSTALL_TIMEOUT,
    )
    add(
        libraries.list_installed_libraries,
        "list_installed_libraries",
        "List installed libraries, globally or for a project.",
        _object({"project_dir": PROJECT_DIR}),
        "READ",
        DISCOVERY_TIMEOUT,
    )
    add(
        libraries.uninstall_library,
        "uninstall_library",
        "Uninstall a library globally or from a project.",
        _object({"library_name": STRING, "project_dir": PROJECT_DIR}, ("library_name",)),
        "LOCAL_WRITE",
        UNINSTALL_TIMEOUT,
    )
    add(
        libraries.update_libraries,
        "update_libraries",
        "Update installed libraries, globally or for a project.",
        _object({"project_dir": PROJECT_DIR}),
        "LOCAL_WRITE",
        UPDATE_TIMEOUT,
    )
    return registry
