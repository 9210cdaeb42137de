"""Library registry search and library management tools."""

import logging

from pioagent.kernel.errors import (
    CommandFailedError,
    InvalidArgumentError,
    InvalidLibraryNameError,
    InvalidVersionError,
    LibraryError,
    PlatformIOError,
)
from pioagent.kernel.executor import CommandResult, PlatformIOExecutor
from pioagent.kernel.validation import (
    sanitize_input,
    validate_library_name,
    validate_project_path,
    validate_version,
)
from pioagent.tools.common import (
    DISCOVERY_TIMEOUT,
    INSTALL_TIMEOUT,
    PASSTHROUGH_ERRORS,
    UNINSTALL_TIMEOUT,
    UPDATE_TIMEOUT,
    options,
    resolve_executor,
)
from pioagent.tools.types import (
    LibraryInfo,
    LibraryInstallResult,
    LibraryList,
    LibrarySearchOutput,
    LibrarySearchPage,
    OperationResult,
)

logger = logging.getLogger(__name__)

NO_LIBRARIES_MARKERS = ("no libraries", "no installed libraries")


def _scope(project_path: str | None) -> str:
    return "to project" if project_path else "globally"


def _project_path(project_dir: str | None) -> str | None:
    return validate_project_path(project_dir) if project_dir else None


def _validated_name(library_name: str) -> str:
    if not validate_library_name(library_name):
        raise InvalidLibraryNameError(
            f"Invalid library name: {library_name}", library_name=library_name
        )
    return library_name


async def _lib(
    executor: PlatformIOExecutor,
    args: list[str],
    project_path: str | None,
    timeout: float,
    action: str,
) -> CommandResult:
    try:
        result = await executor.execute("lib", args, options(timeout, project_path))
    except PASSTHROUGH_ERRORS:
        raise
    except PlatformIOError as e:
        raise LibraryError(
            f"Failed to {action}: {e.message}",
            context={"project_dir": project_path, "cause": e.code.value},
        ) from e

    if result.exit_code != 0:
        raise LibraryError(
            f"Failed to {action}: {result.stderr.strip()}",
            context={
                "project_dir": project_path,
                "stderr": result.stderr,
                "exit_code": result.exit_code,
            },
        )
    return result


async def search_libraries(
    query: str, limit: int | None = None, *, executor: PlatformIOExecutor | None = None
) -> list[LibraryInfo]:
    """Search the PlatformIO registry. ``limit`` keeps only the first results."""
    cleaned = sanitize_input(query)
    if not cleaned:
        raise InvalidArgumentError("Search query is required", query=query)

    executor = resolve_executor(executor)
    try:
        output = await executor.execute_with_json_output(
            "lib", ["search", cleaned], LibrarySearchOutput, options(DISCOVERY_TIMEOUT)
        )
    except PASSTHROUGH_ERRORS:
        raise
    except PlatformIOError as e:
        raise LibraryError(
            f"Failed to search libraries with query '{cleaned}': {e.message}",
            context={"query": cleaned, "cause": e.code.value},
        ) from e

    libraries = output.items if isinstance(output, LibrarySearchPage) else output
    if limit is not None and limit > 0:
        return libraries[:limit]
    return libraries


async def install_library(
    library_name: str,
    project_dir: str | None = None,
    version: str | None = None,
    *,
    executor: PlatformIOExecutor | None = None,
) -> LibraryInstallResult:
    """Install a library globally, or into ``project_dir`` when given.

    Raises:
        InvalidLibraryNameError: If the name contains disallowed characters
        InvalidVersionError: If ``version`` is not a version or version range
        LibraryError: If PlatformIO fails to install it
    """
    name = _validated_name(library_name)
    if version is not None and not validate_version(version):
        raise InvalidVersionError(f"Invalid version format: {version}", version=version)
    project_path = _project_path(project_dir)

    requirement = f"{name}@{version}" if version else name
    await _lib(
        resolve_executor(executor),
        ["install", requirement],
        project_path,
        INSTALL_TIMEOUT,
        f"install library '{requirement}'",
    )

    logger.info("Installed library %s %s", requirement, _scope(project_path))
    return LibraryInstallResult(
        success=True,
        library=name,
        message=f"Successfully installed {requirement} {_scope(project_path)}",
    )


async def list_installed_libraries(
    project_dir: str | None = None, *, executor: PlatformIOExecutor | None = None
) -> list[LibraryInfo]:
    """Libraries installed globally, or in ``project_dir`` when given."""
    project_path = _project_path(project_dir)

    executor = resolve_executor(executor)
    try:
        return await executor.execute_with_json_output(
            "lib", ["list"], LibraryList, options(DISCOVERY_TIMEOUT, project_path)
        )
    except PASSTHROUGH_ERRORS:
        raise
    except CommandFailedError as e:
        # Last resort: an empty installation normally answers "[]"
        if any(marker in e.stderr.lower() for marker in NO_LIBRARIES_MARKERS):
            logger.warning(
                "Treating failed 'lib list' as empty based on stderr text (exit code %d)",
                e.exit_code,
            )
            return []
        raise LibraryError(
            f"Failed to list installed libraries: {e.message}",
            context={"project_dir": project_path, "cause": e.code.value},
        ) from e
    except PlatformIOError as e:
        raise LibraryError(
            f"Failed to list installed libraries: {e.message}",
            context={"project_dir": project_path, "cause": e.code.value},
        ) from e


async def uninstall_library(
    library_name: str,
    project_dir: str | None = None,
    *,
    executor: PlatformIOExecutor | None = None,
) -> OperationResult:
    name = _validated_name(library_name)
    project_path = _project_path(project_dir)

    await _lib(
        resolve_executor(executor),
        ["uninstall", name],
        project_path,
        UNINSTALL_TIMEOUT,
        f"uninstall library '{name}'",
    )
    scope = "from project" if project_path else "globally"
    return OperationResult(success=True, message=f"Successfully uninstalled {name} {scope}")


async def update_libraries(
    project_dir: str | None = None, *, executor: PlatformIOExecutor | None = None
) -> OperationResult:
    project_path = _project_path(project_dir)

    await _lib(
        resolve_executor(executor), ["update"], project_path, UPDATE_TIMEOUT, "update libraries"
    )
    scope = "for project" if project_path else "globally"
    return OperationResult(success=True, message=f"Successfully updated libraries {scope}")


async def get_library_info(
    name_or_id: str, *, executor: PlatformIOExecutor | None = None
) -> LibraryInfo | None:
    """Exact name (case-insensitive) or numeric id match, else the best search hit."""
    results = await search_libraries(name_or_id, 50, executor=executor)

    wanted = name_or_id.strip().lower()
    for library in results:
        if library.name.lower() == wanted or (library.id is not None and str(library.id) == wanted):
            return library
    return results[0] if results else None
