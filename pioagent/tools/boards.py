"""Board discovery and information tools."""

from pioagent.kernel.errors import BoardError, BoardNotFoundError, PlatformIOError
from pioagent.kernel.executor import PlatformIOExecutor
from pioagent.kernel.validation import sanitize_input, validate_board_id
from pioagent.tools.common import (
    DISCOVERY_TIMEOUT,
    PASSTHROUGH_ERRORS,
    options,
    resolve_executor,
)
from pioagent.tools.types import BoardInfo, BoardsByPlatform


def _matches_filter(board: BoardInfo, needle: str) -> bool:
    haystacks = [board.id, board.name, board.platform, board.mcu, *(board.frameworks or [])]
    return any(needle in value.lower() for value in haystacks)


def _flatten(boards_by_platform: BoardsByPlatform) -> list[BoardInfo]:
    return [board for boards in boards_by_platform.values() for board in boards]


async def list_boards_by_platform(
    *, executor: PlatformIOExecutor | None = None
) -> BoardsByPlatform:
    """All boards known to PlatformIO, keyed by development platform."""
    executor = resolve_executor(executor)
    try:
        return await executor.execute_with_json_output(
            "boards", [], BoardsByPlatform, options(DISCOVERY_TIMEOUT)
        )
    except PASSTHROUGH_ERRORS:
        raise
    except PlatformIOError as e:
        raise BoardError(
            f"Failed to list boards: {e.message}", context={"cause": e.code.value}
        ) from e


async def list_boards(
    filter: str | None = None, *, executor: PlatformIOExecutor | None = None
) -> list[BoardInfo]:
    """List boards, optionally keeping only those whose id, name, platform,
    MCU or frameworks contain ``filter`` (case-insensitive)."""
    boards = _flatten(await list_boards_by_platform(executor=executor))

    needle = sanitize_input(filter).lower()
    if not needle:
        return boards
    return [board for board in boards if _matches_filter(board, needle)]


async def get_board_info(
    board_id: str, *, executor: PlatformIOExecutor | None = None
) -> BoardInfo:
    """Exact-id lookup of one board.

    Raises:
        BoardNotFoundError: If ``board_id`` is malformed or no board has exactly that id
    """
    if not validate_board_id(board_id):
        raise BoardNotFoundError(str(board_id))

    executor = resolve_executor(executor)
    try:
        # PlatformIO treats the argument as a filter and may return near matches
        boards_by_platform = await executor.execute_with_json_output(
            "boards", [board_id], BoardsByPlatform, options(DISCOVERY_TIMEOUT)
        )
    except PASSTHROUGH_ERRORS:
        raise
    except PlatformIOError as e:
        raise BoardError(
            f"Failed to get board info for '{board_id}': {e.message}",
            context={"board_id": board_id, "cause": e.code.value},
        ) from e

    for board in _flatten(boards_by_platform):
        if board.id == board_id:
            return board
    raise BoardNotFoundError(board_id)


async def search_boards(
    *,
    platform: str | None = None,
    framework: str | None = None,
    mcu: str | None = None,
    name: str | None = None,
    executor: PlatformIOExecutor | None = None,
) -> list[BoardInfo]:
    """Boards matching every given criterion (substring, case-insensitive)."""
    boards = await list_boards(executor=executor)

    def matches(board: BoardInfo) -> bool:
        if platform and platform.lower() not in board.platform.lower():
            return False
        if framework and not any(framework.lower() in fw.lower() for fw in board.frameworks or []):
            return False
        if mcu and mcu.lower() not in board.mcu.lower():
            return False
        if name and name.lower() not in board.name.lower():
            return False
        return True

    return [board for board in boards if matches(board)]


async def list_platforms(*, executor: PlatformIOExecutor | None = None) -> list[str]:
    return sorted(await list_boards_by_platform(executor=executor))


async def list_frameworks(*, executor: PlatformIOExecutor | None = None) -> list[str]:
    boards = await list_boards(executor=executor)
    return sorted({fw for board in boards for fw in board.frameworks or []})
