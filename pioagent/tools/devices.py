"""Serial device detection tools."""

import logging

from pioagent.kernel.errors import CommandFailedError, DeviceError, PlatformIOError
from pioagent.kernel.executor import PlatformIOExecutor
from pioagent.tools.common import (
    DEVICE_LIST_TIMEOUT,
    PASSTHROUGH_ERRORS,
    options,
    resolve_executor,
)
from pioagent.tools.types import DeviceList, SerialDevice

logger = logging.getLogger(__name__)

NO_DEVICES_MARKERS = ("no devices", "no device found")


async def list_devices(*, executor: PlatformIOExecutor | None = None) -> list[SerialDevice]:
    """All serial devices PlatformIO can see. An empty list means none are connected."""
    executor = resolve_executor(executor)
    try:
        return await executor.execute_with_json_output(
            "device", ["list"], DeviceList, options(DEVICE_LIST_TIMEOUT)
        )
    except PASSTHROUGH_ERRORS:
        raise
    except CommandFailedError as e:
        # Last resort: PlatformIO normally answers "[]" when nothing is attached
        if any(marker in e.stderr.lower() for marker in NO_DEVICES_MARKERS):
            logger.warning(
                "Treating failed 'device list' as empty based on stderr text (exit code %d)",
                e.exit_code,
            )
            return []
        raise DeviceError(
            f"Failed to list devices: {e.message}", context={"cause": e.code.value}
        ) from e
    except PlatformIOError as e:
        raise DeviceError(
            f"Failed to list devices: {e.message}", context={"cause": e.code.value}
        ) from e


async def find_device_by_port(
    port: str, *, executor: PlatformIOExecutor | None = None
) -> SerialDevice | None:
    devices = await list_devices(executor=executor)
    return next((device for device in devices if device.port == port), None)


async def get_first_device(*, executor: PlatformIOExecutor | None = None) -> SerialDevice | None:
    devices = await list_devices(executor=executor)
    return devices[0] if devices else None


async def has_connected_devices(*, executor: PlatformIOExecutor | None = None) -> bool:
    return bool(await list_devices(executor=executor))


async def find_devices_by_description(
    search_term: str, *, executor: PlatformIOExecutor | None = None
) -> list[SerialDevice]:
    """Devices whose description contains ``search_term``, e.g. ``CP2102``."""
    needle = search_term.lower()
    return [d for d in await list_devices(executor=executor) if needle in d.description.lower()]


async def find_devices_by_hardware_id(
    search_term: str, *, executor: PlatformIOExecutor | None = None
) -> list[SerialDevice]:
    """Devices whose hardware id contains ``search_term``, e.g. ``VID:PID=10C4:EA60``."""
    needle = search_term.lower()
    return [d for d in await list_devices(executor=executor) if needle in d.hwid.lower()]
