"""Typed shapes of PlatformIO's structured output and of tool results."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class BoardInfo(BaseModel):
    """One entry of ``pio boards --json-output``."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    platform: str
    mcu: str
    fcpu: int | None = None
    ram: int | None = None
    rom: int | None = None
    frameworks: list[str] | None = None
    vendor: str | None = None
    url: str | None = None
    connectivity: list[str] | None = None


class SerialDevice(BaseModel):
    """One entry of ``pio device list --json-output``."""

    model_config = ConfigDict(extra="ignore")

    port: str
    description: str = ""
    hwid: str = ""


class LibraryInfo(BaseModel):
    """A library as reported by ``pio lib search`` or ``pio lib list``.

    The two commands disagree on a few field names and shapes, so only
    ``name`` is required and nested structures are kept as-is.
    """

    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    name: str
    description: str | None = None
    version: str | None = Field(
        default=None, validation_alias=AliasChoices("version", "versionname")
    )
    keywords: list[str] | str | None = None
    authors: list[Any] | None = Field(
        default=None, validation_alias=AliasChoices("authors", "authornames")
    )
    frameworks: list[Any] | None = None
    platforms: list[Any] | None = None
    homepage: str | None = None


class LibrarySearchPage(BaseModel):
    """Paginated envelope returned by newer ``pio lib search`` releases."""

    model_config = ConfigDict(extra="ignore")

    items: list[LibraryInfo]
    page: int = 1
    perpage: int | None = None
    total: int | None = None


BoardsByPlatform = dict[str, list[BoardInfo]]
DeviceList = list[SerialDevice]
LibraryList = list[LibraryInfo]
LibrarySearchOutput = LibrarySearchPage | list[LibraryInfo]


class OperationResult(BaseModel):
    success: bool
    message: str


class ProjectInitResult(OperationResult):
    path: str


class LibraryInstallResult(OperationResult):
    library: str


class BuildResult(OperationResult):
    project_dir: str
    environment: str | None = None
    output: str = ""


class UploadResult(OperationResult):
    project_dir: str
    port: str | None = None
    environment: str | None = None
    output: str = ""


class MonitorResult(OperationResult):
    command: str
