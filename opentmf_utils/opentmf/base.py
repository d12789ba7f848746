"""
OpenTMF Context Interface

Abstract base class for the OpenTMF registry layer and the read-only
metadata records it hands out for drivers and devices.

Every operation raises OpenTMFError when the layer reports a failure.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional
from pydantic import BaseModel, ConfigDict, Field
import logging

from opentmf_utils.exceptions import get_status_str

logger = logging.getLogger(__name__)

URL_SCHEME = "opentmf://"


class DriverVersion(BaseModel):
    """Semantic version of a driver"""
    model_config = ConfigDict(frozen=True)

    major: int = Field(0, ge=0)
    minor: int = Field(0, ge=0)
    patch: int = Field(0, ge=0)
    extra: str = Field("", description="Free-form label, e.g. '-rc1'")


class DriverInfo(BaseModel):
    """Descriptive metadata of an opened driver"""
    model_config = ConfigDict(frozen=True)

    name: str
    version: DriverVersion = Field(default_factory=DriverVersion)
    description: str = ""
    authors: str = ""
    license: str = ""
    non_free: bool = False


class DeviceInfo(BaseModel):
    """Descriptive metadata of an opened device"""
    model_config = ConfigDict(frozen=True)

    name: str = ""
    serial: str = ""


class Handle:
    """Opaque handle to an opened driver or device"""

    def __init__(self, url: str):
        self.url = url

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.url!r})"


class IdentifierList(list):
    """
    Ordered list of driver or device identifiers borrowed from the layer

    The token identifies the underlying allocation; the list must be handed
    back to the matching free call exactly once.
    """

    def __init__(self, identifiers: Iterable[str] = (), token: Any = None):
        super().__init__(identifiers)
        self.token = token


class BaseContext(ABC):
    """
    Abstract interface to the OpenTMF registry

    A context is initialized once, used to open drivers and devices by URL,
    and finalized once. All implementations must:
    - Raise OpenTMFError with the layer's status code on failure
    - Keep identifier lists valid until they are freed
    - Accept driver URLs "opentmf://<driver>" and device URLs
      "opentmf://<driver><device>"

    Example:
        ctx = registry.create("mock", settings)
        ctx.init()
        names = ctx.get_driver_list()
        try:
            drv = ctx.open(URL_SCHEME + names[0])
            print(ctx.drv_get_info(drv).name)
            ctx.close(drv)
        finally:
            ctx.free_driver_list(names)
        ctx.exit()
    """

    @classmethod
    @abstractmethod
    def from_settings(cls, settings) -> "BaseContext":
        """Build an uninitialized context from application settings"""
        pass

    # ============ Context Lifecycle ============

    @abstractmethod
    def init(self) -> None:
        """
        Initialize the registry context

        Raises:
            OpenTMFError: If the layer cannot be initialized
        """
        pass

    @abstractmethod
    def exit(self) -> None:
        """
        Finalize the registry context

        Raises:
            OpenTMFError: If finalization fails
        """
        pass

    # ============ Driver Discovery ============

    @abstractmethod
    def get_driver_list(self) -> IdentifierList:
        """
        Get identifiers of all available drivers

        Returns:
            Borrowed list, release with free_driver_list()
        """
        pass

    @abstractmethod
    def free_driver_list(self, names: IdentifierList) -> None:
        """Return a driver list obtained from get_driver_list()"""
        pass

    # ============ Handles ============

    @abstractmethod
    def open(self, url: str) -> Handle:
        """
        Open a driver or device by URL

        Args:
            url: "opentmf://<driver>" or "opentmf://<driver><device>"

        Returns:
            Handle, release with close()

        Raises:
            OpenTMFError: If the URL is invalid or nothing answers at it
        """
        pass

    @abstractmethod
    def close(self, handle: Handle) -> None:
        """Close a handle returned by open()"""
        pass

    # ============ Metadata ============

    @abstractmethod
    def drv_get_info(self, handle: Handle) -> DriverInfo:
        """Get metadata of an opened driver"""
        pass

    @abstractmethod
    def drv_get_device_list(self, handle: Handle) -> IdentifierList:
        """
        Get identifiers of devices available under an opened driver

        Returns:
            Borrowed list, release with drv_free_device_list()
        """
        pass

    @abstractmethod
    def drv_free_device_list(self, handle: Handle, devices: IdentifierList) -> None:
        """Return a device list obtained from drv_get_device_list()"""
        pass

    @abstractmethod
    def dev_get_info(self, handle: Handle) -> DeviceInfo:
        """Get metadata of an opened device"""
        pass

    # ============ Status Messages ============

    def get_status_str(self, status: int) -> str:
        """Translate a status code into the layer's message text"""
        return get_status_str(status)


def driver_url(driver: str, device: Optional[str] = None) -> str:
    """
    Build the URL of a driver, or of a device under it

    Device identifiers are path suffixes and are appended without a separator.

    Example:
        >>> driver_url("usbtmc", "/1234:5678")
        'opentmf://usbtmc/1234:5678'
    """
    url = URL_SCHEME + driver
    if device is not None:
        url += device
    return url
