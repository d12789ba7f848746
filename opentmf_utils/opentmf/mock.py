"""
Mock OpenTMF Context

In-memory registry for testing and demos without libopentmf installed.
Drivers and devices are described in YAML; every call can be told to fail
with a given status code so error paths are reproducible.

Example registry file:

    drivers:
      - id: usbtmc
        info:
          name: usbtmc
          version: {major: 1, minor: 2, patch: 0, extra: "-beta"}
          license: GPL-2.0+
        devices:
          - path: /0957:1796/MY12345678
            name: DSO-X 2024A
            serial: MY12345678
      - id: vxi11
        info: {name: vxi11}
        open_status: -4
"""

import itertools
import logging
from pathlib import Path
from typing import Dict, List, Optional, Set, Union

import yaml
from pydantic import BaseModel, Field

from .base import (
    URL_SCHEME,
    BaseContext,
    DeviceInfo,
    DriverInfo,
    Handle,
    IdentifierList,
)
from opentmf_utils.exceptions import OpenTMFError, Status

logger = logging.getLogger(__name__)


class MockDevice(BaseModel):
    """Device exposed by a mock driver"""
    path: str = Field(..., min_length=1, description="Identifier appended to the driver URL")
    name: str = ""
    serial: str = ""

    # Failure injection
    open_status: int = 0
    info_status: int = 0
    close_status: int = 0

    @property
    def info(self) -> DeviceInfo:
        return DeviceInfo(name=self.name, serial=self.serial)


class MockDriver(BaseModel):
    """Driver entry of the mock registry"""
    id: str = Field(..., min_length=1)
    info: DriverInfo
    devices: List[MockDevice] = Field(default_factory=list)

    # Failure injection
    open_status: int = 0
    info_status: int = 0
    close_status: int = 0
    device_list_status: int = 0
    free_device_list_status: int = 0


class MockRegistry(BaseModel):
    """Complete mock registry description"""
    drivers: List[MockDriver] = Field(default_factory=list)

    # Failure injection
    init_status: int = 0
    exit_status: int = 0
    driver_list_status: int = 0
    free_driver_list_status: int = 0

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "MockRegistry":
        """
        Load a registry description from a YAML file

        Raises:
            OSError: If the file cannot be read
            ValueError: If the file is not valid YAML or does not describe
                a registry (pydantic.ValidationError is a ValueError)
        """
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
        return cls.model_validate(data)


class MockHandle(Handle):
    """Handle to a mock driver or device"""

    def __init__(self, url: str, driver: MockDriver, device: Optional[MockDevice] = None):
        super().__init__(url)
        self.driver = driver
        self.device = device

    @property
    def is_device(self) -> bool:
        return self.device is not None


class MockContext(BaseContext):
    """
    Mock context backed by a MockRegistry

    Tracks open handles and borrowed identifier lists so tests can assert
    that nothing leaks.
    """

    def __init__(self, registry: Optional[MockRegistry] = None):
        self.registry = registry or MockRegistry()
        self.live = False
        self.open_handles: Set[MockHandle] = set()
        self.borrowed_lists: Dict[int, IdentifierList] = {}
        self._tokens = itertools.count(1)

    @classmethod
    def from_settings(cls, settings) -> "MockContext":
        """Load the registry named by settings.mock_registry, if any"""
        if settings.mock_registry:
            return cls(MockRegistry.from_yaml(settings.mock_registry))
        return cls()

    # ============ Helpers ============

    @staticmethod
    def _check(status: int) -> None:
        if status != Status.SUCCESS:
            raise OpenTMFError(status)

    def _check_live(self) -> None:
        if not self.live:
            raise OpenTMFError(Status.ERROR_INVALID_STATE)

    def _borrow(self, identifiers: List[str]) -> IdentifierList:
        borrowed = IdentifierList(identifiers, token=next(self._tokens))
        self.borrowed_lists[borrowed.token] = borrowed
        return borrowed

    def _give_back(self, identifiers: IdentifierList) -> None:
        if self.borrowed_lists.get(getattr(identifiers, "token", None)) is not identifiers:
            raise OpenTMFError(Status.ERROR_INVALID_ARGUMENT)
        del self.borrowed_lists[identifiers.token]

    def _handle(self, handle: Handle, device: bool) -> MockHandle:
        if handle not in self.open_handles or handle.is_device != device:
            raise OpenTMFError(Status.ERROR_INVALID_ARGUMENT)
        return handle

    def leaks(self) -> int:
        """Number of handles and lists not yet returned"""
        return len(self.open_handles) + len(self.borrowed_lists)

    # ============ Context Lifecycle ============

    def init(self) -> None:
        if self.live:
            raise OpenTMFError(Status.ERROR_INVALID_STATE)
        self._check(self.registry.init_status)
        self.live = True
        logger.info(f"MockContext initialized with {len(self.registry.drivers)} driver(s)")

    def exit(self) -> None:
        self._check_live()
        if self.leaks():
            logger.warning(
                f"MockContext finalized with {len(self.open_handles)} open handle(s) "
                f"and {len(self.borrowed_lists)} borrowed list(s)"
            )
        self.live = False
        self._check(self.registry.exit_status)
        logger.info("MockContext finalized")

    # ============ Driver Discovery ============

    def get_driver_list(self) -> IdentifierList:
        self._check_live()
        self._check(self.registry.driver_list_status)
        return self._borrow([driver.id for driver in self.registry.drivers])

    def free_driver_list(self, names: IdentifierList) -> None:
        self._check_live()
        self._give_back(names)
        self._check(self.registry.free_driver_list_status)

    # ============ Handles ============

    def _resolve(self, url: str) -> MockHandle:
        if not url.startswith(URL_SCHEME):
            raise OpenTMFError(Status.ERROR_INVALID_URL)

        path = url[len(URL_SCHEME):]
        if not path:
            raise OpenTMFError(Status.ERROR_INVALID_URL)

        for driver in self.registry.drivers:
            if path == driver.id:
                return MockHandle(url, driver)

        # Longest matching driver id wins
        candidates = [driver for driver in self.registry.drivers if path.startswith(driver.id)]
        if candidates:
            driver = max(candidates, key=lambda candidate: len(candidate.id))
            device_path = path[len(driver.id):]
            for device in driver.devices:
                if device.path == device_path:
                    return MockHandle(url, driver, device)

        raise OpenTMFError(Status.ERROR_NOT_FOUND)

    def open(self, url: str) -> MockHandle:
        self._check_live()
        handle = self._resolve(url)
        target = handle.device or handle.driver
        self._check(target.open_status)

        self.open_handles.add(handle)
        logger.debug(f"Opened {url}")
        return handle

    def close(self, handle: Handle) -> None:
        self._check_live()
        if handle not in self.open_handles:
            raise OpenTMFError(Status.ERROR_INVALID_ARGUMENT)

        self.open_handles.discard(handle)
        target = handle.device or handle.driver
        logger.debug(f"Closed {handle.url}")
        self._check(target.close_status)

    # ============ Metadata ============

    def drv_get_info(self, handle: Handle) -> DriverInfo:
        self._check_live()
        driver = self._handle(handle, device=False).driver
        self._check(driver.info_status)
        return driver.info

    def drv_get_device_list(self, handle: Handle) -> IdentifierList:
        self._check_live()
        driver = self._handle(handle, device=False).driver
        self._check(driver.device_list_status)
        return self._borrow([device.path for device in driver.devices])

    def drv_free_device_list(self, handle: Handle, devices: IdentifierList) -> None:
        self._check_live()
        driver = self._handle(handle, device=False).driver
        self._give_back(devices)
        self._check(driver.free_device_list_status)

    def dev_get_info(self, handle: Handle) -> DeviceInfo:
        self._check_live()
        device = self._handle(handle, device=True).device
        self._check(device.info_status)
        return device.info
