"""
OpenTMF backends

Interface to the OpenTMF registry layer and its implementations
"""

from .base import (
    URL_SCHEME,
    BaseContext,
    DeviceInfo,
    DriverInfo,
    DriverVersion,
    Handle,
    IdentifierList,
    driver_url,
)
from .mock import MockContext, MockRegistry
from .native import NativeContext
from .registry import BackendRegistry, get_registry

__all__ = [
    "URL_SCHEME",
    "BaseContext",
    "DeviceInfo",
    "DriverInfo",
    "DriverVersion",
    "Handle",
    "IdentifierList",
    "driver_url",
    "MockContext",
    "MockRegistry",
    "NativeContext",
    "BackendRegistry",
    "get_registry",
]
