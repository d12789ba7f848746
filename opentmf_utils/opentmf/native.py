"""
Native OpenTMF Context

ctypes binding to libopentmf. The shared library is loaded when the context
is initialized, so merely importing this module never touches the system.
"""

import ctypes
import logging
from typing import Optional

from .base import BaseContext, DeviceInfo, DriverInfo, DriverVersion, Handle, IdentifierList
from opentmf_utils.exceptions import OpenTMFError, Status

logger = logging.getLogger(__name__)


class _Version(ctypes.Structure):
    """struct opentmf_version"""
    _fields_ = [
        ("major", ctypes.c_uint),
        ("minor", ctypes.c_uint),
        ("patch", ctypes.c_uint),
        ("extra", ctypes.c_char_p),
    ]


class _DriverInfo(ctypes.Structure):
    """struct opentmf_driver_info"""
    _fields_ = [
        ("name", ctypes.c_char_p),
        ("version", _Version),
        ("description", ctypes.c_char_p),
        ("authors", ctypes.c_char_p),
        ("license", ctypes.c_char_p),
        ("non_free", ctypes.c_bool),
    ]


class _DeviceInfo(ctypes.Structure):
    """struct opentmf_device_info"""
    _fields_ = [
        ("name", ctypes.c_char_p),
        ("serial", ctypes.c_char_p),
    ]


_StringList = ctypes.POINTER(ctypes.c_char_p)


def _decode(value: Optional[bytes]) -> str:
    if value is None:
        return ""
    return value.decode("utf-8", errors="replace")


def read_string_list(raw) -> IdentifierList:
    """
    Copy a NULL terminated char** into an IdentifierList

    Args:
        raw: POINTER(c_char_p) as filled in by the library

    Returns:
        IdentifierList whose token is the raw pointer, needed to free it
    """
    identifiers = []
    if raw:
        index = 0
        while raw[index] is not None:
            identifiers.append(_decode(raw[index]))
            index += 1
    return IdentifierList(identifiers, token=raw)


class NativeHandle(Handle):
    """Handle wrapping a struct opentmf_handle*"""

    def __init__(self, url: str, pointer: ctypes.c_void_p):
        super().__init__(url)
        self.pointer = pointer


class NativeContext(BaseContext):
    """
    Context backed by the libopentmf shared library

    Example:
        ctx = NativeContext("/usr/local/lib/libopentmf.so")
        ctx.init()
    """

    def __init__(self, library_path: str = "libopentmf.so"):
        self.library_path = library_path
        self._lib = None
        self._ctx = ctypes.c_void_p()

    @classmethod
    def from_settings(cls, settings) -> "NativeContext":
        return cls(settings.library_path)

    # ============ Library Binding ============

    def _load(self) -> None:
        try:
            lib = ctypes.CDLL(self.library_path)
        except OSError as e:
            logger.debug(f"Unable to load {self.library_path}: {e}")
            raise OpenTMFError(Status.ERROR_NOT_FOUND, f"Unable to load {self.library_path}") from e

        void_pp = ctypes.POINTER(ctypes.c_void_p)
        list_p = ctypes.POINTER(_StringList)
        signatures = {
            "opentmf_init": ([void_pp], ctypes.c_int),
            "opentmf_exit": ([ctypes.c_void_p], ctypes.c_int),
            "opentmf_get_driver_list": ([ctypes.c_void_p, list_p], ctypes.c_int),
            "opentmf_free_driver_list": ([ctypes.c_void_p, _StringList], ctypes.c_int),
            "opentmf_open": ([ctypes.c_void_p, ctypes.c_char_p, void_pp], ctypes.c_int),
            "opentmf_close": ([ctypes.c_void_p], ctypes.c_int),
            "opentmf_drv_get_info": ([ctypes.c_void_p], ctypes.POINTER(_DriverInfo)),
            "opentmf_drv_get_device_list": ([ctypes.c_void_p, list_p], ctypes.c_int),
            "opentmf_drv_free_device_list": ([ctypes.c_void_p, _StringList], ctypes.c_int),
            "opentmf_dev_get_info": ([ctypes.c_void_p], ctypes.POINTER(_DeviceInfo)),
            "opentmf_get_status_str": ([ctypes.c_int], ctypes.c_char_p),
        }

        for name, (argtypes, restype) in signatures.items():
            try:
                function = getattr(lib, name)
            except AttributeError as e:
                raise OpenTMFError(
                    Status.ERROR_NOT_SUPPORTED,
                    f"{self.library_path} does not export {name}"
                ) from e
            function.argtypes = argtypes
            function.restype = restype

        self._lib = lib
        logger.info(f"Loaded {self.library_path}")

    @staticmethod
    def _check(status: int) -> None:
        if status != Status.SUCCESS:
            raise OpenTMFError(status)

    def _require_lib(self):
        if self._lib is None or not self._ctx:
            raise OpenTMFError(Status.ERROR_INVALID_STATE)
        return self._lib

    # ============ Context Lifecycle ============

    def init(self) -> None:
        if self._lib is None:
            self._load()
        self._check(self._lib.opentmf_init(ctypes.byref(self._ctx)))

    def exit(self) -> None:
        lib = self._require_lib()
        status = lib.opentmf_exit(self._ctx)
        self._ctx = ctypes.c_void_p()
        self._check(status)

    # ============ Driver Discovery ============

    def get_driver_list(self) -> IdentifierList:
        lib = self._require_lib()
        raw = _StringList()
        self._check(lib.opentmf_get_driver_list(self._ctx, ctypes.byref(raw)))
        return read_string_list(raw)

    def free_driver_list(self, names: IdentifierList) -> None:
        lib = self._require_lib()
        self._check(lib.opentmf_free_driver_list(self._ctx, names.token))

    # ============ Handles ============

    def open(self, url: str) -> NativeHandle:
        lib = self._require_lib()
        pointer = ctypes.c_void_p()
        self._check(lib.opentmf_open(self._ctx, url.encode("utf-8"), ctypes.byref(pointer)))
        return NativeHandle(url, pointer)

    def close(self, handle: NativeHandle) -> None:
        lib = self._require_lib()
        self._check(lib.opentmf_close(handle.pointer))

    # ============ Metadata ============

    def drv_get_info(self, handle: NativeHandle) -> DriverInfo:
        lib = self._require_lib()
        raw = lib.opentmf_drv_get_info(handle.pointer)
        if not raw:
            raise OpenTMFError(Status.ERROR_UNKNOWN)

        info = raw.contents
        return DriverInfo(
            name=_decode(info.name),
            version=DriverVersion(
                major=info.version.major,
                minor=info.version.minor,
                patch=info.version.patch,
                extra=_decode(info.version.extra),
            ),
            description=_decode(info.description),
            authors=_decode(info.authors),
            license=_decode(info.license),
            non_free=bool(info.non_free),
        )

    def drv_get_device_list(self, handle: NativeHandle) -> IdentifierList:
        lib = self._require_lib()
        raw = _StringList()
        self._check(lib.opentmf_drv_get_device_list(handle.pointer, ctypes.byref(raw)))
        return read_string_list(raw)

    def drv_free_device_list(self, handle: NativeHandle, devices: IdentifierList) -> None:
        lib = self._require_lib()
        self._check(lib.opentmf_drv_free_device_list(handle.pointer, devices.token))

    def dev_get_info(self, handle: NativeHandle) -> DeviceInfo:
        lib = self._require_lib()
        raw = lib.opentmf_dev_get_info(handle.pointer)
        if not raw:
            raise OpenTMFError(Status.ERROR_UNKNOWN)

        info = raw.contents
        return DeviceInfo(name=_decode(info.name), serial=_decode(info.serial))

    # ============ Status Messages ============

    def get_status_str(self, status: int) -> str:
        """Prefer the library's own message table once it is loaded"""
        if self._lib is None:
            return super().get_status_str(status)
        return _decode(self._lib.opentmf_get_status_str(status)) or super().get_status_str(status)
