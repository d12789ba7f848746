"""
Status codes and exceptions for OpenTMF calls
"""

from enum import IntEnum
from typing import Any, Dict


class Status(IntEnum):
    """Status codes returned by the OpenTMF layer"""
    SUCCESS = 0
    ERROR_UNKNOWN = -1
    ERROR_INVALID_ARGUMENT = -2
    ERROR_INVALID_URL = -3
    ERROR_NOT_FOUND = -4
    ERROR_NO_MEMORY = -5
    ERROR_NOT_SUPPORTED = -6
    ERROR_IO = -7
    ERROR_BUSY = -8
    ERROR_INVALID_STATE = -9


_STATUS_MESSAGES: Dict[int, str] = {
    Status.SUCCESS: "Success",
    Status.ERROR_UNKNOWN: "Unknown error",
    Status.ERROR_INVALID_ARGUMENT: "Invalid argument",
    Status.ERROR_INVALID_URL: "Invalid URL",
    Status.ERROR_NOT_FOUND: "Not found",
    Status.ERROR_NO_MEMORY: "Out of memory",
    Status.ERROR_NOT_SUPPORTED: "Not supported",
    Status.ERROR_IO: "Input/output error",
    Status.ERROR_BUSY: "Resource busy",
    Status.ERROR_INVALID_STATE: "Invalid state",
}


def get_status_str(status: int) -> str:
    """
    Translate a status code into a human readable message

    Args:
        status: Numeric status code

    Returns:
        Message text, "Unknown status" for codes outside the table

    Example:
        >>> get_status_str(Status.ERROR_NOT_FOUND)
        'Not found'
    """
    return _STATUS_MESSAGES.get(status, "Unknown status")


class OpenTMFUtilsException(Exception):
    """Base exception for opentmf-utils"""
    def __init__(self, message: str, details: Dict[str, Any] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class OpenTMFError(OpenTMFUtilsException):
    """A call into the OpenTMF layer returned a non-success status"""
    def __init__(self, status: int, message: str = None):
        self.status = int(status)
        super().__init__(
            message=message or get_status_str(self.status),
            details={"status": self.status}
        )

    def __str__(self) -> str:
        return f"{self.message} ({self.status})"


class BackendNotFoundError(OpenTMFUtilsException, KeyError):
    """Requested backend is not registered"""
    def __init__(self, name: str, available: list = None):
        super().__init__(
            message=f"Unknown backend: '{name}'. Available backends: {available or []}",
            details={"backend": name}
        )

    def __str__(self) -> str:
        return self.message
