"""Error types raised while locating a broker and talking to its management agent."""
from __future__ import annotations


class BrokerToolError(RuntimeError):
    """Base class for every error raised by the client killer."""


class ConfigurationError(BrokerToolError):
    """The requested run is invalid and must not contact the broker."""


class MalformedObjectNameError(ConfigurationError):
    """An object name or pattern could not be parsed or built."""


class ProcessNotFoundError(BrokerToolError):
    """No accessible process exists for the given process id."""

    def __init__(self, pid: int, reason: str = "not found") -> None:
        super().__init__(f"Process {pid} {reason}")
        self.pid = pid


class ManagementConnectionError(BrokerToolError):
    """The management agent could not be reached or answered garbage."""


class ManagementOperationError(BrokerToolError):
    """The agent rejected a read or invoke on a single management object."""

    def __init__(self, message: str, error_type: str | None = None) -> None:
        super().__init__(message)
        self.error_type = error_type


class InstanceNotFoundError(ManagementOperationError):
    """The management object no longer exists."""


class AttributeNotFoundError(ManagementOperationError):
    """The management object has no attribute with the requested name."""


__all__ = [
    "BrokerToolError",
    "ConfigurationError",
    "MalformedObjectNameError",
    "ProcessNotFoundError",
    "ManagementConnectionError",
    "ManagementOperationError",
    "InstanceNotFoundError",
    "AttributeNotFoundError",
]
