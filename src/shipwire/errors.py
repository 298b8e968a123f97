"""Custom exceptions raised by the shipwire client."""

from __future__ import annotations

from typing import Any


class ShipwireError(Exception):
    """Base error for all client failures."""

    def __init__(self, message: str, *, context: Any | None = None) -> None:
        super().__init__(message)
        self.context = context


class ConfigurationError(ShipwireError):
    """Raised when a connection descriptor is unsupported or malformed."""


class NetworkError(ShipwireError):
    """Raised when the underlying connection fails."""


class Fault(ShipwireError):
    """Raised when the engine answers with a non-success status."""

    def __init__(self, status: int, message: str, *, context: Any | None = None) -> None:
        super().__init__(f"{status}: {message}", context=context)
        self.status = status
        self.message = message


class TruncatedStreamError(ShipwireError):
    """Raised when a multiplexed stream ends mid-header or mid-payload."""


class SerializationError(ShipwireError):
    """Raised when a payload cannot be decoded."""


class InvalidFrameError(SerializationError):
    """Raised for a frame header carrying an unknown stream tag."""


class UpgradeRejected(ShipwireError):
    """Raised when the engine does not switch protocols."""

    def __init__(self, status: int, *, context: Any | None = None) -> None:
        super().__init__(f"Connection not upgraded (status {status})", context=context)
        self.status = status


__all__ = [
    "ConfigurationError",
    "Fault",
    "InvalidFrameError",
    "NetworkError",
    "SerializationError",
    "ShipwireError",
    "TruncatedStreamError",
    "UpgradeRejected",
]
