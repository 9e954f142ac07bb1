"""Async serial session manager with a small REST gateway."""

from seerial.core.errors import ErrorKind, NotConnectedError, OpenFailedError, SessionError, WriteFailedError
from seerial.core.models import BytesPayload, ConnectionState, Parity, SessionConfig, TextPayload
from seerial.serial.session import SerialSession
from seerial.serial.transport import SerialTransport, Transport

__version__ = "0.1.0"

__all__ = [
    "BytesPayload",
    "ConnectionState",
    "ErrorKind",
    "NotConnectedError",
    "OpenFailedError",
    "Parity",
    "SerialSession",
    "SerialTransport",
    "SessionConfig",
    "SessionError",
    "TextPayload",
    "Transport",
    "WriteFailedError",
]
