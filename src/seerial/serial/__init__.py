"""Serial communication layer."""

from seerial.serial.protocol import SessionProtocol
from seerial.serial.session import SerialSession
from seerial.serial.transport import SerialTransport, Transport

__all__ = ["SerialSession", "SerialTransport", "SessionProtocol", "Transport"]
