"""Core application functionality."""

from seerial.core.buffer import ReceiveBuffer, ReceivedChunk
from seerial.core.config import Settings, setup_logging
from seerial.core.models import ConnectionState, Parity, SessionConfig

__all__ = [
    "ConnectionState",
    "Parity",
    "ReceiveBuffer",
    "ReceivedChunk",
    "SessionConfig",
    "Settings",
    "setup_logging",
]
