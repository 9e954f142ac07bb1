"""FastAPI dependency injection for shared application state."""

from seerial.core.buffer import ReceiveBuffer
from seerial.core.config import Settings
from seerial.serial.session import SerialSession


class AppState:
    """Holds shared application state instances.

    Created during app startup and accessed via FastAPI dependencies.
    """

    def __init__(self) -> None:
        self.settings: Settings | None = None
        self.session: SerialSession | None = None
        self.buffer: ReceiveBuffer | None = None
        self.last_error: str | None = None


# Global app state singleton
app_state = AppState()


def get_session() -> SerialSession:
    """Get the serial session instance."""
    assert app_state.session is not None, "App not initialized"
    return app_state.session


def get_buffer() -> ReceiveBuffer:
    """Get the receive buffer instance."""
    assert app_state.buffer is not None, "App not initialized"
    return app_state.buffer
