"""Error types raised by the serial session."""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories surfaced to session callers."""

    OPEN_FAILED = "open_failed"
    NOT_CONNECTED = "not_connected"
    WRITE_FAILED = "write_failed"


class SessionError(Exception):
    """Base class for session failures.

    Attributes:
        kind: Failure category
        detail: Underlying transport error, or a message when there is none
    """

    kind: ErrorKind

    def __init__(self, message: str, detail: BaseException | str | None = None) -> None:
        super().__init__(message)
        self.detail = detail

    def __str__(self) -> str:
        message = super().__str__()
        if self.detail is None:
            return message
        return f"{message}: {self.detail}"


class OpenFailedError(SessionError):
    """Transport construction or the open phase failed."""

    kind = ErrorKind.OPEN_FAILED


class NotConnectedError(SessionError):
    """Operation attempted while the session is not connected."""

    kind = ErrorKind.NOT_CONNECTED


class WriteFailedError(SessionError):
    """The transport rejected a write."""

    kind = ErrorKind.WRITE_FAILED
