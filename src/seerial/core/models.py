"""Data models for the serial session and the gateway API."""

import codecs
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_ENCODING = "utf-8"


class Parity(str, Enum):
    """Parity modes understood by the transport."""

    NONE = "none"
    ODD = "odd"
    EVEN = "even"
    MARK = "mark"
    SPACE = "space"


class ConnectionState(str, Enum):
    """Lifecycle state of a serial session."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"
    CLOSED = "closed"
    FAULTED = "faulted"


class SessionConfig(BaseModel):
    """Immutable link settings for one session.

    Defaults are 9600 baud, 8 data bits, 1 stop bit, no parity.
    """

    link_address: str = Field(..., min_length=1, description="Serial device path or pyserial URL")
    baud_rate: int = Field(9600, gt=0, description="Line speed in baud")
    data_bits: Literal[5, 6, 7, 8] = Field(8, description="Data bits per character")
    stop_bits: Literal[1, 2] = Field(1, description="Stop bits per character")
    parity: Parity = Field(Parity.NONE, description="Parity mode")

    @field_validator("link_address")
    @classmethod
    def validate_link_address(cls, v: str) -> str:
        """Ensure the link address is not blank."""
        if not v.strip():
            raise ValueError("link_address cannot be blank")
        return v

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "link_address": "/dev/ttyUSB0",
                "baud_rate": 115200,
                "data_bits": 8,
                "stop_bits": 1,
                "parity": "none",
            }
        },
    )


# -- payloads -----------------------------------------------------------------


@dataclass(frozen=True)
class TextPayload:
    """Text to be encoded before it goes on the wire."""

    text: str
    encoding: str = DEFAULT_ENCODING

    def to_bytes(self) -> bytes:
        # Raises LookupError for unknown codecs, UnicodeEncodeError for unencodable text.
        return codecs.encode(self.text, self.encoding)


@dataclass(frozen=True)
class BytesPayload:
    """Raw bytes sent as-is."""

    data: bytes

    def to_bytes(self) -> bytes:
        return bytes(self.data)


Payload = TextPayload | BytesPayload


def to_payload(value: "str | bytes | bytearray | memoryview | Payload", encoding: str = DEFAULT_ENCODING) -> Payload:
    """Resolve a caller-supplied value into a payload.

    Args:
        value: Text, a bytes-like object, or an existing payload
        encoding: Codec applied to text values

    Returns:
        TextPayload or BytesPayload

    Raises:
        TypeError: If value is neither text nor bytes-like
    """
    if isinstance(value, TextPayload | BytesPayload):
        return value
    if isinstance(value, str):
        return TextPayload(value, encoding)
    if isinstance(value, bytes | bytearray | memoryview):
        return BytesPayload(bytes(value))
    raise TypeError(f"Unsupported payload type: {type(value).__name__}")


# -- API models ---------------------------------------------------------------


class SessionStatusResponse(BaseModel):
    """Snapshot of the gateway's serial session."""

    link_address: str
    baud_rate: int
    state: ConnectionState
    connected: bool
    last_error: str | None = None


class SendRequest(BaseModel):
    """Request body for writing to the serial link."""

    data: str = Field(..., description="Text to send, or hex digits when hex=true")
    encoding: str = Field(DEFAULT_ENCODING, description="Codec used for text data")
    hex: bool = Field(False, description="Interpret data as hex-encoded bytes")

    model_config = ConfigDict(json_schema_extra={"example": {"data": "PING\r\n", "encoding": "utf-8", "hex": False}})


class SendResponse(BaseModel):
    """Response after a drained write."""

    success: bool
    bytes_sent: int


class ReceivedChunkModel(BaseModel):
    """One received chunk as exposed by the API."""

    timestamp: datetime
    text: str
    hex: str
    size: int


class ReceivedResponse(BaseModel):
    """Recently received chunks, oldest first."""

    count: int
    total_bytes: int
    last_update: datetime | None
    chunks: list[ReceivedChunkModel]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    state: ConnectionState
    link_address: str | None
    last_error: str | None = None


class ErrorResponse(BaseModel):
    """Error response body."""

    detail: str
