"""Serial session manager.

Owns the connection state of one logical link, serialises open/close/send
against that state and turns transport events into consumer callbacks.
Everything runs on the event loop thread; state only changes inside
operations or transport event handlers, which the loop never runs
concurrently.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from seerial.core.errors import NotConnectedError, OpenFailedError, WriteFailedError
from seerial.core.models import DEFAULT_ENCODING, ConnectionState, Parity, Payload, SessionConfig, to_payload
from seerial.serial.transport import SerialTransport, Transport

logger = logging.getLogger(__name__)

DataCallback = Callable[[str, bytes], Any]
ErrorCallback = Callable[[BaseException], Any]
ClosedCallback = Callable[[], Any]
TransportFactory = Callable[..., Transport]


class SerialSession:
    """One open-to-close lifecycle over a serial transport.

    The session never reconnects on its own. After a fault or close, a new
    ``open()`` builds a fresh transport handle.

    Example:
        >>> session = SerialSession("/dev/ttyUSB0", baud_rate=115200)
        >>> session.set_on_data(lambda text, raw: print(text))
        >>> await session.open()
        >>> await session.send("PING")
        >>> await session.close()
    """

    def __init__(
        self,
        link_address: str,
        baud_rate: int = 9600,
        data_bits: int = 8,
        stop_bits: int = 1,
        parity: Parity | str = Parity.NONE,
        transport_factory: TransportFactory | None = None,
    ):
        """
        Initialize a session in the idle state.

        Args:
            link_address: Serial device path (e.g., '/dev/ttyUSB0')
            baud_rate: Line speed (default: 9600)
            data_bits: Data bits per character (default: 8)
            stop_bits: Stop bits per character (default: 1)
            parity: Parity mode (default: none)
            transport_factory: Builds the transport on open (default: SerialTransport)

        Raises:
            pydantic.ValidationError: If the link settings are invalid
        """
        self._config = SessionConfig(
            link_address=link_address,
            baud_rate=baud_rate,
            data_bits=data_bits,
            stop_bits=stop_bits,
            parity=parity,
        )
        self._transport_factory = transport_factory or SerialTransport
        self._state = ConnectionState.IDLE
        self._transport: Transport | None = None
        self._pending_open: asyncio.Future | None = None
        self._send_lock = asyncio.Lock()
        self._last_error: BaseException | None = None

        self._on_data: DataCallback | None = None
        self._on_error: ErrorCallback | None = None
        self._on_closed: ClosedCallback | None = None

    @classmethod
    def from_config(cls, config: SessionConfig, transport_factory: TransportFactory | None = None) -> "SerialSession":
        """Create a session from an existing SessionConfig."""
        return cls(
            link_address=config.link_address,
            baud_rate=config.baud_rate,
            data_bits=config.data_bits,
            stop_bits=config.stop_bits,
            parity=config.parity,
            transport_factory=transport_factory,
        )

    # -- properties ----------------------------------------------------------

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def last_error(self) -> BaseException | None:
        """Most recent transport error, if any."""
        return self._last_error

    def is_connected(self) -> bool:
        """Check if the session is currently connected."""
        return self._state is ConnectionState.CONNECTED

    # -- callbacks -----------------------------------------------------------

    def set_on_data(self, callback: DataCallback | None) -> None:
        """Set the handler for received data, replacing any previous one.

        The handler is called as ``callback(text, raw)`` where text is the
        UTF-8 decoding of raw (invalid sequences replaced).
        """
        self._on_data = callback

    def set_on_error(self, callback: ErrorCallback | None) -> None:
        """Set the handler for transport errors, replacing any previous one."""
        self._on_error = callback

    def set_on_closed(self, callback: ClosedCallback | None) -> None:
        """Set the handler for the link closing, replacing any previous one."""
        self._on_closed = callback

    # -- lifecycle -----------------------------------------------------------

    async def open(self) -> None:
        """
        Open the serial link.

        Returns immediately when already connected or connecting; only the
        call that started the open waits for the outcome.

        Raises:
            OpenFailedError: If the transport could not be built or opened
        """
        if self._state is ConnectionState.CONNECTED:
            logger.debug("Already connected to %s", self._config.link_address)
            return

        if self._state is ConnectionState.CONNECTING:
            logger.debug("Open already in progress for %s", self._config.link_address)
            return

        if self._state is ConnectionState.CLOSING:
            raise OpenFailedError(f"Cannot open {self._config.link_address}", "session is closing")

        try:
            transport = self._transport_factory(
                link_address=self._config.link_address,
                baud_rate=self._config.baud_rate,
                data_bits=self._config.data_bits,
                stop_bits=self._config.stop_bits,
                parity=self._config.parity,
            )
        except Exception as e:
            logger.error("Failed to create transport for %s: %s", self._config.link_address, e)
            raise OpenFailedError(f"Failed to open {self._config.link_address}", e) from e

        self._transport = transport
        self._pending_open = asyncio.get_running_loop().create_future()
        self._set_state(ConnectionState.CONNECTING)

        transport.subscribe(
            on_opened=lambda: self._handle_opened(transport),
            on_data=lambda data: self._handle_data(transport, data),
            on_error=lambda exc: self._handle_error(transport, exc),
            on_closed=lambda: self._handle_closed(transport),
        )

        pending = self._pending_open
        try:
            transport.open()
        except Exception as e:
            self._handle_error(transport, e)

        await asyncio.shield(pending)

    async def close(self) -> None:
        """
        Close the serial link.

        Does nothing unless connected. Close-time transport errors are
        logged and passed to the error callback; this method never raises
        them.
        """
        if self._state is not ConnectionState.CONNECTED:
            logger.debug("Close skipped, session is %s", self._state.value)
            return

        transport = self._transport
        assert transport is not None
        self._set_state(ConnectionState.CLOSING)

        try:
            await transport.close()
        except Exception as e:
            logger.warning("Error closing %s: %s", self._config.link_address, e)
            self._last_error = e
            self._notify(self._on_error, e)

        if self._transport is transport:
            self._transport = None
        if self._state is not ConnectionState.CLOSED:
            self._set_state(ConnectionState.CLOSED)
            logger.info("Serial port %s closed", self._config.link_address)
            self._notify(self._on_closed)

    async def send(self, payload: str | bytes | bytearray | memoryview | Payload, encoding: str = DEFAULT_ENCODING) -> int:
        """
        Write a payload and wait until it has drained from local buffers.

        Overlapping calls are written one after another in call order.

        Args:
            payload: Text (encoded with ``encoding``) or raw bytes
            encoding: Codec for text payloads (default: utf-8)

        Returns:
            Number of bytes written

        Raises:
            NotConnectedError: If the session is not connected
            WriteFailedError: If the transport rejected the write or drain
            LookupError: If the encoding is unknown
            UnicodeEncodeError: If the text cannot be encoded
        """
        self._ensure_connected()
        data = to_payload(payload, encoding).to_bytes()

        async with self._send_lock:
            # State may have changed while waiting for an earlier send.
            self._ensure_connected()
            transport = self._transport
            assert transport is not None

            try:
                await transport.write(data)
            except Exception as e:
                logger.error("Write to %s failed: %s", self._config.link_address, e)
                raise WriteFailedError(f"Failed to write to {self._config.link_address}", e) from e

            try:
                await transport.drain()
            except Exception as e:
                logger.error("Drain on %s failed: %s", self._config.link_address, e)
                raise WriteFailedError(f"Failed to drain {self._config.link_address}", e) from e

        logger.debug("Sent %d bytes to %s: %s", len(data), self._config.link_address, data.hex())
        return len(data)

    def _ensure_connected(self) -> None:
        if self._state is not ConnectionState.CONNECTED:
            raise NotConnectedError(
                f"Not connected to {self._config.link_address}",
                f"session is {self._state.value}",
            )

    # -- transport events ----------------------------------------------------

    def _handle_opened(self, transport: Transport) -> None:
        if transport is not self._transport or self._state is not ConnectionState.CONNECTING:
            logger.debug("Ignoring opened event (state=%s)", self._state.value)
            return
        self._set_state(ConnectionState.CONNECTED)
        logger.info("Serial port %s opened", self._config.link_address)
        self._resolve_open()

    def _handle_data(self, transport: Transport, data: bytes) -> None:
        if transport is not self._transport:
            return
        text = data.decode("utf-8", errors="replace")
        logger.debug("Received %d bytes from %s: %s", len(data), self._config.link_address, data.hex())
        self._notify(self._on_data, text, data)

    def _handle_error(self, transport: Transport, exc: Exception) -> None:
        if transport is not self._transport:
            logger.debug("Ignoring error from stale transport: %s", exc)
            return
        logger.error("Serial port %s error: %s", self._config.link_address, exc)
        self._last_error = exc
        self._transport = None
        self._set_state(ConnectionState.FAULTED)
        self._resolve_open(OpenFailedError(f"Failed to open {self._config.link_address}", exc))
        self._notify(self._on_error, exc)

    def _handle_closed(self, transport: Transport) -> None:
        if transport is not self._transport:
            return
        self._transport = None
        self._set_state(ConnectionState.CLOSED)
        logger.info("Serial port %s closed", self._config.link_address)
        self._resolve_open(OpenFailedError(f"Failed to open {self._config.link_address}", "port closed while opening"))
        self._notify(self._on_closed)

    # -- helpers -------------------------------------------------------------

    def _set_state(self, state: ConnectionState) -> None:
        if state is not self._state:
            logger.debug("Session %s: %s -> %s", self._config.link_address, self._state.value, state.value)
            self._state = state

    def _resolve_open(self, error: OpenFailedError | None = None) -> None:
        pending, self._pending_open = self._pending_open, None
        if pending is None or pending.done():
            return
        if error is None:
            pending.set_result(None)
        else:
            pending.set_exception(error)

    def _notify(self, callback: Callable[..., Any] | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Session callback %r raised", callback)

    # -- context manager -----------------------------------------------------

    async def __aenter__(self) -> "SerialSession":
        """Async context manager entry."""
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
