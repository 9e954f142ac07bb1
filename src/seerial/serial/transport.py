"""Serial transport: the physical port behind a session.

A transport handle is single-use: it is constructed with the link settings,
subscribed to once, opened once and closed once. Outcomes of ``open()`` and
anything that happens on the line afterwards are reported through the four
subscribed events (opened, data, error, closed).
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

import serial
import serial_asyncio

from seerial.core.models import Parity
from seerial.serial.protocol import SessionProtocol

logger = logging.getLogger(__name__)

OpenedHandler = Callable[[], None]
DataHandler = Callable[[bytes], None]
ErrorHandler = Callable[[Exception], None]
ClosedHandler = Callable[[], None]

_BYTESIZES = {
    5: serial.FIVEBITS,
    6: serial.SIXBITS,
    7: serial.SEVENBITS,
    8: serial.EIGHTBITS,
}

_STOPBITS = {
    1: serial.STOPBITS_ONE,
    2: serial.STOPBITS_TWO,
}

_PARITIES = {
    Parity.NONE: serial.PARITY_NONE,
    Parity.ODD: serial.PARITY_ODD,
    Parity.EVEN: serial.PARITY_EVEN,
    Parity.MARK: serial.PARITY_MARK,
    Parity.SPACE: serial.PARITY_SPACE,
}


def _ignore(*args) -> None:
    pass


class Transport(ABC):
    """Abstract byte-stream transport consumed by SerialSession.

    Implementations must emit exactly the subscribed events and must not
    raise from ``open()`` once constructed; open failures are error events.
    """

    def __init__(
        self,
        link_address: str,
        baud_rate: int,
        data_bits: int,
        stop_bits: int,
        parity: Parity | str,
    ) -> None:
        self.link_address = link_address
        self.baud_rate = baud_rate
        self.data_bits = data_bits
        self.stop_bits = stop_bits
        self.parity = Parity(parity)

        self._on_opened: OpenedHandler = _ignore
        self._on_data: DataHandler = _ignore
        self._on_error: ErrorHandler = _ignore
        self._on_closed: ClosedHandler = _ignore

    def subscribe(
        self,
        on_opened: OpenedHandler,
        on_data: DataHandler,
        on_error: ErrorHandler,
        on_closed: ClosedHandler,
    ) -> None:
        """Register the handlers for the four transport events."""
        self._on_opened = on_opened
        self._on_data = on_data
        self._on_error = on_error
        self._on_closed = on_closed

    @abstractmethod
    def open(self) -> None:
        """Start opening the port; completion is reported by opened or error."""

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """Queue *data* for transmission.

        Raises:
            Exception: If the bytes could not be handed to the port
        """

    @abstractmethod
    async def drain(self) -> None:
        """Wait until every written byte has left the local buffers."""

    @abstractmethod
    async def close(self) -> None:
        """Close the port and wait for completion.

        Raises:
            Exception: The close-time error reported by the port, if any
        """


class SerialTransport(Transport):
    """Transport backed by pyserial and pyserial-asyncio."""

    def __init__(
        self,
        link_address: str,
        baud_rate: int = 9600,
        data_bits: int = 8,
        stop_bits: int = 1,
        parity: Parity | str = Parity.NONE,
    ) -> None:
        """
        Build an unopened serial port for the given link settings.

        Args:
            link_address: Device path (e.g., '/dev/ttyUSB0') or pyserial URL
            baud_rate: Line speed in baud
            data_bits: 5, 6, 7 or 8
            stop_bits: 1 or 2
            parity: none, odd, even, mark or space

        Raises:
            ValueError: If a setting is not supported
            SerialException: If pyserial rejects the link address
        """
        super().__init__(link_address, baud_rate, data_bits, stop_bits, parity)

        if data_bits not in _BYTESIZES:
            raise ValueError(f"Unsupported data bits: {data_bits}")
        if stop_bits not in _STOPBITS:
            raise ValueError(f"Unsupported stop bits: {stop_bits}")

        self._serial: serial.Serial = serial.serial_for_url(
            link_address,
            do_not_open=True,
            baudrate=baud_rate,
            bytesize=_BYTESIZES[data_bits],
            stopbits=_STOPBITS[stop_bits],
            parity=_PARITIES[self.parity],
        )

        self._transport: asyncio.Transport | None = None
        self._protocol: SessionProtocol | None = None
        self._open_task: asyncio.Task | None = None
        self._closing = False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="serial-drain")

    @property
    def connected(self) -> bool:
        """Check if the port is open and wired to the event loop."""
        return self._protocol is not None and self._protocol.connected

    def open(self) -> None:
        if self._open_task is not None:
            raise RuntimeError("Transport has already been opened")
        self._open_task = asyncio.get_running_loop().create_task(self._open())

    async def _open(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            logger.info("Opening serial port %s at %d baud", self.link_address, self.baud_rate)
            self._serial.open()
            self._transport, self._protocol = await serial_asyncio.connection_for_serial(
                loop, self._make_protocol, self._serial
            )
        except Exception as e:
            logger.error("Failed to open %s: %s", self.link_address, e)
            if self._serial.is_open:
                self._serial.close()
            self._executor.shutdown(wait=False)
            self._on_error(e)

    def _make_protocol(self) -> SessionProtocol:
        return SessionProtocol(
            on_opened=self._handle_opened,
            on_data=self._handle_data,
            on_error=self._handle_lost,
            on_closed=self._handle_closed,
        )

    def _handle_opened(self) -> None:
        self._on_opened()

    def _handle_data(self, data: bytes) -> None:
        self._on_data(data)

    def _handle_lost(self, exc: Exception) -> None:
        if self._closing:
            # close() raises this to its caller; the port is closed either way.
            logger.debug("Port %s lost while closing: %s", self.link_address, exc)
            self._on_closed()
            return
        logger.error("Serial port %s failed: %s", self.link_address, exc)
        self._executor.shutdown(wait=False)
        self._on_error(exc)

    def _handle_closed(self) -> None:
        self._on_closed()

    async def write(self, data: bytes) -> None:
        if self._protocol is None:
            raise ConnectionError("Serial port is not open")
        self._protocol.write(data)

    async def drain(self) -> None:
        if self._protocol is None:
            raise ConnectionError("Serial port is not open")

        await self._protocol.wait_writable()

        # Block until the OS output queue has gone out on the wire.
        serial_obj = getattr(self._transport, "serial", None)
        if serial_obj is not None:
            await asyncio.get_running_loop().run_in_executor(self._executor, serial_obj.flush)

    async def close(self) -> None:
        self._closing = True
        try:
            if self._transport is None or self._protocol is None:
                return
            logger.info("Closing serial port %s", self.link_address)
            protocol = self._protocol
            self._transport.close()
            exc = await protocol.wait_lost()
            if exc is not None:
                raise exc
        finally:
            self._executor.shutdown(wait=False)
