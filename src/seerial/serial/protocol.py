"""asyncio.Protocol adapter that turns serial transport callbacks into events."""

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class SessionProtocol(asyncio.Protocol):
    """Event-driven bridge between a pyserial-asyncio transport and a Transport.

    Forwards ``connection_made`` as *opened*, ``data_received`` as *data*,
    a clean ``connection_lost`` as *closed* and a failed one as *error*.
    Tracks write flow control so callers can wait for the write buffer to
    empty.
    """

    def __init__(
        self,
        on_opened: Callable[[], None],
        on_data: Callable[[bytes], None],
        on_error: Callable[[Exception], None],
        on_closed: Callable[[], None],
    ) -> None:
        self._on_opened = on_opened
        self._on_data = on_data
        self._on_error = on_error
        self._on_closed = on_closed
        self._transport: asyncio.Transport | None = None
        self._lost = asyncio.get_running_loop().create_future()
        self._writable = asyncio.Event()
        self._writable.set()

    # -- asyncio.Protocol callbacks ------------------------------------------

    def connection_made(self, transport: asyncio.Transport) -> None:  # type: ignore[override]
        self._transport = transport
        # Zero water marks: pause_writing fires whenever bytes are left in the
        # transport buffer and resume_writing once it is fully flushed.
        transport.set_write_buffer_limits(high=0, low=0)
        logger.debug("SessionProtocol: connection made")
        self._on_opened()

    def connection_lost(self, exc: Exception | None) -> None:
        self._transport = None
        self._writable.set()
        if not self._lost.done():
            self._lost.set_result(exc)
        logger.debug("SessionProtocol: connection lost (exc=%s)", exc)
        if exc is None:
            self._on_closed()
        else:
            self._on_error(exc)

    def data_received(self, data: bytes) -> None:
        self._on_data(data)

    def pause_writing(self) -> None:
        self._writable.clear()

    def resume_writing(self) -> None:
        self._writable.set()

    # -- public API ----------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._transport is not None

    def write(self, data: bytes) -> None:
        """Hand *data* to the transport.

        Raises:
            ConnectionError: If the transport is gone
        """
        if self._transport is None or self._transport.is_closing():
            raise ConnectionError("Serial transport is not open")
        self._transport.write(data)

    async def wait_writable(self) -> None:
        """Wait until the transport's write buffer is empty."""
        await self._writable.wait()

    async def wait_lost(self) -> Exception | None:
        """Wait for connection_lost and return its exception, if any."""
        return await asyncio.shield(self._lost)
