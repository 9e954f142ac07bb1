"""Shared test fixtures."""

import asyncio

import pytest

from seerial.serial.transport import Transport

# Link address used by the in-memory transport
TEST_LINK = "sim0"


class FakeTransport(Transport):
    """Scriptable in-memory Transport.

    ``open()`` emits *opened* on the next loop iteration when ``auto_open``
    is set; otherwise the test drives events with the ``emit_*`` helpers.
    Every write/drain/close is appended to ``calls`` in order.
    """

    def __init__(
        self,
        link_address: str,
        baud_rate: int = 9600,
        data_bits: int = 8,
        stop_bits: int = 1,
        parity: str = "none",
        auto_open: bool = True,
        write_error: Exception | None = None,
        drain_error: Exception | None = None,
        close_error: Exception | None = None,
    ):
        super().__init__(link_address, baud_rate, data_bits, stop_bits, parity)
        self.auto_open = auto_open
        self.write_error = write_error
        self.drain_error = drain_error
        self.close_error = close_error
        self.opened = False
        self.closed = False
        self.open_calls = 0
        self.written: list[bytes] = []
        self.calls: list[str] = []

    def open(self) -> None:
        self.open_calls += 1
        if self.auto_open:
            asyncio.get_running_loop().call_soon(self.emit_opened)

    async def write(self, data: bytes) -> None:
        self.calls.append("write")
        if self.write_error is not None:
            raise self.write_error
        self.written.append(bytes(data))
        await asyncio.sleep(0)

    async def drain(self) -> None:
        await asyncio.sleep(0)
        self.calls.append("drain")
        if self.drain_error is not None:
            raise self.drain_error

    async def close(self) -> None:
        self.calls.append("close")
        await asyncio.sleep(0)
        self.closed = True
        if self.close_error is not None:
            raise self.close_error
        self.emit_closed()

    # -- event helpers -------------------------------------------------------

    def emit_opened(self) -> None:
        self.opened = True
        self._on_opened()

    def emit_data(self, data: bytes) -> None:
        self._on_data(data)

    def emit_error(self, exc: Exception) -> None:
        self._on_error(exc)

    def emit_closed(self) -> None:
        self._on_closed()


class TransportFactory:
    """Transport factory that records every handle it builds."""

    def __init__(self, **options):
        self.options = options
        self.created: list[FakeTransport] = []

    def __call__(self, **kwargs) -> FakeTransport:
        transport = FakeTransport(**kwargs, **self.options)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


@pytest.fixture
def factory() -> TransportFactory:
    """Factory whose transports open immediately."""
    return TransportFactory()


@pytest.fixture
def manual_factory() -> TransportFactory:
    """Factory whose transports wait for emit_opened()/emit_error()."""
    return TransportFactory(auto_open=False)
