"""Bounded log of bytes received over the serial link."""

from collections import deque
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ReceivedChunk:
    """Bytes delivered by a single data event."""

    timestamp: datetime
    data: bytes

    @property
    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")


class ReceiveBuffer:
    """In-memory log of received chunks, oldest dropped first.

    Appends happen from session data callbacks on the event loop thread,
    so no locking is needed.
    """

    def __init__(self, maxlen: int = 256) -> None:
        """Initialize an empty buffer holding at most ``maxlen`` chunks."""
        if maxlen < 1:
            raise ValueError("maxlen must be at least 1")
        self._chunks: deque[ReceivedChunk] = deque(maxlen=maxlen)
        self._total_bytes = 0
        self._last_update: datetime | None = None

    def append(self, data: bytes) -> ReceivedChunk:
        """Record a received chunk."""
        chunk = ReceivedChunk(timestamp=datetime.now(), data=bytes(data))
        self._chunks.append(chunk)
        self._total_bytes += len(chunk.data)
        self._last_update = chunk.timestamp
        return chunk

    def on_data(self, text: str, raw: bytes) -> None:
        """Session ``on_data`` callback adapter."""
        self.append(raw)

    def recent(self, limit: int | None = None) -> list[ReceivedChunk]:
        """Get the newest ``limit`` chunks (all if None), oldest first."""
        chunks = list(self._chunks)
        if limit is None:
            return chunks
        if limit <= 0:
            return []
        return chunks[-limit:]

    def clear(self) -> None:
        """Remove all chunks and reset counters."""
        self._chunks.clear()
        self._total_bytes = 0
        self._last_update = None

    @property
    def maxlen(self) -> int:
        return self._chunks.maxlen or 0

    @property
    def count(self) -> int:
        """Number of chunks currently held."""
        return len(self._chunks)

    @property
    def total_bytes(self) -> int:
        """Bytes received since creation or the last clear()."""
        return self._total_bytes

    @property
    def last_update(self) -> datetime | None:
        """Timestamp of the newest chunk."""
        return self._last_update
