"""Big-endian parsing from and serialization to lists of byte chunks."""

from __future__ import annotations

from collections import deque
from typing import Any, Iterable


class Parser:
    """Reads big-endian fields from a sequence of byte chunks.

    Running out of input sets a sticky error flag instead of raising; once the
    flag is set, reads return zero values and consume nothing.
    """

    def __init__(self, buffers: Iterable[bytes]) -> None:
        self._chunks: deque[bytes] = deque(bytes(b) for b in buffers if len(b))
        self._skip = 0
        self._size = sum(len(c) for c in self._chunks)
        self._error = False

    def has_error(self) -> bool:
        return self._error

    def set_error(self) -> None:
        self._error = True

    def remaining(self) -> int:
        """Number of unread bytes."""
        return self._size

    def remove_prefix(self, n: int) -> None:
        """Discard up to ``n`` bytes from the front of the input."""
        while n > 0 and self._chunks:
            front = self._chunks[0]
            take = min(n, len(front) - self._skip)
            self._skip += take
            self._size -= take
            n -= take
            if self._skip == len(front):
                self._chunks.popleft()
                self._skip = 0

    def _take(self, n: int) -> bytes:
        parts = []
        while n > 0:
            front = self._chunks[0]
            take = min(n, len(front) - self._skip)
            parts.append(front[self._skip : self._skip + take])
            self.remove_prefix(take)
            n -= take
        return b"".join(parts)

    def _check_size(self, n: int) -> bool:
        if n > self._size:
            self._error = True
        return not self._error

    def integer(self, size: int) -> int:
        """Read an unsigned big-endian integer of ``size`` bytes (0 on error)."""
        if not self._check_size(size):
            return 0
        return int.from_bytes(self._take(size), "big")

    def string(self, length: int) -> bytes:
        """Read ``length`` raw bytes (zero bytes on error)."""
        if not self._check_size(length):
            return bytes(length)
        return self._take(length)

    def all_remaining(self) -> list[bytes]:
        """Consume and return the rest of the input as chunks."""
        out = list(self.buffer())
        self._chunks.clear()
        self._skip = 0
        self._size = 0
        return out

    def all_remaining_bytes(self) -> bytes:
        """Consume and return the rest of the input as one byte string."""
        return b"".join(self.all_remaining())

    def buffer(self) -> list[bytes]:
        """Return the unread input as chunks without consuming it."""
        if not self._chunks:
            return []
        first, *rest = self._chunks
        return [first[self._skip :], *rest]


class Serializer:
    """Writes big-endian fields and raw buffers into a list of byte chunks."""

    def __init__(self, initial: bytes = b"") -> None:
        self._output: list[bytes] = []
        self._pending = bytearray(initial)

    def integer(self, value: int, size: int) -> None:
        """Append ``value`` as an unsigned big-endian integer of ``size`` bytes."""
        if value < 0 or value >= 1 << (8 * size):
            raise ValueError(f"value {value} does not fit in {size} bytes")
        self._pending += value.to_bytes(size, "big")

    def buffer(self, data: bytes) -> None:
        """Append a raw buffer as its own chunk (empty buffers are dropped)."""
        self.flush()
        if data:
            self._output.append(bytes(data))

    def buffers(self, chunks: Iterable[bytes]) -> None:
        for chunk in chunks:
            self.buffer(chunk)

    def flush(self) -> None:
        if self._pending:
            self._output.append(bytes(self._pending))
            self._pending.clear()

    def output(self) -> list[bytes]:
        self.flush()
        return list(self._output)


def serialize(obj: Any) -> list[bytes]:
    """Serialize any object with a ``serialize(serializer)`` method."""
    serializer = Serializer()
    obj.serialize(serializer)
    return serializer.output()


def parse(obj: Any, buffers: Iterable[bytes], *args: Any) -> bool:
    """Parse ``buffers`` into ``obj``; return True if parsing succeeded."""
    parser = Parser(buffers)
    obj.parse(parser, *args)
    return not parser.has_error()