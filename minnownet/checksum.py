"""The Internet checksum (ones' complement sum of 16-bit words)."""

from __future__ import annotations

from typing import Iterable, Union

Data = Union[bytes, bytearray, memoryview]


class InternetChecksum:
    """Accumulates data and yields its Internet checksum.

    Byte parity carries across calls to ``add``, so data may be split anywhere.
    """

    def __init__(self, initial: int = 0) -> None:
        self._sum = initial & 0xFFFFFFFF
        self._odd = False

    def add(self, data: Data | Iterable[Data]) -> None:
        """Add a byte string, or each of an iterable of byte strings."""
        if not isinstance(data, (bytes, bytearray, memoryview)):
            for chunk in data:
                self.add(chunk)
            return
        chunk = bytes(data)
        first, second = sum(chunk[0::2]), sum(chunk[1::2])
        if self._odd:
            total = first + (second << 8)
        else:
            total = (first << 8) + second
        self._sum = (self._sum + total) & 0xFFFFFFFF
        if len(chunk) % 2:
            self._odd = not self._odd

    def value(self) -> int:
        total = self._sum
        while total > 0xFFFF:
            total = (total >> 16) + (total & 0xFFFF)
        return ~total & 0xFFFF