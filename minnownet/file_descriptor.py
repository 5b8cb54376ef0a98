"""A reference-counted handle on a kernel file descriptor."""

from __future__ import annotations

import errno
import os
import sys
from typing import Any, Callable, Iterable, TypeVar, Union

from .errors import UnixError

READ_BUFFER_SIZE = 16384

_WOULD_BLOCK = (errno.EAGAIN, errno.EINPROGRESS)

Data = Union[bytes, bytearray, memoryview]
T = TypeVar("T")


class _Handle:
    """Kernel descriptor state shared by every duplicate of a FileDescriptor."""

    __slots__ = ("fd", "eof", "closed", "non_blocking", "read_count", "write_count")

    def __init__(self, fd: int) -> None:
        self.fd = fd
        self.eof = False
        self.closed = True  # nothing to close until validation succeeds
        self.non_blocking = False
        self.read_count = 0
        self.write_count = 0

        if fd < 0:
            raise ValueError(f"invalid fd number:{fd}")
        try:
            self.non_blocking = not os.get_blocking(fd)
        except OSError as exc:
            raise UnixError("fcntl", exc.errno) from exc
        self.closed = False

    def close(self) -> None:
        try:
            os.close(self.fd)
        except OSError as exc:
            raise UnixError("close", exc.errno) from exc
        self.eof = self.closed = True

    def __del__(self) -> None:
        if self.closed:
            return
        try:
            self.close()
        except Exception as exc:  # never raise from a finalizer
            print(f"error closing file descriptor: {exc}", file=sys.stderr)


class FileDescriptor:
    """A handle on a file descriptor, closed when the last duplicate is dropped."""

    _handle: _Handle

    def __init__(self, fd: int) -> None:
        self._handle = _Handle(fd)

    @classmethod
    def _from_handle(cls, handle: _Handle) -> FileDescriptor:
        twin = cls.__new__(cls)
        twin._handle = handle
        return twin

    def _adopt(self, other: FileDescriptor) -> None:
        self._handle = other._handle

    def _syscall(self, attempt: str, func: Callable[..., T], *args: Any) -> T | None:
        """Run ``func``; on a non-blocking descriptor, "would block" yields None."""
        try:
            return func(*args)
        except OSError as exc:
            if self._handle.non_blocking and exc.errno in _WOULD_BLOCK:
                return None
            raise UnixError(attempt, exc.errno) from exc

    def _set_eof(self) -> None:
        self._handle.eof = True

    def _register_read(self) -> None:
        self._handle.read_count += 1

    def _register_write(self) -> None:
        self._handle.write_count += 1

    def read(self, size: int = READ_BUFFER_SIZE) -> bytes:
        """Read up to ``size`` bytes; b"" at end of file or when nothing is ready."""
        try:
            data = os.read(self.fd_num(), size)
        except OSError as exc:
            if self._handle.non_blocking and exc.errno in _WOULD_BLOCK:
                return b""
            raise UnixError("read", exc.errno) from exc
        self._register_read()
        if not data:
            self._set_eof()
        return data

    def readv(self, sizes: Iterable[int]) -> list[bytes]:
        """Scatter one read into buffers of the given sizes.

        Returns one byte string per size, each filled in order; buffers the
        data did not reach come back empty. Returns [] when nothing is ready.
        """
        buffers = [bytearray(n) for n in sizes]
        if not buffers:
            return []
        try:
            count = os.readv(self.fd_num(), buffers)
        except OSError as exc:
            if self._handle.non_blocking and exc.errno in _WOULD_BLOCK:
                return []
            raise UnixError("read", exc.errno) from exc
        self._register_read()

        total = sum(len(b) for b in buffers)
        if count > total:
            raise RuntimeError("read() read more than requested")

        out = []
        remaining = count
        for buf in buffers:
            take = min(len(buf), remaining)
            out.append(bytes(buf[:take]))
            remaining -= take
        return out

    def write(self, data: Data | Iterable[Data]) -> int:
        """Write a buffer, or gather-write several; return the number of bytes written."""
        if isinstance(data, (bytes, bytearray, memoryview)):
            chunks = [data]
        else:
            chunks = list(data)
        total = sum(len(c) for c in chunks)

        written = self._syscall("writev", os.writev, self.fd_num(), chunks) or 0
        self._register_write()

        if written == 0 and total != 0:
            raise RuntimeError("write returned 0 given non-empty input buffer")
        if written > total:
            raise RuntimeError("write wrote more than length of input buffer")
        return written

    def close(self) -> None:
        self._handle.close()

    def duplicate(self) -> FileDescriptor:
        """Another handle on the same descriptor, sharing its state."""
        return FileDescriptor._from_handle(self._handle)

    def set_blocking(self, blocking: bool) -> None:
        self._syscall("fcntl", os.set_blocking, self.fd_num(), blocking)
        self._handle.non_blocking = not blocking

    def fd_num(self) -> int:
        return self._handle.fd

    def eof(self) -> bool:
        return self._handle.eof

    def closed(self) -> bool:
        return self._handle.closed

    def read_count(self) -> int:
        return self._handle.read_count

    def write_count(self) -> int:
        return self._handle.write_count

    def __enter__(self) -> FileDescriptor:
        return self

    def __exit__(self, *args: Any) -> None:
        if not self.closed():
            self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed() else "open"
        return f"{type(self).__name__}(fd={self.fd_num()}, {state})"