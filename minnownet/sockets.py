"""Sockets built on FileDescriptor: UDP, TCP, packet and Unix-domain."""

from __future__ import annotations

import errno
import socket
import struct
from typing import Any, Callable, TypeVar, Union

from .address import Address
from .errors import UnixError
from .file_descriptor import READ_BUFFER_SIZE, FileDescriptor

T = TypeVar("T")
S = TypeVar("S", bound="Socket")

AF_PACKET = getattr(socket, "AF_PACKET", 17)
SO_DOMAIN = getattr(socket, "SO_DOMAIN", 39)
SO_PROTOCOL = getattr(socket, "SO_PROTOCOL", 38)
SO_BINDTODEVICE = getattr(socket, "SO_BINDTODEVICE", 25)
SOL_PACKET = 263
PACKET_ADD_MEMBERSHIP = 1
PACKET_MR_PROMISC = 1


class Socket(FileDescriptor):
    """Base class for network sockets."""

    def __init__(self, domain: int, type_: int, protocol: int = 0) -> None:
        try:
            sock = socket.socket(domain, type_, protocol)
        except OSError as exc:
            raise UnixError("socket", exc.errno) from exc
        super().__init__(sock.detach())

    @classmethod
    def from_fd(cls: type[S], fd: FileDescriptor, domain: int, type_: int, protocol: int = 0) -> S:
        """Take over ``fd``, checking that it is a socket of the given kind."""
        obj = cls.__new__(cls)
        obj._adopt_socket(fd, domain, type_, protocol)
        return obj

    def _adopt_socket(self, fd: FileDescriptor, domain: int, type_: int, protocol: int) -> None:
        self._adopt(fd)
        checks = (
            (SO_DOMAIN, domain, "domain"),
            (socket.SO_TYPE, type_, "type"),
            (SO_PROTOCOL, protocol, "protocol"),
        )
        for option, expected, what in checks:
            if self._getsockopt(socket.SOL_SOCKET, option) != expected:
                raise RuntimeError(f"socket {what} mismatch")

    def _sockcall(self, attempt: str, action: Callable[[socket.socket], T]) -> T | None:
        """Run ``action`` on a temporary socket object that borrows our descriptor."""
        try:
            sock = socket.socket(fileno=self.fd_num())
        except OSError as exc:
            raise UnixError(attempt, exc.errno) from exc
        try:
            return self._syscall(attempt, action, sock)
        finally:
            sock.detach()

    def _getsockopt(self, level: int, option: int) -> int:
        return self._sockcall("getsockopt", lambda s: s.getsockopt(level, option)) or 0

    def _setsockopt(self, level: int, option: int, value: Union[int, bytes]) -> None:
        self._sockcall("setsockopt", lambda s: s.setsockopt(level, option, value))

    def _address(self, attempt: str, getter: Callable[[socket.socket], Any]) -> Address:
        result = self._sockcall(attempt, lambda s: Address(s.family, getter(s)))
        if result is None:
            raise UnixError(attempt, errno.EAGAIN)
        return result

    def bind(self, address: Address) -> None:
        self._sockcall("bind", lambda s: s.bind(address.sockaddr))

    def bind_to_device(self, device_name: str) -> None:
        self._setsockopt(socket.SOL_SOCKET, SO_BINDTODEVICE, device_name.encode())

    def connect(self, address: Address) -> None:
        """Connect to a peer; on a non-blocking socket this may return while in progress."""
        self._sockcall("connect", lambda s: s.connect(address.sockaddr))

    def shutdown(self, how: int) -> None:
        """Shut down reading (SHUT_RD), writing (SHUT_WR) or both (SHUT_RDWR)."""
        self._sockcall("shutdown", lambda s: s.shutdown(how))
        if how == socket.SHUT_RD:
            self._register_read()
        elif how == socket.SHUT_WR:
            self._register_write()
        elif how == socket.SHUT_RDWR:
            self._register_read()
            self._register_write()
        else:
            raise ValueError("Socket.shutdown() called with invalid how")

    def local_address(self) -> Address:
        return self._address("getsockname", lambda s: s.getsockname())

    def peer_address(self) -> Address:
        return self._address("getpeername", lambda s: s.getpeername())

    def set_reuseaddr(self) -> None:
        self._setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

    def raise_if_error(self) -> None:
        """Raise the socket's pending error, as seen on non-blocking sockets."""
        socket_error = self._getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if socket_error:
            raise UnixError("socket error", socket_error)


class DatagramSocket(Socket):
    """A socket that sends and receives whole datagrams."""

    def recv(self) -> tuple[Address, bytes] | None:
        """Receive a datagram and its sender; None if nothing is ready on a non-blocking socket."""
        buf = bytearray(READ_BUFFER_SIZE)
        result = self._sockcall(
            "recvfrom", lambda s: (s.family, *s.recvfrom_into(buf, 0, socket.MSG_TRUNC))
        )
        if result is None:
            self._register_read()
            return None
        family, length, source = result
        if length > len(buf):
            raise RuntimeError("recvfrom (oversized datagram)")
        self._register_read()
        return Address(family, source), bytes(buf[:length])

    def sendto(self, destination: Address, payload: bytes) -> None:
        self._sockcall("sendto", lambda s: s.sendto(payload, destination.sockaddr))
        self._register_write()

    def send(self, payload: bytes) -> None:
        """Send to the connected peer."""
        self._sockcall("send", lambda s: s.send(payload))
        self._register_write()


class UDPSocket(DatagramSocket):
    """An unbound, unconnected UDP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM)


class TCPSocket(Socket):
    """A TCP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_STREAM)

    def listen(self, backlog: int = 16) -> None:
        self._sockcall("listen", lambda s: s.listen(backlog))

    def accept(self) -> TCPSocket:
        """Accept a new connection, blocking until one arrives."""
        self._register_read()
        conn = self._sockcall("accept", lambda s: s.accept()[0])
        if conn is None:
            raise UnixError("accept", errno.EAGAIN)
        return TCPSocket.from_fd(
            FileDescriptor(conn.detach()), socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP
        )


class PacketSocket(DatagramSocket):
    """A link-layer packet socket."""

    def __init__(self, type_: int, protocol: int) -> None:
        super().__init__(AF_PACKET, type_, protocol)

    def set_promiscuous(self) -> None:
        """Put the bound interface into promiscuous mode."""
        address = self.local_address()
        if address.family != AF_PACKET:
            raise RuntimeError("local address is not a packet address")
        try:
            ifindex = socket.if_nametoindex(address.sockaddr[0])
        except OSError as exc:
            raise UnixError("if_nametoindex", exc.errno or errno.ENODEV) from exc
        membership = struct.pack("iHH8s", ifindex, PACKET_MR_PROMISC, 0, b"")
        self._setsockopt(SOL_PACKET, PACKET_ADD_MEMBERSHIP, membership)


class LocalStreamSocket(Socket):
    """A Unix-domain stream socket taken over from an existing descriptor."""

    def __init__(self, fd: FileDescriptor) -> None:
        self._adopt_socket(fd, socket.AF_UNIX, socket.SOCK_STREAM, 0)


class LocalDatagramSocket(DatagramSocket):
    """An unbound, unconnected Unix-domain datagram socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_DGRAM)