"""Carrying TCP over IPv4 through a TUN device."""

from __future__ import annotations

from typing import Optional

from .config import FdAdapterConfig
from .file_descriptor import READ_BUFFER_SIZE, FileDescriptor
from .ipv4 import IPv4Datagram, IPv4Header
from .parser import parse, serialize
from .tcp_message import TCPMessage
from .tcp_over_ip import TCPOverIPv4Adapter


class TCPOverIPv4OverTunFdAdapter(TCPOverIPv4Adapter):
    """Reads and writes IPv4 datagrams holding TCP segments on a TUN device."""

    def __init__(self, tun: FileDescriptor, config: Optional[FdAdapterConfig] = None) -> None:
        super().__init__(config)
        self._tun = tun

    def read(self) -> Optional[TCPMessage]:
        """Read one datagram; return its TCP message if it is valid and for this connection."""
        buffers = self._tun.readv([IPv4Header.LENGTH, READ_BUFFER_SIZE])
        if not buffers:
            return None
        datagram = IPv4Datagram()
        if parse(datagram, buffers):
            return self.unwrap_tcp_in_ip(datagram)
        return None

    def write(self, message: TCPMessage) -> None:
        """Wrap ``message`` in an IPv4 datagram and write it to the device."""
        self._tun.write(serialize(self.wrap_tcp_in_ip(message)))

    def fd(self) -> FileDescriptor:
        """The underlying device descriptor."""
        return self._tun