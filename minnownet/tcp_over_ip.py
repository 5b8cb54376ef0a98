"""Wrapping TCP messages in IPv4 datagrams and unwrapping them again."""

from __future__ import annotations

import ipaddress
from typing import Optional

from .address import Address
from .fd_adapter import FdAdapterBase
from .ipv4 import IPv4Datagram, IPv4Header
from .parser import parse, serialize
from .tcp_message import TCPMessage, TCPSegment

_TCP_HEADER_LENGTH = 20


def _dotted(address: int) -> str:
    return str(ipaddress.IPv4Address(address))


class TCPOverIPv4Adapter(FdAdapterBase):
    """Converts between TCP messages and IPv4 datagrams for one connection."""

    def unwrap_tcp_in_ip(self, datagram: IPv4Datagram) -> Optional[TCPMessage]:
        """Extract the TCP message from a datagram, or None if it is invalid or unrelated.

        While listening, a SYN (without RST) fixes the connection's addresses
        and ports and ends the listening state.
        """
        header = datagram.header
        config = self.config()

        # binding to "0" is allowed: the reply then comes from the address contacted
        if not self.listening() and header.dst != config.source.ipv4_numeric():
            return None
        if not self.listening() and header.src != config.destination.ipv4_numeric():
            return None
        if header.proto != IPv4Header.PROTO_TCP:
            return None

        segment = TCPSegment()
        if not parse(segment, datagram.payload, header.pseudo_checksum()):
            return None

        if segment.udinfo.dst_port != config.source.port():
            return None

        if self.listening():
            sender = segment.message.sender
            if not (sender.syn and not sender.rst):
                return None
            config.source = Address.from_ip(_dotted(header.dst), config.source.port())
            config.destination = Address.from_ip(_dotted(header.src), segment.udinfo.src_port)
            self.set_listening(False)

        if segment.udinfo.src_port != config.destination.port():
            return None

        return segment.message

    def wrap_tcp_in_ip(self, message: TCPMessage) -> IPv4Datagram:
        """Build an IPv4 datagram carrying ``message`` between the configured endpoints."""
        config = self.config()
        segment = TCPSegment(message=message)
        segment.udinfo.src_port = config.source.port()
        segment.udinfo.dst_port = config.destination.port()

        datagram = IPv4Datagram()
        header = datagram.header
        header.src = config.source.ipv4_numeric()
        header.dst = config.destination.ipv4_numeric()
        header.len = header.hlen * 4 + _TCP_HEADER_LENGTH + len(message.sender.payload)

        segment.compute_checksum(header.pseudo_checksum())
        header.compute_checksum()
        datagram.payload = serialize(segment)
        return datagram