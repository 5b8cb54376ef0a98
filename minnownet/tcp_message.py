"""TCP sender/receiver messages and their wire format as TCP segments."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .checksum import InternetChecksum
from .parser import Parser, Serializer

_HEADER_MIN_WORDS = 5
_FLAG_ACK = 0b0001_0000
_FLAG_RST = 0b0000_0100
_FLAG_SYN = 0b0000_0010
_FLAG_FIN = 0b0000_0001
_SEQ_MASK = 0xFFFFFFFF


@dataclass
class TCPSenderMessage:
    """What a TCP sender tells its receiver.

    ``seqno`` is the raw 32-bit sequence number of the SYN flag if set,
    otherwise of the first payload byte.
    """

    seqno: int = 0
    syn: bool = False
    payload: bytes = b""
    fin: bool = False
    rst: bool = False

    def sequence_length(self) -> int:
        """Number of sequence numbers this message occupies."""
        return int(self.syn) + len(self.payload) + int(self.fin)


@dataclass
class TCPReceiverMessage:
    """What a TCP receiver tells its sender.

    ``ackno`` is None until the receiver has seen the initial sequence number.
    """

    ackno: Optional[int] = None
    window_size: int = 0
    rst: bool = False


@dataclass
class UserDatagramInfo:
    """Ports and checksum: the UDP-like part of a TCP header."""

    src_port: int = 0
    dst_port: int = 0
    cksum: int = 0


@dataclass
class TCPMessage:
    """A sender message and a receiver message travelling together."""

    sender: TCPSenderMessage = field(default_factory=TCPSenderMessage)
    receiver: TCPReceiverMessage = field(default_factory=TCPReceiverMessage)


@dataclass
class TCPSegment:
    """A TCP message with the port and checksum fields of its header."""

    message: TCPMessage = field(default_factory=TCPMessage)
    udinfo: UserDatagramInfo = field(default_factory=UserDatagramInfo)

    def parse(self, parser: Parser, pseudo_checksum: int) -> None:
        """Parse a segment, verifying its checksum against the pseudo-header sum."""
        check = InternetChecksum(pseudo_checksum)
        check.add(parser.buffer())
        if check.value():
            parser.set_error()
            return

        sender = self.message.sender
        receiver = self.message.receiver

        self.udinfo.src_port = parser.integer(2)
        self.udinfo.dst_port = parser.integer(2)
        sender.seqno = parser.integer(4)
        receiver.ackno = parser.integer(4)

        data_offset = parser.integer(1) >> 4
        flags = parser.integer(1)
        if not flags & _FLAG_ACK:
            receiver.ackno = None
        sender.rst = receiver.rst = bool(flags & _FLAG_RST)
        sender.syn = bool(flags & _FLAG_SYN)
        sender.fin = bool(flags & _FLAG_FIN)

        receiver.window_size = parser.integer(2)
        self.udinfo.cksum = parser.integer(2)
        parser.integer(2)  # urgent pointer

        if data_offset < _HEADER_MIN_WORDS:
            parser.set_error()
        parser.remove_prefix(max(0, (data_offset - _HEADER_MIN_WORDS) * 4))

        sender.payload = parser.all_remaining_bytes()

    def serialize(self, serializer: Serializer) -> None:
        sender = self.message.sender
        receiver = self.message.receiver
        serializer.integer(self.udinfo.src_port, 2)
        serializer.integer(self.udinfo.dst_port, 2)
        serializer.integer(sender.seqno & _SEQ_MASK, 4)
        ackno = receiver.ackno if receiver.ackno is not None else 0
        serializer.integer(ackno & _SEQ_MASK, 4)
        serializer.integer(_HEADER_MIN_WORDS << 4, 1)
        flags = (
            (_FLAG_ACK if receiver.ackno is not None else 0)
            | (_FLAG_RST if sender.rst or receiver.rst else 0)
            | (_FLAG_SYN if sender.syn else 0)
            | (_FLAG_FIN if sender.fin else 0)
        )
        serializer.integer(flags, 1)
        serializer.integer(receiver.window_size, 2)
        serializer.integer(self.udinfo.cksum, 2)
        serializer.integer(0, 2)  # urgent pointer
        serializer.buffer(sender.payload)

    def compute_checksum(self, pseudo_checksum: int) -> None:
        """Set the checksum field, given the pseudo-header's contribution."""
        self.udinfo.cksum = 0
        serializer = Serializer()
        self.serialize(serializer)
        check = InternetChecksum(pseudo_checksum)
        check.add(serializer.output())
        self.udinfo.cksum = check.value()