import pytest

from minnownet.address import Address
from minnownet.config import FdAdapterConfig
from minnownet.ipv4 import IPv4Datagram, IPv4Header
from minnownet.parser import parse, serialize
from minnownet.tcp_message import TCPMessage, TCPReceiverMessage, TCPSegment, TCPSenderMessage
from minnownet.tcp_over_ip import TCPOverIPv4Adapter

A = Address.from_ip("10.0.0.1", 1000)
B = Address.from_ip("10.0.0.2", 2000)
C = Address.from_ip("10.0.0.3", 2000)


def make_adapter(source, destination):
    return TCPOverIPv4Adapter(FdAdapterConfig(source=source, destination=destination))


def data_message():
    return TCPMessage(
        TCPSenderMessage(seqno=12345, payload=b"hello"),
        TCPReceiverMessage(ackno=678, window_size=1000),
    )


def syn_message(rst=False):
    return TCPMessage(TCPSenderMessage(seqno=137, syn=True, rst=rst), TCPReceiverMessage(window_size=1000))


def test_wrap_sets_addresses_and_protocol():
    datagram = make_adapter(A, B).wrap_tcp_in_ip(data_message())
    assert datagram.header.src == A.ipv4_numeric()
    assert datagram.header.dst == B.ipv4_numeric()
    assert datagram.header.proto == IPv4Header.PROTO_TCP


def test_wrap_length_covers_header_and_payload():
    datagram = make_adapter(A, B).wrap_tcp_in_ip(data_message())
    header_bytes = sum(len(c) for c in serialize(datagram.header))
    payload_bytes = sum(len(c) for c in datagram.payload)
    assert datagram.header.len == header_bytes + payload_bytes


def test_wrapped_datagram_parses_with_valid_checksums():
    datagram = make_adapter(A, B).wrap_tcp_in_ip(data_message())
    parsed = IPv4Datagram()
    assert parse(parsed, serialize(datagram)) is True
    segment = TCPSegment()
    assert parse(segment, parsed.payload, parsed.header.pseudo_checksum()) is True
    assert segment.udinfo.src_port == A.port()
    assert segment.udinfo.dst_port == B.port()


def test_round_trip_between_peers():
    message = data_message()
    datagram = make_adapter(A, B).wrap_tcp_in_ip(message)
    assert make_adapter(B, A).unwrap_tcp_in_ip(datagram) == message


@pytest.mark.parametrize(
    "source, destination",
    [
        (C, A),  # not addressed to us
        (B, Address.from_ip("10.0.0.3", 1000)),  # not from our peer
        (Address.from_ip("10.0.0.2", 2001), A),  # wrong destination port
        (B, Address.from_ip("10.0.0.1", 1001)),  # wrong source port
    ],
)
def test_unrelated_datagrams_are_ignored(source, destination):
    datagram = make_adapter(A, B).wrap_tcp_in_ip(data_message())
    assert make_adapter(source, destination).unwrap_tcp_in_ip(datagram) is None


def test_non_tcp_protocol_is_ignored():
    datagram = make_adapter(A, B).wrap_tcp_in_ip(data_message())
    datagram.header.proto = 17
    assert make_adapter(B, A).unwrap_tcp_in_ip(datagram) is None


def test_corrupt_segment_is_ignored():
    datagram = make_adapter(A, B).wrap_tcp_in_ip(data_message())
    data = bytearray(b"".join(datagram.payload))
    data[-1] ^= 0xFF
    datagram.payload = [bytes(data)]
    assert make_adapter(B, A).unwrap_tcp_in_ip(datagram) is None


def test_listening_adapter_accepts_syn_and_learns_peer():
    listener = make_adapter(Address.from_ip("0", 2000), Address.from_ip("0", 0))
    listener.set_listening(True)
    message = syn_message()
    datagram = make_adapter(A, B).wrap_tcp_in_ip(message)

    assert listener.unwrap_tcp_in_ip(datagram) == message
    assert listener.listening() is False
    assert listener.config().source == B
    assert listener.config().destination == A


def test_listening_adapter_ignores_non_syn():
    listener = make_adapter(Address.from_ip("0", 2000), Address.from_ip("0", 0))
    listener.set_listening(True)
    datagram = make_adapter(A, B).wrap_tcp_in_ip(data_message())
    assert listener.unwrap_tcp_in_ip(datagram) is None
    assert listener.listening() is True


def test_listening_adapter_ignores_syn_with_rst():
    listener = make_adapter(Address.from_ip("0", 2000), Address.from_ip("0", 0))
    listener.set_listening(True)
    datagram = make_adapter(A, B).wrap_tcp_in_ip(syn_message(rst=True))
    assert listener.unwrap_tcp_in_ip(datagram) is None
    assert listener.listening() is True
    assert listener.config().destination == Address.from_ip("0", 0)