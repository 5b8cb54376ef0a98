import ipaddress

import pytest

from minnownet.checksum import InternetChecksum
from minnownet.ipv4 import IPv4Datagram, IPv4Header
from minnownet.parser import Serializer, parse, serialize

SRC = int(ipaddress.IPv4Address("10.0.0.1"))
DST = int(ipaddress.IPv4Address("10.0.0.2"))


def _header(**kwargs):
    fields = dict(len=40, id=7, src=SRC, dst=DST)
    fields.update(kwargs)
    header = IPv4Header(**fields)
    header.compute_checksum()
    return header


def test_defaults_match_constants():
    header = IPv4Header()
    assert header.ttl == IPv4Header.DEFAULT_TTL
    assert header.proto == IPv4Header.PROTO_TCP
    assert header.hlen * 4 == IPv4Header.LENGTH


@pytest.mark.parametrize("kwargs", [{}, {"df": False, "mf": True, "offset": 100}, {"ttl": 1, "tos": 3}])
def test_round_trip(kwargs):
    header = _header(**kwargs)
    wire = serialize(header)
    assert sum(len(c) for c in wire) == IPv4Header.LENGTH
    out = IPv4Header()
    assert parse(out, wire)
    assert out == header


def test_checksum_verifies_to_zero():
    check = InternetChecksum()
    check.add(serialize(_header()))
    assert check.value() == 0


def test_corrupted_header_fails():
    wire = bytearray(b"".join(serialize(_header())))
    wire[8] ^= 0x01
    assert not parse(IPv4Header(), [bytes(wire)])


def test_short_header_length_fails():
    assert not parse(IPv4Header(), serialize(_header(hlen=4)))


def test_wrong_version_on_wire_fails():
    wire = bytearray(b"".join(serialize(_header())))
    wire[0] = (6 << 4) | 5
    assert not parse(IPv4Header(), [bytes(wire)])


def test_serialize_wrong_version_raises():
    with pytest.raises(ValueError, match="wrong IP version"):
        IPv4Header(ver=6).serialize(Serializer())


def test_options_are_skipped():
    header = _header(hlen=6, len=28)
    wire = b"".join(serialize(header)) + b"\x01\x01\x01\x01" + b"data"
    out = IPv4Datagram()
    assert parse(out, [wire])
    assert out.header == header
    assert out.payload == [b"data"]


def test_payload_length():
    assert _header().payload_length() == 20


def test_pseudo_checksum_tracks_fields():
    base = _header()
    longer = _header(len=base.len + 3)
    assert longer.pseudo_checksum() - base.pseudo_checksum() == 3


def test_str():
    assert str(_header()) == "IPv4 len=40 protocol=6 ttl=128 src=10.0.0.1 dst=10.0.0.2"


def test_datagram_round_trip():
    datagram = IPv4Datagram(header=_header(len=25), payload=[b"hello"])
    wire = serialize(datagram)
    assert wire[1:] == [b"hello"]
    out = IPv4Datagram()
    assert parse(out, wire)
    assert out == datagram