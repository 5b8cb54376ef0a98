from dataclasses import dataclass

import pytest

from minnownet.parser import Parser, Serializer, parse, serialize


def test_serializer_integers_big_endian():
    s = Serializer()
    s.integer(0x0102, 2)
    s.integer(0x03, 1)
    assert s.output() == [b"\x01\x02\x03"]


def test_serializer_rejects_out_of_range():
    with pytest.raises(ValueError):
        Serializer().integer(256, 1)
    with pytest.raises(ValueError):
        Serializer().integer(-1, 2)


def test_parser_integer_across_chunks():
    p = Parser([b"\x01", b"\x02\x03"])
    assert p.integer(2) == 0x0102
    assert p.integer(1) == 0x03
    assert not p.has_error()
    assert p.remaining() == 0


def test_parser_short_input_sets_error():
    p = Parser([b"\x01"])
    assert p.integer(2) == 0
    assert p.has_error()
    assert p.remaining() == 1


def test_parser_error_is_sticky():
    p = Parser([b"\x01\x02"])
    p.set_error()
    assert p.integer(1) == 0
    assert p.remaining() == 2


def test_string_and_all_remaining():
    p = Parser([b"abc", b"de"])
    assert p.string(2) == b"ab"
    assert p.buffer() == [b"c", b"de"]
    assert p.remaining() == 3
    assert p.all_remaining() == [b"c", b"de"]
    assert p.remaining() == 0


def test_all_remaining_bytes():
    p = Parser([b"abc", b"", b"de"])
    p.remove_prefix(1)
    assert p.all_remaining_bytes() == b"bcde"


def test_remove_prefix_across_chunks():
    p = Parser([b"ab", b"cd", b"ef"])
    p.remove_prefix(3)
    assert p.string(3) == b"def"


def test_string_short_input():
    p = Parser([b"ab"])
    assert p.string(3) == bytes(3)
    assert p.has_error()


def test_serializer_buffer_flushes_and_drops_empty():
    s = Serializer(b"\x09")
    s.integer(1, 1)
    s.buffer(b"")
    s.buffers([b"xy", b"", b"z"])
    s.integer(2, 1)
    assert s.output() == [b"\x09\x01", b"xy", b"z", b"\x02"]


@dataclass
class _Pair:
    a: int = 0
    b: int = 0

    def parse(self, parser, extra=0):
        self.a = parser.integer(2) + extra
        self.b = parser.integer(4)

    def serialize(self, serializer):
        serializer.integer(self.a, 2)
        serializer.integer(self.b, 4)


@pytest.mark.parametrize("a,b", [(0, 0), (65535, 1), (4660, 4294967295)])
def test_serialize_parse_round_trip(a, b):
    wire = serialize(_Pair(a, b))
    out = _Pair()
    assert parse(out, wire)
    assert out == _Pair(a, b)


def test_parse_passes_extra_args_and_reports_failure():
    out = _Pair()
    assert parse(out, serialize(_Pair(1, 2)), 10)
    assert out.a == 11
    assert not parse(_Pair(), [b"\x00\x01"])