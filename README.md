# minnownet

A small user-space networking toolkit for Linux. It is a library with no command-line tool. It has four parts.

- **Wire formats.**
  - `minnownet.parser` has `Parser` and `Serializer`, which read and write big-endian integers over a list of byte chunks.
  - `minnownet.checksum` has the Internet checksum, `InternetChecksum`.
  - The header modules are `minnownet.ethernet` (`EthernetHeader`, `EthernetFrame`), `minnownet.arp` (`ARPMessage`), `minnownet.ipv4` (`IPv4Header`, `IPv4Datagram`) and `minnownet.tcp_message` (`TCPSenderMessage`, `TCPReceiverMessage`, `TCPMessage`, `TCPSegment`).
- **System wrappers.**
  - `minnownet.file_descriptor.FileDescriptor` counts reads and writes and tracks EOF.
  - `minnownet.sockets` has the socket classes: `UDPSocket`, `TCPSocket`, `PacketSocket`, `LocalStreamSocket` and `LocalDatagramSocket`.
  - `minnownet.address.Address` holds a socket address.
  - `minnownet.tun` has the TUN and TAP devices: `TunTapFD`, `TunFD` and `TapFD`.
- **An event loop.** `minnownet.eventloop.EventLoop` runs a callback when a file descriptor is readable or writable, or when a rule says it wants to run. It detects busy waits.
- **Adapters** that carry TCP messages inside IPv4 datagrams over a TUN device: `minnownet.tcp_over_ip`, `minnownet.tuntap_adapter` and `minnownet.lossy_fd_adapter`.

The package has no dependencies outside the standard library.

## Installation

```
pip install minnownet
```

To run the tests:

```
pip install "minnownet[test]"
pytest
```

## Parsing and serializing

```python
from minnownet.parser import parse, serialize
from minnownet.ipv4 import IPv4Header

header = IPv4Header()
header.len = 40
header.src = 0x0A000001
header.dst = 0x0A000002
header.compute_checksum()

wire = serialize(header)          # list of bytes chunks
decoded = IPv4Header()
assert parse(decoded, wire)       # False if the bytes are malformed or the checksum is wrong
print(decoded)                    # IPv4 len=40 protocol=6 ttl=128 src=10.0.0.1 dst=10.0.0.2
```

`parse(obj, buffers, *args)` does three things:

1. It builds a `Parser` from the buffers.
2. It calls `obj.parse(parser, *args)`.
3. It returns whether parsing succeeded.

`serialize(obj)` returns the serialized chunks.

When the `Parser` runs out of input, it sets an error flag. It does not raise an exception.

A TCP segment is parsed with the pseudo-header checksum of the IPv4 header that carries it:

```python
from minnownet.tcp_message import TCPSegment

segment = TCPSegment()
ok = parse(segment, datagram.payload, datagram.header.pseudo_checksum())
```

## Addresses

```python
from minnownet.address import Address

addr = Address.from_ip("10.0.0.1", 80)
print(addr)                 # 10.0.0.1:80
print(addr.ipv4_numeric())  # 167772161
same = Address.from_ipv4_numeric(0x0A000001)
resolved = Address.resolve("localhost", "http")
```

## Event loop

```python
from minnownet.eventloop import EventLoop, Direction, Result

loop = EventLoop()
category = loop.add_category("echo input")
loop.add_fd_rule(category, fd, Direction.IN, on_readable)
while loop.wait_next_event(10) != Result.EXIT:
    pass
```

For the category, `add_rule` and `add_fd_rule` take either a category id or a name. A name creates a new category.

Both methods return a `RuleHandle`. Call `cancel()` on it to cancel the rule.

`wait_next_event` serves at most one rule per call. It raises `RuntimeError` when a rule stays interested without making progress.

## TCP over a TUN device

`TCPOverIPv4OverTunFdAdapter` reads IPv4 datagrams from a TUN device and keeps only the TCP messages that belong to the connection in its `FdAdapterConfig`. It writes outgoing messages wrapped in IPv4.

Wrap it in `LossyFdAdapter` to drop messages at random. The drop rates are the loss rates set in the config: a rate `r` drops a message with probability `r / 65536`.

To open a TUN device, the persistent device must already exist and you must have permission to use it.

## What this package does not do

The package carries and checks TCP segments, but it has no TCP state machine. There is no sender, receiver, reassembler or byte stream. Nothing here opens a TCP connection over a TUN device by itself: the adapters only move `TCPMessage` values to and from the wire.

## Errors

Failed system calls raise `UnixError`. `UnixError` is a subclass of `TaggedError`, which is an `OSError`. Both are in `minnownet.errors`.