"""Socket addresses and name resolution."""

from __future__ import annotations

import ipaddress
import socket
from dataclasses import dataclass
from typing import Tuple, Union

from .errors import TaggedError

SockAddr = Union[Tuple, str, bytes]

_INTERNET_FAMILIES = (socket.AF_INET, socket.AF_INET6)


def _lookup(node: str, service: str, flags: int) -> SockAddr:
    try:
        results = socket.getaddrinfo(node, service, family=socket.AF_INET, flags=flags)
    except socket.gaierror as exc:
        raise TaggedError(f"getaddrinfo({node}, {service})", exc.errno, exc.strerror) from exc
    if not results:
        raise RuntimeError("getaddrinfo returned successfully but with no results")
    return results[0][4]


@dataclass(frozen=True)
class Address:
    """A socket address: an address family and the address in ``socket`` module form."""

    family: int
    sockaddr: SockAddr

    @classmethod
    def resolve(cls, hostname: str, service: str) -> Address:
        """Resolve a host name and a service name (e.g. "http") to an IPv4 address."""
        return cls(socket.AF_INET, _lookup(hostname, service, socket.AI_ALL))

    @classmethod
    def from_ip(cls, ip: str, port: int = 0) -> Address:
        """Build from a dotted-quad string and a numeric port, without resolving names."""
        if not 0 <= port <= 0xFFFF:
            raise ValueError(f"port out of range: {port}")
        flags = socket.AI_NUMERICHOST | socket.AI_NUMERICSERV
        return cls(socket.AF_INET, _lookup(ip, str(port), flags))

    @classmethod
    def from_ipv4_numeric(cls, value: int) -> Address:
        """Build an IPv4 address (port 0) from its 32-bit numeric value."""
        if not 0 <= value <= 0xFFFFFFFF:
            raise ValueError(f"IPv4 address out of range: {value}")
        return cls(socket.AF_INET, (str(ipaddress.IPv4Address(value)), 0))

    def _is_internet(self) -> bool:
        return self.family in _INTERNET_FAMILIES

    def ip_port(self) -> tuple[str, int]:
        """Numeric IP address string and port."""
        if not self._is_internet():
            raise RuntimeError("Address::ip_port() called on non-Internet address")
        flags = socket.NI_NUMERICHOST | socket.NI_NUMERICSERV
        try:
            host, port = socket.getnameinfo(self.sockaddr, flags)
        except socket.gaierror as exc:
            raise TaggedError("getnameinfo", exc.errno, exc.strerror) from exc
        return host, int(port)

    def ip(self) -> str:
        return self.ip_port()[0]

    def port(self) -> int:
        return self.ip_port()[1]

    def ipv4_numeric(self) -> int:
        """The IPv4 address as an integer in host order."""
        if self.family != socket.AF_INET:
            raise RuntimeError("ipv4_numeric called on non-IPV4 address")
        return int.from_bytes(socket.inet_aton(self.sockaddr[0]), "big")

    def __str__(self) -> str:
        if self._is_internet():
            ip, port = self.ip_port()
            return f"{ip}:{port}"
        return "(non-Internet address)"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self.family == other.family and self.sockaddr == other.sockaddr

    def __hash__(self) -> int:
        return hash((self.family, self.sockaddr))