"""User-space networking toolkit: wire formats, sockets, an event loop and TCP-over-IPv4 adapters."""

__version__ = "0.1.0"