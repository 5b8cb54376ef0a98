"""Common state for adapters that carry TCP messages over a file descriptor."""

from __future__ import annotations

from typing import Optional

from .config import FdAdapterConfig


class FdAdapterBase:
    """Holds an adapter's configuration and whether it is waiting for a connection."""

    def __init__(self, config: Optional[FdAdapterConfig] = None) -> None:
        self._config = config if config is not None else FdAdapterConfig()
        self._listening = False

    def set_listening(self, listening: bool) -> None:
        """Set whether the connected TCP peer is listening for a new connection."""
        self._listening = bool(listening)

    def listening(self) -> bool:
        return self._listening

    def config(self) -> FdAdapterConfig:
        """The adapter's configuration; changes to it take effect immediately."""
        return self._config

    def tick(self, ms_since_last_tick: int) -> None:
        """Called periodically as time passes; the base adapter keeps no timers."""
        return None