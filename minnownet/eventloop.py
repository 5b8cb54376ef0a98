"""An event loop that polls file descriptors and runs callbacks for ready ones."""

from __future__ import annotations

import enum
import errno
import select
import socket
import sys
import weakref
from dataclasses import dataclass
from typing import Callable, Union

from .errors import UnixError
from .file_descriptor import FileDescriptor

Callback = Callable[[], None]
Interest = Callable[[], bool]

MAX_CATEGORIES = 64
_MAX_ITERATIONS = 128
_POLL_ERRORS = select.POLLERR | select.POLLNVAL
_ALWAYS_REPORTED = select.POLLERR | select.POLLHUP | select.POLLNVAL


def _always() -> bool:
    return True


def _nothing() -> None:
    return None


class Direction(enum.IntEnum):
    """Whether a rule waits for its descriptor to become readable or writable."""

    IN = select.POLLIN
    OUT = select.POLLOUT


class Result(enum.Enum):
    """Outcome of one call to EventLoop.wait_next_event."""

    SUCCESS = "success"  # a rule was served
    TIMEOUT = "timeout"  # nothing happened before the timeout
    EXIT = "exit"  # no rule is left that is interested in anything


@dataclass(eq=False)
class _BasicRule:
    category_id: int
    interest: Interest
    callback: Callback
    cancel_requested: bool = False


@dataclass(eq=False)
class _FDRule(_BasicRule):
    fd: FileDescriptor = None  # type: ignore[assignment]
    direction: Direction = Direction.IN
    on_cancel: Callback = _nothing
    on_error: Callback = _nothing

    def service_count(self) -> int:
        """How often the descriptor has been read or written, per the rule's direction."""
        if self.direction is Direction.IN:
            return self.fd.read_count()
        return self.fd.write_count()


class RuleHandle:
    """A handle that can cancel a rule, if the rule still exists."""

    def __init__(self, rule: _BasicRule) -> None:
        self._rule = weakref.ref(rule)

    def cancel(self) -> None:
        rule = self._rule()
        if rule is not None:
            rule.cancel_requested = True


class EventLoop:
    """Waits for events on file descriptors and runs the matching callbacks."""

    def __init__(self) -> None:
        self._categories: list[str] = []
        self._fd_rules: list[_FDRule] = []
        self._non_fd_rules: list[_BasicRule] = []

    def add_category(self, name: str) -> int:
        """Register a rule category by name; return its id."""
        if len(self._categories) >= MAX_CATEGORIES:
            raise RuntimeError("maximum categories reached")
        self._categories.append(name)
        return len(self._categories) - 1

    def _category_id(self, category: Union[int, str]) -> int:
        if isinstance(category, str):
            return self.add_category(category)
        if not 0 <= category < len(self._categories):
            raise IndexError("bad category_id")
        return category

    def add_rule(
        self,
        category: Union[int, str],
        callback: Callback,
        interest: Interest = _always,
    ) -> RuleHandle:
        """Add a rule that runs ``callback`` whenever ``interest()`` is true.

        ``category`` is a category id, or a name for a new category.
        """
        rule = _BasicRule(self._category_id(category), interest, callback)
        self._non_fd_rules.append(rule)
        return RuleHandle(rule)

    def add_fd_rule(
        self,
        category: Union[int, str],
        fd: FileDescriptor,
        direction: Direction,
        callback: Callback,
        interest: Interest = _always,
        cancel: Callback = _nothing,
        error: Callback = _nothing,
    ) -> RuleHandle:
        """Add a rule that runs ``callback`` when ``fd`` is ready in ``direction``.

        ``cancel`` runs when the rule ends on its own (EOF, hangup, closed
        descriptor); ``error`` runs first when the descriptor reports an error.
        """
        rule = _FDRule(
            self._category_id(category),
            interest,
            callback,
            fd=fd.duplicate(),
            direction=Direction(direction),
            on_cancel=cancel,
            on_error=error,
        )
        self._fd_rules.append(rule)
        return RuleHandle(rule)

    def _name(self, rule: _BasicRule) -> str:
        return self._categories[rule.category_id]

    def _serve_non_fd_rules(self) -> bool:
        for rule in list(self._non_fd_rules):
            if rule.cancel_requested:
                self._non_fd_rules.remove(rule)
                continue

            fired = False
            iterations = 0
            while rule.interest():
                if iterations >= _MAX_ITERATIONS:
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}" '
                        f"is still interested after {iterations + 1} iterations"
                    )
                iterations += 1
                fired = True
                rule.callback()

            if fired:
                return True
        return False

    def _report_poll_error(self, rule: _FDRule) -> None:
        name = self._name(rule)
        try:
            sock = socket.socket(fileno=rule.fd.fd_num())
        except OSError as exc:
            if exc.errno == errno.ENOTSOCK:
                print(f'error on polled file descriptor for rule "{name}"', file=sys.stderr)
                return
            raise UnixError("getsockopt", exc.errno) from exc
        try:
            socket_error = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        except OSError as exc:
            raise UnixError("getsockopt", exc.errno) from exc
        finally:
            sock.detach()
        if socket_error:
            import os

            print(
                f'error on polled socket for rule "{name}": {os.strerror(socket_error)}',
                file=sys.stderr,
            )

    def _drop(self, rule: _FDRule) -> None:
        rule.on_cancel()
        self._fd_rules.remove(rule)

    def wait_next_event(self, timeout_ms: int) -> Result:
        """Serve at most one rule, waiting up to ``timeout_ms`` (negative: forever)."""
        if self._serve_non_fd_rules():
            return Result.SUCCESS

        entries: list[tuple[_FDRule, int]] = []
        masks: dict[int, int] = {}
        something_to_poll = False

        for rule in list(self._fd_rules):
            if rule.cancel_requested:
                # cancelled from outside: the cancel callback is not run
                self._fd_rules.remove(rule)
                continue
            if rule.direction is Direction.IN and rule.fd.eof():
                self._drop(rule)
                continue
            if rule.fd.closed():
                self._drop(rule)
                continue

            events = int(rule.direction) if rule.interest() else 0
            something_to_poll = something_to_poll or bool(events)
            entries.append((rule, events))
            fd_num = rule.fd.fd_num()
            masks[fd_num] = masks.get(fd_num, 0) | events

        if not something_to_poll:
            return Result.EXIT

        poller = select.poll()
        for fd_num, mask in masks.items():
            poller.register(fd_num, mask)
        try:
            polled = dict(poller.poll(timeout_ms))
        except OSError as exc:
            raise UnixError("poll", exc.errno) from exc
        if not polled:
            return Result.TIMEOUT

        for rule, events in entries:
            revents = polled.get(rule.fd.fd_num(), 0) & (events | _ALWAYS_REPORTED)

            if revents & _POLL_ERRORS:
                self._report_poll_error(rule)
                rule.on_error()
                self._drop(rule)
                continue

            ready = bool(revents & events)
            hangup = bool(revents & select.POLLHUP)
            if hangup and ((events and not ready) or rule.direction is Direction.OUT):
                # only a hangup: nothing more will ever be read or written here
                self._drop(rule)
                continue

            if ready:
                count_before = rule.service_count()
                rule.callback()
                if (
                    count_before == rule.service_count()
                    and not rule.fd.closed()
                    and rule.interest()
                ):
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}" '
                        "did not read/write fd and is still interested"
                    )
                return Result.SUCCESS

        return Result.SUCCESS