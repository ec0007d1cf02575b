"""A file descriptor's interest set and event callbacks within an event loop."""

from __future__ import annotations

import select
import weakref
from collections.abc import Callable
from enum import Enum
from typing import Any, Optional

from reactorweb import logger
from reactorweb.logger import LogLevel

EPOLLIN = getattr(select, "EPOLLIN", 0x001)
EPOLLPRI = getattr(select, "EPOLLPRI", 0x002)
EPOLLOUT = getattr(select, "EPOLLOUT", 0x004)
EPOLLERR = getattr(select, "EPOLLERR", 0x008)
EPOLLHUP = getattr(select, "EPOLLHUP", 0x010)
EPOLLRDHUP = getattr(select, "EPOLLRDHUP", 0x2000)

NONE_EVENT = 0
READ_EVENT = EPOLLIN | EPOLLPRI
WRITE_EVENT = EPOLLOUT

_EVENT_NAMES = (
    (EPOLLIN, "EPOLLIN"),
    (EPOLLPRI, "EPOLLPRI"),
    (EPOLLOUT, "EPOLLOUT"),
    (EPOLLHUP, "EPOLLHUP"),
    (EPOLLRDHUP, "EPOLLRDHUP"),
    (EPOLLERR, "EPOLLERR"),
)


class ChannelState(Enum):
    """Where a channel stands with respect to the poller."""

    NOT_EXIST = 0
    LISTENING = 1
    DETACHED = 2


def events_to_string(fd: int, events: int) -> str:
    """Describe an event mask, e.g. ``"5: EPOLLIN EPOLLOUT "``."""
    return f"{fd}: " + "".join(f"{name} " for bit, name in _EVENT_NAMES if events & bit)


class Channel:
    """Binds one file descriptor to one loop and dispatches its ready events.

    The channel does not own the descriptor; closing it is up to the caller.
    """

    def __init__(self, loop: Any, fd: int) -> None:
        self._loop = loop
        self._fd = fd
        self._events = NONE_EVENT
        self._event_handling = False
        self._tie: Optional[weakref.ref] = None
        self.revents = 0
        self.state = ChannelState.NOT_EXIST
        self.read_callback: Optional[Callable[[float], Any]] = None
        self.write_callback: Optional[Callable[[], Any]] = None
        self.error_callback: Optional[Callable[[], Any]] = None
        self.close_callback: Optional[Callable[[], Any]] = None

    @property
    def loop(self) -> Any:
        return self._loop

    @property
    def fd(self) -> int:
        return self._fd

    @property
    def events(self) -> int:
        return self._events

    @property
    def event_handling(self) -> bool:
        return self._event_handling

    def tie(self, obj: Any) -> None:
        """Only dispatch events while ``obj`` is still alive."""
        self._tie = weakref.ref(obj)

    def handle_events(self, receive_time: float) -> None:
        if self._tie is not None:
            guard = self._tie()
            if guard is not None:
                self._handle_events_with_guard(receive_time)
            del guard
        else:
            self._handle_events_with_guard(receive_time)

    def _handle_events_with_guard(self, receive_time: float) -> None:
        self._event_handling = True
        try:
            revents = self.revents
            logger.log(LogLevel.TRACE, events_to_string(self._fd, revents))
            if revents & EPOLLERR and self.error_callback:
                self.error_callback()
            if revents & EPOLLHUP and not revents & EPOLLIN and self.close_callback:
                self.close_callback()
            if revents & (EPOLLIN | EPOLLPRI | EPOLLRDHUP) and self.read_callback:
                self.read_callback(receive_time)
            if revents & EPOLLOUT and self.write_callback:
                self.write_callback()
        finally:
            self._event_handling = False

    def enable_reading(self) -> None:
        self._events |= READ_EVENT
        self._update()

    def disable_reading(self) -> None:
        self._events &= ~READ_EVENT
        self._update()

    def enable_writing(self) -> None:
        self._events |= WRITE_EVENT
        self._update()

    def disable_writing(self) -> None:
        self._events &= ~WRITE_EVENT
        self._update()

    def disable_all(self) -> None:
        self._events = NONE_EVENT
        self._update()

    def is_reading(self) -> bool:
        return bool(self._events & READ_EVENT)

    def is_writing(self) -> bool:
        return bool(self._events & WRITE_EVENT)

    def is_none_event(self) -> bool:
        return self._events == NONE_EVENT

    def remove(self) -> None:
        """Unregister from the loop; all events must be disabled first."""
        if not self.is_none_event():
            raise RuntimeError("disable all events before removing a channel")
        self._loop.remove_channel(self)

    def _update(self) -> None:
        self._loop.update_channel(self)

    def __repr__(self) -> str:
        return f"Channel(fd={self._fd}, events={events_to_string(self._fd, self._events)!r})"