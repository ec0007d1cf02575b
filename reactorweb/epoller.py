"""Readiness polling over the channels registered with one loop."""

from __future__ import annotations

import select
import time
from enum import Enum
from typing import Any

from reactorweb import logger
from reactorweb.channel import Channel, ChannelState
from reactorweb.logger import LogLevel

INIT_EVENT_LIST_SIZE = 16


class _Op(Enum):
    ADD = "EPOLL_CTL_ADD"
    MOD = "EPOLL_CTL_MOD"
    DEL = "EPOLL_CTL_DEL"


class Epoller:
    """Tracks channels by descriptor and reports which are ready.

    Uses epoll where available and poll otherwise; both share the same
    event bits.
    """

    def __init__(self, loop: Any) -> None:
        self._loop = loop
        self._uses_epoll = hasattr(select, "epoll")
        self._poller = select.epoll() if self._uses_epoll else select.poll()
        self._max_events = INIT_EVENT_LIST_SIZE
        self._channels: dict[int, Channel] = {}
        self._closed = False

    def poll(self, timeout_ms: int) -> tuple[float, list[Channel]]:
        """Wait up to ``timeout_ms``; return the wake-up time and ready channels."""
        try:
            if self._uses_epoll:
                timeout = timeout_ms / 1000 if timeout_ms >= 0 else -1
                ready = self._poller.poll(timeout, self._max_events)
            else:
                ready = self._poller.poll(timeout_ms if timeout_ms >= 0 else None)
        except OSError as exc:
            now = time.time()
            logger.syserr("Epoller.poll()", exc.errno)
            return now, []
        now = time.time()
        if not ready:
            logger.log(LogLevel.TRACE, "nothing happened")
            return now, []
        active = self._fill_active_channels(ready)
        if self._uses_epoll and len(ready) == self._max_events:
            self._max_events *= 2
        return now, active

    def _fill_active_channels(self, ready: list[tuple[int, int]]) -> list[Channel]:
        active = []
        for fd, events in ready:
            channel = self._channels.get(fd)
            if channel is None:
                continue
            channel.revents = events
            active.append(channel)
        return active

    def has_channel(self, channel: Channel) -> bool:
        self._loop.assert_in_loop_thread()
        return self._channels.get(channel.fd) is channel

    def update_channel(self, channel: Channel) -> None:
        """Register, modify or detach a channel according to its events."""
        self._loop.assert_in_loop_thread()
        fd = channel.fd
        state = channel.state
        logger.log(
            LogLevel.TRACE, f"fd = {fd} events = {channel.events} state = {state.value}"
        )
        registered = self._channels.get(fd)
        if state is ChannelState.NOT_EXIST:
            if registered is not None:
                raise RuntimeError(f"fd {fd} is already registered")
            self._channels[fd] = channel
        elif registered is not channel:
            raise RuntimeError(f"channel for fd {fd} is not registered here")

        if channel.is_none_event():
            if state is ChannelState.LISTENING:
                self._ctl(_Op.DEL, channel)
            channel.state = ChannelState.DETACHED
        else:
            op = _Op.MOD if state is ChannelState.LISTENING else _Op.ADD
            self._ctl(op, channel)
            channel.state = ChannelState.LISTENING

    def remove_channel(self, channel: Channel) -> None:
        """Forget a channel whose events are all disabled."""
        self._loop.assert_in_loop_thread()
        fd = channel.fd
        state = channel.state
        logger.log(LogLevel.TRACE, f"fd = {fd} state = {state.value}")
        if self._channels.get(fd) is not channel:
            raise RuntimeError(f"channel for fd {fd} is not registered here")
        if not channel.is_none_event():
            raise RuntimeError("disable all events before removing a channel")
        if state is ChannelState.NOT_EXIST:
            raise RuntimeError(f"channel for fd {fd} is in an invalid state")
        del self._channels[fd]
        if state is ChannelState.LISTENING:
            self._ctl(_Op.DEL, channel)
        channel.state = ChannelState.NOT_EXIST

    def _ctl(self, op: _Op, channel: Channel) -> None:
        fd = channel.fd
        try:
            if op is _Op.ADD:
                self._poller.register(fd, channel.events)
            elif op is _Op.MOD:
                self._poller.modify(fd, channel.events)
            else:
                self._poller.unregister(fd)
        except OSError as exc:
            message = f"epoll_ctl({op.value}) fd ={fd}"
            if op is _Op.DEL:
                logger.sysfatal(message, exc.errno)
            else:
                logger.syserr(message, exc.errno)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._uses_epoll:
            self._poller.close()

    def __enter__(self) -> "Epoller":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()