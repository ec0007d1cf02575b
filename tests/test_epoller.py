import os
import time

import pytest

from reactorweb.channel import EPOLLIN, Channel, ChannelState
from reactorweb.epoller import INIT_EVENT_LIST_SIZE, Epoller


class _Loop:
    def __init__(self):
        self.epoller = Epoller(self)

    def assert_in_loop_thread(self):
        pass

    def update_channel(self, channel):
        self.epoller.update_channel(channel)

    def remove_channel(self, channel):
        self.epoller.remove_channel(channel)


class _ForeignLoop:
    def assert_in_loop_thread(self):
        raise RuntimeError("wrong thread")


@pytest.fixture
def loop():
    result = _Loop()
    yield result
    result.epoller.close()


@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    yield read_fd, write_fd
    os.close(read_fd)
    os.close(write_fd)


def test_register_and_poll_ready(loop, pipe):
    read_fd, write_fd = pipe
    channel = Channel(loop, read_fd)
    channel.enable_reading()
    assert channel.state is ChannelState.LISTENING
    assert loop.epoller.has_channel(channel)
    _, active = loop.epoller.poll(0)
    assert active == []
    os.write(write_fd, b"x")
    _, active = loop.epoller.poll(1000)
    assert active == [channel]
    assert channel.revents & EPOLLIN


def test_poll_returns_current_time():
    with Epoller(_ForeignLoop()) as epoller:
        before = time.time()
        now, active = epoller.poll(0)
        after = time.time()
    assert before <= now <= after
    assert active == []


def test_detach_keeps_channel_but_stops_events(loop, pipe):
    read_fd, write_fd = pipe
    channel = Channel(loop, read_fd)
    channel.enable_reading()
    channel.disable_all()
    assert channel.state is ChannelState.DETACHED
    assert loop.epoller.has_channel(channel)
    os.write(write_fd, b"x")
    _, active = loop.epoller.poll(0)
    assert active == []
    channel.enable_reading()
    assert channel.state is ChannelState.LISTENING
    _, active = loop.epoller.poll(1000)
    assert active == [channel]


def test_remove_channel(loop, pipe):
    read_fd, _ = pipe
    channel = Channel(loop, read_fd)
    channel.enable_reading()
    channel.disable_all()
    channel.remove()
    assert channel.state is ChannelState.NOT_EXIST
    assert not loop.epoller.has_channel(channel)


def test_remove_unregistered_channel_raises(loop, pipe):
    read_fd, _ = pipe
    channel = Channel(loop, read_fd)
    with pytest.raises(RuntimeError):
        loop.epoller.remove_channel(channel)


def test_remove_with_events_raises(loop, pipe):
    read_fd, _ = pipe
    channel = Channel(loop, read_fd)
    channel.enable_reading()
    with pytest.raises(RuntimeError):
        loop.epoller.remove_channel(channel)
    assert loop.epoller.has_channel(channel)


def test_duplicate_fd_rejected(loop, pipe):
    read_fd, _ = pipe
    first = Channel(loop, read_fd)
    first.enable_reading()
    second = Channel(loop, read_fd)
    with pytest.raises(RuntimeError):
        second.enable_reading()
    assert loop.epoller.has_channel(first)
    assert not loop.epoller.has_channel(second)


def test_requires_loop_thread():
    epoller = Epoller(_ForeignLoop())
    try:
        channel = Channel(_ForeignLoop(), 0)
        with pytest.raises(RuntimeError, match="wrong thread"):
            epoller.has_channel(channel)
        with pytest.raises(RuntimeError, match="wrong thread"):
            epoller.update_channel(channel)
    finally:
        epoller.close()


def test_many_ready_channels_are_all_reported(loop):
    pipes = [os.pipe() for _ in range(INIT_EVENT_LIST_SIZE + 4)]
    try:
        channels = []
        for read_fd, write_fd in pipes:
            channel = Channel(loop, read_fd)
            channel.enable_reading()
            channels.append(channel)
            os.write(write_fd, b"x")
        _, first = loop.epoller.poll(0)
        assert len(first) <= len(channels)
        _, second = loop.epoller.poll(0)
        assert set(first) | set(second) == set(channels)
        assert len(second) == len(channels)
    finally:
        for read_fd, write_fd in pipes:
            os.close(read_fd)
            os.close(write_fd)