"""A growable byte buffer with a cheap prepend area and read/write cursors.

Layout::

    +-------------------+------------------+------------------+
    | prependable bytes |  readable bytes  |  writable bytes  |
    +-------------------+------------------+------------------+
    0      <=      read index   <=   write index    <=     size
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview, str]

_EXTRA_READ_SIZE = 65536


def _to_bytes(data: BytesLike) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


class Buffer:
    """Byte buffer that grows on demand and reuses consumed space."""

    INITIAL_SIZE = 1024
    CHEAP_PREPEND = 8

    def __init__(self, initial_size: int = INITIAL_SIZE) -> None:
        if initial_size < 0:
            raise ValueError("initial_size must not be negative")
        self._data = bytearray(initial_size + self.CHEAP_PREPEND)
        self._read = self.CHEAP_PREPEND
        self._write = self.CHEAP_PREPEND

    def __len__(self) -> int:
        return self.readable_bytes()

    def swap(self, other: "Buffer") -> None:
        """Exchange the whole contents of two buffers."""
        self._data, other._data = other._data, self._data
        self._read, other._read = other._read, self._read
        self._write, other._write = other._write, self._write

    def readable_bytes(self) -> int:
        return self._write - self._read

    def writable_bytes(self) -> int:
        return len(self._data) - self._write

    def prependable_bytes(self) -> int:
        return self._read

    def peek(self) -> bytes:
        """Return a copy of the readable bytes without consuming them."""
        return bytes(self._data[self._read:self._write])

    def retrieve(self, length: int) -> None:
        """Consume ``length`` readable bytes."""
        if length < 0 or length > self.readable_bytes():
            raise ValueError(
                f"cannot retrieve {length} bytes, {self.readable_bytes()} readable"
            )
        if length < self.readable_bytes():
            self._read += length
        else:
            self.retrieve_all()

    def retrieve_until(self, index: int) -> None:
        """Consume the readable bytes before offset ``index`` of :meth:`peek`."""
        if index < 0 or index > self.readable_bytes():
            raise ValueError(f"index {index} lies outside the readable bytes")
        self.retrieve(index)

    def retrieve_all(self) -> None:
        self._read = self.CHEAP_PREPEND
        self._write = self.CHEAP_PREPEND

    def retrieve_as_bytes(self, length: int) -> bytes:
        if length < 0 or length > self.readable_bytes():
            raise ValueError(
                f"cannot retrieve {length} bytes, {self.readable_bytes()} readable"
            )
        result = bytes(self._data[self._read:self._read + length])
        self.retrieve(length)
        return result

    def retrieve_all_as_bytes(self) -> bytes:
        return self.retrieve_as_bytes(self.readable_bytes())

    def append(self, data: BytesLike | Iterable[BytesLike]) -> None:
        """Append bytes, a string (UTF-8), or a list/tuple of such chunks."""
        if isinstance(data, (list, tuple)):
            for chunk in data:
                self.append(chunk)
            return
        payload = _to_bytes(data)
        self.ensure_writable(len(payload))
        self._data[self._write:self._write + len(payload)] = payload
        self.has_written(len(payload))

    def ensure_writable(self, length: int) -> None:
        if self.writable_bytes() < length:
            self._make_space(length)

    def begin_write(self) -> memoryview:
        """Return a view of the writable region; release it before growing."""
        return memoryview(self._data)[self._write:]

    def has_written(self, length: int) -> None:
        """Mark ``length`` bytes written through :meth:`begin_write`."""
        if length < 0 or length > self.writable_bytes():
            raise ValueError(
                f"cannot mark {length} bytes written, {self.writable_bytes()} writable"
            )
        self._write += length

    def read_fd(self, fd: int) -> int:
        """Read once from ``fd`` into the buffer; return the byte count.

        Data that does not fit into the writable region is gathered into a
        64 KiB side buffer and appended afterwards.
        """
        writable = self.writable_bytes()
        extra = bytearray(_EXTRA_READ_SIZE)
        view = memoryview(self._data)
        try:
            target = view[self._write:]
            try:
                targets = [target, extra] if writable < _EXTRA_READ_SIZE else [target]
                count = os.readv(fd, targets)
            finally:
                target.release()
        finally:
            view.release()
        if count <= writable:
            self.has_written(count)
        else:
            self.has_written(writable)
            self.append(extra[:count - writable])
        return count

    def _make_space(self, length: int) -> None:
        if self.writable_bytes() + self.prependable_bytes() < length + self.CHEAP_PREPEND:
            self._data.extend(bytes(self._write + length - len(self._data)))
        else:
            readable = self.readable_bytes()
            start = self.CHEAP_PREPEND
            self._data[start:start + readable] = self._data[self._read:self._write]
            self._read = start
            self._write = start + readable