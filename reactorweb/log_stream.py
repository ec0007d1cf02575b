"""Bounded in-memory log line formatting."""

from __future__ import annotations

import numbers
from typing import Any, Union

SMALL_BUFFER = 4000
LARGE_BUFFER = 4000 * 1000
MAX_NUMERIC_SIZE = 48
_FMT_MAX = 80

BytesLike = Union[bytes, bytearray, memoryview, str]


def _to_bytes(data: BytesLike) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


class FixedBuffer:
    """A byte buffer of fixed capacity that drops writes which do not fit."""

    def __init__(self, size: int = SMALL_BUFFER) -> None:
        if size <= 0:
            raise ValueError("size must be positive")
        self._size = size
        self._data = bytearray()

    @property
    def size(self) -> int:
        return self._size

    def append(self, data: BytesLike) -> bool:
        """Append ``data`` if strictly less than the free space; report success."""
        payload = _to_bytes(data)
        if self.avail() > len(payload):
            self._data += payload
            return True
        return False

    def data(self) -> bytes:
        return bytes(self._data)

    def length(self) -> int:
        return len(self._data)

    def avail(self) -> int:
        return self._size - len(self._data)

    def reset(self) -> None:
        self._data.clear()

    def _add_unchecked(self, payload: bytes) -> None:
        self._data += payload


class LogStream:
    """Collects one log line with ``<<``; output that does not fit is dropped."""

    def __init__(self) -> None:
        self._buffer = FixedBuffer(SMALL_BUFFER)

    @property
    def buffer(self) -> FixedBuffer:
        return self._buffer

    @property
    def data(self) -> bytes:
        return self._buffer.data()

    def __lshift__(self, value: Any) -> "LogStream":
        if isinstance(value, bool):
            self._append_number(str(int(value)))
        elif isinstance(value, int):
            self._append_number(str(value))
        elif isinstance(value, float):
            self._append_number("%.12g" % value)
        elif value is None:
            self._buffer.append(b"(null)")
        elif isinstance(value, (str, bytes, bytearray, memoryview)):
            self._buffer.append(value)
        else:
            self._buffer.append(str(value))
        return self

    def append(self, data: BytesLike) -> None:
        self._buffer.append(data)

    def reset_buffer(self) -> None:
        self._buffer.reset()

    def _append_number(self, text: str) -> None:
        avail = self._buffer.avail()
        if avail >= MAX_NUMERIC_SIZE and len(text) < avail:
            self._buffer._add_unchecked(text.encode("ascii"))


def fmt(pattern: str, value: numbers.Real) -> str:
    """Format one number with a printf-style pattern into a short string."""
    if not isinstance(value, numbers.Real):
        raise TypeError("fmt() takes an arithmetic value")
    text = pattern % value
    if len(text) >= _FMT_MAX:
        raise ValueError(f"formatted text is longer than {_FMT_MAX - 1} characters")
    return text