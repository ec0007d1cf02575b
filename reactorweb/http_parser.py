"""Incremental HTTP/1.x request parser.

The parser is fed the bytes that are currently buffered for a connection.
Each call reports how many bytes it fully consumed; the caller drops those
from its buffer and calls again with the rest once more data has arrived.
A field that is cut off at the end of the input is not consumed and is
parsed again from its start on the next call.
"""

from __future__ import annotations

import re
from enum import Enum, auto
from typing import Union

HEADER_NAME_MAX = 128
_INT_MAX = 2**31 - 1
_LEADING_INTEGER = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")
_CR = 0x0D
_LF = 0x0A
_SP = 0x20

BytesLike = Union[bytes, bytearray, memoryview]


class ParseResult(Enum):
    """Outcome of one :meth:`HttpParser.parse` call."""

    SUCCESS = 0
    AGAIN = 1
    ERROR = 2


class _Phase(Enum):
    REQUEST_LINE = auto()
    HEADER = auto()
    BODY = auto()
    DONE = auto()


class _LineState(Enum):
    METHOD = auto()
    URI = auto()
    VERSION = auto()
    LF = auto()


class _HeaderState(Enum):
    LINE_START = auto()
    KEY = auto()
    SPACE = auto()
    VALUE = auto()
    LF = auto()
    END_LF = auto()


def _is_prefix_ignoring_case(candidate: str, full: str) -> bool:
    return full.lower().startswith(candidate.lower())


class HttpParser:
    """State machine that turns request bytes into method, URI, headers and body."""

    def __init__(self) -> None:
        self._data = b""
        self._pos = 0
        self._end = 0
        self.reset()

    def reset(self) -> None:
        """Forget everything parsed so far and wait for a new request."""
        self._phase = _Phase.REQUEST_LINE
        self._line_state = _LineState.METHOD
        self._header_state = _HeaderState.LINE_START
        self._method = ""
        self._uri = ""
        self._version = ""
        self._name = ""
        self._headers: list[tuple[str, str]] = []
        self._body = bytearray()
        self._content_length = 0
        self._header_offset = 0
        self._body_offset = 0
        self._has_connection = False
        self._has_keep_alive = False
        self._keep_alive = False
        self._chunked = False

    # -- results -----------------------------------------------------------

    @property
    def method(self) -> str:
        return self._method

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def version(self) -> str:
        return self._version

    @property
    def headers(self) -> list[tuple[str, str]]:
        return list(self._headers)

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    @property
    def body_size(self) -> int:
        return len(self._body)

    @property
    def content_length(self) -> int:
        return self._content_length

    @property
    def keep_alive(self) -> bool:
        return self._keep_alive

    @property
    def chunked(self) -> bool:
        return self._chunked

    @property
    def has_connection(self) -> bool:
        return self._has_connection

    @property
    def has_keep_alive(self) -> bool:
        return self._has_keep_alive

    def is_complete(self) -> bool:
        """True once a whole request has been parsed."""
        return self._phase is _Phase.DONE

    # -- parsing -----------------------------------------------------------

    def parse(self, data: BytesLike) -> tuple[ParseResult, int]:
        """Parse buffered request bytes.

        Returns the outcome together with the number of bytes consumed from
        the start of ``data``. A parser that has completed a request starts
        over with a fresh one.
        """
        if self._phase is _Phase.DONE:
            self.reset()
        self._data = bytes(data)
        self._pos = 0
        self._end = len(self._data)
        start = self._header_offset + self._body_offset

        result = ParseResult.SUCCESS
        while result is ParseResult.SUCCESS and self._phase is not _Phase.DONE:
            if self._phase is _Phase.REQUEST_LINE:
                result = self._parse_request_line()
                if result is ParseResult.SUCCESS:
                    self._phase = _Phase.HEADER
            elif self._phase is _Phase.HEADER:
                result = self._parse_header()
                if result is ParseResult.SUCCESS:
                    if self._content_length > 0 or self._chunked:
                        self._phase = _Phase.BODY
                    else:
                        self._phase = _Phase.DONE
            else:
                result = self._parse_body()
                if result is ParseResult.SUCCESS:
                    self._phase = _Phase.DONE

        self._data = b""
        return result, self._header_offset + self._body_offset - start

    def _parse_request_line(self) -> ParseResult:
        data = self._data
        while self._pos < self._end:
            state = self._line_state
            if state is _LineState.LF:
                if data[self._pos] != _LF:
                    return ParseResult.ERROR
                self._pos += 1
                self._header_offset += 1
                return ParseResult.SUCCESS

            delimiter = b"\r" if state is _LineState.VERSION else b" "
            index = data.find(delimiter, self._pos, self._end)
            if index == -1:
                self._pos = self._end
                break
            field = data[self._pos:index].decode("latin-1")
            if state is _LineState.METHOD:
                self._method = field
                self._line_state = _LineState.URI
            elif state is _LineState.URI:
                self._uri = field
                self._line_state = _LineState.VERSION
            else:
                if not self._check_version(field):
                    return ParseResult.ERROR
                self._line_state = _LineState.LF
            self._header_offset += index - self._pos + 1
            self._pos = index + 1
        return ParseResult.AGAIN

    def _parse_header(self) -> ParseResult:
        data = self._data
        while self._pos < self._end:
            state = self._header_state
            if state is _HeaderState.LINE_START:
                if data[self._pos] == _CR:
                    self._pos += 1
                    self._header_offset += 1
                    self._header_state = _HeaderState.END_LF
                else:
                    self._header_state = _HeaderState.KEY

            elif state is _HeaderState.KEY:
                limit = min(self._end, self._pos + HEADER_NAME_MAX)
                colon = data.find(b":", self._pos, limit)
                if colon == -1:
                    if limit - self._pos >= HEADER_NAME_MAX:
                        return ParseResult.ERROR
                    self._pos = self._end
                    self._header_state = _HeaderState.LINE_START
                    break
                self._name = data[self._pos:colon].decode("latin-1")
                self._header_offset += colon - self._pos + 1
                self._pos = colon + 1
                self._header_state = _HeaderState.SPACE

            elif state is _HeaderState.SPACE:
                char = data[self._pos]
                self._pos += 1
                if char != _SP:
                    return ParseResult.ERROR
                self._header_offset += 1
                self._header_state = _HeaderState.VALUE

            elif state is _HeaderState.VALUE:
                cr = data.find(b"\r", self._pos, self._end)
                if cr == -1:
                    self._pos = self._end
                    break
                value = data[self._pos:cr].decode("latin-1")
                if not self._check_header(self._name, value):
                    return ParseResult.ERROR
                self._header_offset += cr - self._pos + 1
                self._pos = cr + 1
                self._header_state = _HeaderState.LF

            elif state is _HeaderState.LF:
                char = data[self._pos]
                self._pos += 1
                if char != _LF:
                    return ParseResult.ERROR
                self._header_offset += 1
                self._header_state = _HeaderState.LINE_START

            else:
                char = data[self._pos]
                self._pos += 1
                if char != _LF:
                    return ParseResult.ERROR
                self._header_offset += 1
                return ParseResult.SUCCESS
        return ParseResult.AGAIN

    def _parse_body(self) -> ParseResult:
        if self._chunked:
            return ParseResult.SUCCESS
        remaining = self._end - self._pos
        needed = self._content_length - self._body_offset
        if remaining >= needed:
            self._body += self._data[self._pos:self._pos + needed]
            self._body_offset = self._content_length
            return ParseResult.SUCCESS
        self._body += self._data[self._pos:self._end]
        self._body_offset += remaining
        return ParseResult.AGAIN

    def _check_version(self, version: str) -> bool:
        if _is_prefix_ignoring_case(version, "HTTP/1.0") or _is_prefix_ignoring_case(
            version, "HTTP/0"
        ):
            self._version = version
            self._keep_alive = False
            return True
        if _is_prefix_ignoring_case(version, "HTTP/1.1"):
            self._version = version
            self._keep_alive = True
            return True
        return False

    def _check_header(self, name: str, value: str) -> bool:
        lowered = name.lower()
        if lowered == "connection":
            self._has_connection = True
            if value.lower() == "keep-alive":
                self._keep_alive = True
            elif value.lower() == "close":
                self._keep_alive = False
        elif lowered == "keep-alive":
            self._has_keep_alive = True
        elif lowered == "content-length":
            match = _LEADING_INTEGER.match(value)
            if match is None:
                return False
            length = int(match.group(1))
            if length < 0 or length > _INT_MAX:
                return False
            self._content_length = length
        elif lowered == "transfer-encoding" and value.lower().startswith("chunked"):
            self._chunked = True
        self._headers.append((name, value))
        return True

    def encode(self) -> bytes:
        """Rebuild the parsed request as bytes."""
        if self._phase is not _Phase.DONE:
            raise RuntimeError("the request has not been parsed completely")
        parts = [f"{self._method} {self._uri} {self._version}\r\n".encode("latin-1")]
        parts.extend(f"{name}: {value}\r\n".encode("latin-1") for name, value in self._headers)
        parts.append(b"\r\n")
        parts.append(bytes(self._body[:self._body_offset]))
        return b"".join(parts)