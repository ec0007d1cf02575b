"""HTTP methods, status codes, and request/response messages with encoding."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from reactorweb.buffer import Buffer

CRLF = b"\r\n"
ENCODE_IOV_MAX = 2048
_VERSIONS = ("HTTP/1.1", "HTTP/1.0", "HTTP/0")


class HttpMethod(Enum):
    GET = 0
    HEAD = 1
    POST = 2
    UNKNOWN = 3


class HttpStatusCode(IntEnum):
    CONTINUE = 100
    OK = 200
    NO_CONTENT = 204
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501


STATUS_CODE_PHRASE: dict[HttpStatusCode, tuple[str, str]] = {
    HttpStatusCode.CONTINUE: ("100", "Continue"),
    HttpStatusCode.OK: ("200", "OK"),
    HttpStatusCode.NO_CONTENT: ("204", "No Content"),
    HttpStatusCode.BAD_REQUEST: ("400", "Bad Request"),
    HttpStatusCode.FORBIDDEN: ("403", "Forbidden"),
    HttpStatusCode.NOT_FOUND: ("404", "Not Found"),
    HttpStatusCode.INTERNAL_SERVER_ERROR: ("500", "Internal Server Error"),
    HttpStatusCode.NOT_IMPLEMENTED: ("501", "Not Implemented"),
}

CONTENT_TYPE: dict[str, str] = {
    ".html": "text/html",
    ".txt": "text/plain",
    ".css": "text/css ",
    ".js": "text/javascript",
    ".xml": "text/xml",
    ".png": "image/png",
    ".gif": "image/gif",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".mpeg": "video/mpeg",
    ".mpg": "video/mpeg",
    ".avi": "video/x-msvideo",
    ".gz": "application/x-gzip",
    ".tar": "application/x-tar",
}


def http_method_from_string(method: str) -> HttpMethod:
    """Classify a method token by case-insensitive prefix."""
    upper = method.upper()
    for candidate in (HttpMethod.HEAD, HttpMethod.GET, HttpMethod.POST):
        if upper.startswith(candidate.name):
            return candidate
    return HttpMethod.UNKNOWN


def http_method_to_string(method: HttpMethod) -> str:
    if method in (HttpMethod.GET, HttpMethod.HEAD):
        return method.name
    return "UNKNOWN"


def status_code_string(code: int) -> str:
    """Return the numeric code as text, or an empty string when unknown."""
    entry = STATUS_CODE_PHRASE.get(code)
    return entry[0] if entry else ""


def status_code_phrase_string(code: int) -> str:
    """Return e.g. ``"404 Not Found"``, or an empty string when unknown."""
    entry = STATUS_CODE_PHRASE.get(code)
    return f"{entry[0]} {entry[1]}" if entry else ""


def content_type(path: str) -> str:
    """Guess a Content-Type from the suffix after the last dot."""
    dot = path.rfind(".")
    if dot == -1:
        return "text/plain"
    return CONTENT_TYPE.get(path[dot:], "text/plain")


BodyData = Union[bytes, bytearray, memoryview, str, None]


class HttpMessage(ABC):
    """Common parts of requests and responses: version, headers and body."""

    def __init__(self) -> None:
        self._version = ""
        self._headers: list[tuple[str, str]] = []
        self._body: bytes | None = None
        self._body_size = 0

    @property
    def version(self) -> str:
        return self._version

    @property
    def headers(self) -> list[tuple[str, str]]:
        return list(self._headers)

    @property
    def body(self) -> bytes | None:
        return self._body

    @property
    def body_size(self) -> int:
        return self._body_size

    def set_version(self, version: str) -> None:
        if version not in _VERSIONS:
            raise ValueError(f"unsupported HTTP version: {version!r}")
        self._version = version

    def add_header(self, name: str, value: str) -> None:
        if not name or not value:
            raise ValueError("header name and value must not be empty")
        self._headers.append((name, value))

    def set_header(self, name: str, value: str) -> None:
        """Replace the first header with this name (case-insensitive) or add one."""
        lowered = name.lower()
        for index, (existing, _) in enumerate(self._headers):
            if existing.lower() == lowered:
                self._headers[index] = (existing, value)
                return
        self.add_header(name, value)

    def set_headers(self, headers: list[tuple[str, str]]) -> None:
        self._headers = [(name, value) for name, value in headers]

    def set_body(self, data: BodyData, size: int | None = None) -> None:
        """Set the body; ``data`` may be None with a size, as for HEAD replies."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        elif data is not None:
            data = bytes(data)
        if size is None:
            size = len(data) if data is not None else 0
        if size < 0:
            raise ValueError("body size must not be negative")
        self._body = data
        self._body_size = size

    @abstractmethod
    def _start_line(self) -> tuple[str, str, str]:
        """Return the three fields of the start line."""

    def _start_fields(self) -> list[bytes]:
        fields = self._start_line()
        if not all(fields):
            raise ValueError("start line fields must not be empty")
        return [field.encode("latin-1") for field in fields]

    def _body_bytes(self) -> bytes:
        if self._body is None or self._body_size <= 0:
            return b""
        return self._body[:self._body_size]

    def encode_chunks(self, max_chunks: int = ENCODE_IOV_MAX) -> list[bytes]:
        """Encode as a list of chunks suitable for a gathered write."""
        first, second, third = self._start_fields()
        if max_chunks < 6:
            raise ValueError("max_chunks must be at least 6")
        chunks = [first, b" ", second, b" ", third, CRLF]
        for name, value in self._headers:
            if len(chunks) + 4 > max_chunks:
                raise OverflowError("too many chunks for the headers")
            chunks += [name.encode("latin-1"), b": ", value.encode("latin-1"), CRLF]
        if len(chunks) + 2 > max_chunks:
            raise OverflowError("too many chunks for the message")
        chunks.append(CRLF)
        body = self._body_bytes()
        if body:
            chunks.append(body)
        return chunks

    def encode(self) -> bytes:
        first, second, third = self._start_fields()
        parts = [first, b" ", second, b" ", third, CRLF]
        for name, value in self._headers:
            parts.append(f"{name}: {value}".encode("latin-1") + CRLF)
        parts.append(CRLF)
        parts.append(self._body_bytes())
        return b"".join(parts)

    def encode_into(self, buffer: "Buffer") -> None:
        buffer.append(self.encode())


class HttpRequest(HttpMessage):
    def __init__(self) -> None:
        super().__init__()
        self._method = ""
        self._uri = ""

    @property
    def method(self) -> str:
        return self._method

    @property
    def uri(self) -> str:
        return self._uri

    def set_method(self, method: HttpMethod | str) -> None:
        if isinstance(method, HttpMethod):
            if method is HttpMethod.UNKNOWN:
                raise ValueError("cannot set an unknown method")
            self._method = method.name
        elif method in ("GET", "HEAD", "POST"):
            self._method = method
        else:
            raise ValueError(f"unsupported method: {method!r}")

    def set_uri(self, uri: str) -> None:
        self._uri = uri

    def _start_line(self) -> tuple[str, str, str]:
        return self._method, self._uri, self._version


class HttpResponse(HttpMessage):
    def __init__(self) -> None:
        super().__init__()
        self._code: HttpStatusCode | None = None
        self._code_str = ""
        self._phrase = ""

    @property
    def code(self) -> HttpStatusCode | None:
        return self._code

    @property
    def code_string(self) -> str:
        return self._code_str

    @property
    def phrase(self) -> str:
        return self._phrase

    def set_status(self, code: int) -> None:
        """Set the status code together with its text and reason phrase."""
        try:
            status = HttpStatusCode(code)
        except ValueError:
            raise ValueError(f"unknown status code: {code}") from None
        self._code = status
        self._code_str, self._phrase = STATUS_CODE_PHRASE[status]

    def _start_line(self) -> tuple[str, str, str]:
        return self._version, self._code_str, self._phrase