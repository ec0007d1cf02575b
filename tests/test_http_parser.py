import pytest

from reactorweb.http_parser import HEADER_NAME_MAX, HttpParser, ParseResult

GET_REQUEST = (
    b"GET /index.html HTTP/1.1\r\n"
    b"Host: localhost\r\n"
    b"Accept: */*\r\n"
    b"\r\n"
)


def feed(parser, chunks):
    """Feed chunks as a connection would, dropping consumed bytes each time."""
    pending = b""
    result = ParseResult.AGAIN
    for chunk in chunks:
        pending += chunk
        result, consumed = parser.parse(pending)
        pending = pending[consumed:]
        if result is not ParseResult.AGAIN:
            break
    return result, pending


def test_full_get_request_in_one_call():
    parser = HttpParser()
    result, consumed = parser.parse(GET_REQUEST)
    assert result is ParseResult.SUCCESS
    assert consumed == len(GET_REQUEST)
    assert parser.method == "GET"
    assert parser.uri == "/index.html"
    assert parser.version == "HTTP/1.1"
    assert parser.headers == [("Host", "localhost"), ("Accept", "*/*")]
    assert parser.body == b""
    assert parser.keep_alive is True
    assert parser.is_complete()


def test_http_10_is_not_keep_alive():
    parser = HttpParser()
    result, _ = parser.parse(b"GET / HTTP/1.0\r\n\r\n")
    assert result is ParseResult.SUCCESS
    assert parser.keep_alive is False


def test_connection_close_overrides_http_11():
    parser = HttpParser()
    parser.parse(b"GET / HTTP/1.1\r\nConnection: close\r\n\r\n")
    assert parser.keep_alive is False
    assert parser.has_connection is True


def test_connection_keep_alive_on_http_10():
    parser = HttpParser()
    parser.parse(b"GET / HTTP/1.0\r\nconnection: keep-alive\r\nKeep-Alive: timeout=5\r\n\r\n")
    assert parser.keep_alive is True
    assert parser.has_keep_alive is True


def test_version_prefix_is_accepted():
    parser = HttpParser()
    result, _ = parser.parse(b"GET / HTTP/1\r\n\r\n")
    assert result is ParseResult.SUCCESS
    assert parser.version == "HTTP/1"
    assert parser.keep_alive is False


def test_unknown_version_is_an_error():
    parser = HttpParser()
    result, _ = parser.parse(b"GET / HTTP/2.0\r\n\r\n")
    assert result is ParseResult.ERROR
    assert not parser.is_complete()


def test_bad_line_feed_after_request_line():
    parser = HttpParser()
    result, _ = parser.parse(b"GET / HTTP/1.1\rX\r\n")
    assert result is ParseResult.ERROR


def test_missing_space_after_colon():
    parser = HttpParser()
    result, _ = parser.parse(b"GET / HTTP/1.1\r\nHost:localhost\r\n\r\n")
    assert result is ParseResult.ERROR


def test_header_name_length_limit():
    parser = HttpParser()
    name = b"X" * (HEADER_NAME_MAX - 1)
    result, _ = parser.parse(b"GET / HTTP/1.1\r\n" + name + b": v\r\n\r\n")
    assert result is ParseResult.SUCCESS
    assert parser.headers == [(name.decode(), "v")]

    parser = HttpParser()
    name = b"X" * HEADER_NAME_MAX
    result, _ = parser.parse(b"GET / HTTP/1.1\r\n" + name + b": v\r\n\r\n")
    assert result is ParseResult.ERROR


def test_partial_request_line_consumes_only_complete_fields():
    parser = HttpParser()
    result, consumed = parser.parse(b"GET /ind")
    assert result is ParseResult.AGAIN
    assert consumed == len(b"GET ")
    assert not parser.is_complete()


def test_post_with_body_in_one_call():
    request = b"POST /login HTTP/1.1\r\nContent-Length: 6\r\n\r\nname=x"
    parser = HttpParser()
    result, consumed = parser.parse(request)
    assert result is ParseResult.SUCCESS
    assert consumed == len(request)
    assert parser.body == b"name=x"
    assert parser.content_length == 6


def test_body_split_across_calls():
    parser = HttpParser()
    result, pending = feed(
        parser,
        [b"POST /a HTTP/1.1\r\nContent-Length: 6\r\n\r\n", b"nam", b"e=x"],
    )
    assert result is ParseResult.SUCCESS
    assert pending == b""
    assert parser.body == b"name=x"


def test_byte_by_byte_matches_single_call():
    request = (
        b"POST /submit HTTP/1.1\r\nHost: localhost\r\n"
        b"Content-Length: 5\r\nConnection: close\r\n\r\nhello"
    )
    whole = HttpParser()
    whole.parse(request)

    pieces = HttpParser()
    result, pending = feed(pieces, [request[i:i + 1] for i in range(len(request))])
    assert result is ParseResult.SUCCESS
    assert pending == b""
    assert pieces.method == whole.method
    assert pieces.uri == whole.uri
    assert pieces.version == whole.version
    assert pieces.headers == whole.headers
    assert pieces.body == whole.body
    assert pieces.keep_alive == whole.keep_alive


def test_pipelined_requests_leave_second_unconsumed():
    first = b"GET /a HTTP/1.1\r\n\r\n"
    second = b"GET /b HTTP/1.0\r\nHost: localhost\r\n\r\n"
    parser = HttpParser()
    result, consumed = parser.parse(first + second)
    assert result is ParseResult.SUCCESS
    assert consumed == len(first)
    assert parser.uri == "/a"

    result, consumed = parser.parse(second)
    assert result is ParseResult.SUCCESS
    assert consumed == len(second)
    assert parser.uri == "/b"
    assert parser.headers == [("Host", "localhost")]
    assert parser.keep_alive is False


def test_chunked_body_is_not_consumed():
    head = b"POST /up HTTP/1.1\r\nTransfer-Encoding: chunked\r\n\r\n"
    parser = HttpParser()
    result, consumed = parser.parse(head + b"5\r\nhello\r\n0\r\n\r\n")
    assert result is ParseResult.SUCCESS
    assert consumed == len(head)
    assert parser.chunked is True
    assert parser.body == b""


@pytest.mark.parametrize("value", [b"abc", b"-1", b"99999999999"])
def test_invalid_content_length(value):
    parser = HttpParser()
    result, _ = parser.parse(b"POST / HTTP/1.1\r\nContent-Length: " + value + b"\r\n\r\n")
    assert result is ParseResult.ERROR


def test_encode_round_trip():
    request = b"GET /index.html HTTP/1.1\r\nHost: localhost\r\nConnection: close\r\n\r\n"
    parser = HttpParser()
    parser.parse(request)
    assert parser.encode() == request


def test_encode_round_trip_with_body():
    request = b"POST /x HTTP/1.1\r\nContent-Length: 3\r\n\r\nabc"
    parser = HttpParser()
    parser.parse(request)
    assert parser.encode() == request


def test_encode_before_completion_raises():
    parser = HttpParser()
    parser.parse(b"GET / HTTP/1.1\r\n")
    with pytest.raises(RuntimeError):
        parser.encode()


def test_reset_clears_state():
    parser = HttpParser()
    parser.parse(GET_REQUEST)
    parser.reset()
    assert not parser.is_complete()
    assert parser.headers == []
    assert parser.method == ""