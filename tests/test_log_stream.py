import pytest

from reactorweb.log_stream import (
    MAX_NUMERIC_SIZE,
    SMALL_BUFFER,
    FixedBuffer,
    LogStream,
    fmt,
)


def test_fixed_buffer_append_and_reset():
    buf = FixedBuffer(16)
    assert buf.append(b"abc")
    assert buf.append("de")
    assert buf.data() == b"abcde"
    assert buf.length() == 5
    assert buf.avail() == 11
    buf.reset()
    assert buf.length() == 0
    assert buf.data() == b""


def test_fixed_buffer_drops_data_that_does_not_strictly_fit():
    buf = FixedBuffer(10)
    assert not buf.append(b"x" * 10)
    assert buf.data() == b""
    assert buf.append(b"x" * 9)
    assert buf.avail() == 1


def test_fixed_buffer_rejects_non_positive_size():
    with pytest.raises(ValueError):
        FixedBuffer(0)


def test_stream_formats_values():
    stream = LogStream()
    stream << "n=" << 42 << " neg=" << -7 << " f=" << 3.5 << " b=" << True << " " << None
    assert stream.data == b"n=42 neg=-7 f=3.5 b=1 (null)"


def test_stream_float_uses_twelve_significant_digits():
    stream = LogStream()
    stream << 1 / 3
    assert stream.data == b"0.333333333333"


def test_stream_accepts_bytes_and_objects():
    stream = LogStream()
    stream << b"raw" << ":" << [1, 2]
    assert stream.data == b"raw:[1, 2]"


def test_stream_append_and_reset():
    stream = LogStream()
    stream.append("hello")
    assert stream.buffer.length() == 5
    stream.reset_buffer()
    assert stream.data == b""


def test_stream_drops_numbers_when_space_is_short():
    stream = LogStream()
    stream.append(b"x" * (SMALL_BUFFER - MAX_NUMERIC_SIZE + 1))
    before = stream.buffer.length()
    stream << 12345
    assert stream.buffer.length() == before


def test_stream_drops_oversized_text():
    stream = LogStream()
    stream << "y" * SMALL_BUFFER
    assert stream.buffer.length() == 0


def test_fmt_pads_microseconds():
    assert fmt(".%06d ", 42) == ".000042 "
    assert len(fmt(".%06d ", 999999)) == 8


def test_fmt_rejects_non_numbers():
    with pytest.raises(TypeError):
        fmt("%s", "text")


def test_fmt_rejects_long_output():
    with pytest.raises(ValueError):
        fmt("%090d", 1)