"""Leveled logging with pluggable output and flush callbacks."""

from __future__ import annotations

import os
import sys
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional

from reactorweb.log_stream import LogStream, fmt
from reactorweb.threads import current_tid


class LogLevel(IntEnum):
    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    FATAL = 5


LOG_LEVEL_NAMES: dict[LogLevel, str] = {
    LogLevel.TRACE: "TRACE ",
    LogLevel.DEBUG: "DEBUG ",
    LogLevel.INFO: "INFO  ",
    LogLevel.WARN: "WARN  ",
    LogLevel.ERROR: "ERROR ",
    LogLevel.FATAL: "FATAL ",
}

OutputFunc = Callable[[bytes], Any]
FlushFunc = Callable[[], Any]


class FatalLogError(RuntimeError):
    """Raised after a FATAL record has been written and flushed."""


def _default_output(data: bytes) -> None:
    stream = sys.stdout
    raw = getattr(stream, "buffer", None)
    if raw is not None:
        stream.flush()
        raw.write(data)
    else:
        stream.write(data.decode("utf-8", "replace"))


def _default_flush() -> None:
    sys.stdout.flush()


@dataclass
class _State:
    enabled: bool = True
    level: LogLevel = LogLevel.INFO
    output: OutputFunc = _default_output
    flush: FlushFunc = _default_flush


_state = _State()
_time_cache = threading.local()


def strerror(errno_value: int) -> str:
    return os.strerror(errno_value)


def enable_logger(enable: bool) -> None:
    _state.enabled = bool(enable)


def set_log_level(level: int) -> None:
    _state.level = LogLevel(level)


def get_log_level() -> LogLevel:
    return _state.level


def set_output(func: Optional[OutputFunc]) -> None:
    """Route records to ``func``; None restores writing to stdout."""
    _state.output = func if func is not None else _default_output


def set_flush(func: Optional[FlushFunc]) -> None:
    """Use ``func`` to flush before a fatal error; None restores stdout's."""
    _state.flush = func if func is not None else _default_flush


def _formatted_second(seconds: int) -> str:
    if getattr(_time_cache, "second", None) != seconds:
        _time_cache.second = seconds
        _time_cache.text = time.strftime("%Y%m%d %H:%M:%S", time.localtime(seconds))
    return _time_cache.text


def format_record(
    level: int,
    message: Any,
    file: str,
    line: int,
    func: Optional[str] = None,
    errno_value: int = 0,
) -> bytes:
    """Build one complete log line, newline included."""
    level = LogLevel(level)
    seconds, micros = divmod(time.time_ns() // 1000, 1_000_000)
    stream = LogStream()
    stream.append(_formatted_second(seconds))
    stream.append(fmt(".%06d ", micros))
    stream.append("%7d " % current_tid())
    stream.append(LOG_LEVEL_NAMES[level])
    if errno_value:
        stream << strerror(errno_value) << " (errno=" << errno_value << ") "
    if func:
        stream << func << " "
    stream << message
    stream << " - " << file.rsplit("/", 1)[-1] << ":" << line << "\n"
    return stream.data


def _should_log(level: LogLevel) -> bool:
    if level >= LogLevel.FATAL:
        return True
    if not _state.enabled:
        return False
    if level >= LogLevel.WARN:
        return True
    return _state.level <= level


def _log(level: int, message: Any, errno_value: Optional[int], depth: int) -> None:
    level = LogLevel(level)
    if not _should_log(level):
        return
    frame = sys._getframe(depth)
    func = frame.f_code.co_name if level <= LogLevel.DEBUG else None
    record = format_record(
        level, message, frame.f_code.co_filename, frame.f_lineno, func, errno_value or 0
    )
    _state.output(record)
    if level is LogLevel.FATAL:
        _state.flush()
        raise FatalLogError(record.decode("utf-8", "replace").rstrip("\n"))


def log(level: int, message: Any, errno_value: Optional[int] = None) -> None:
    _log(level, message, errno_value, 2)


def trace(message: Any) -> None:
    _log(LogLevel.TRACE, message, None, 2)


def debug(message: Any) -> None:
    _log(LogLevel.DEBUG, message, None, 2)


def info(message: Any) -> None:
    _log(LogLevel.INFO, message, None, 2)


def warn(message: Any) -> None:
    _log(LogLevel.WARN, message, None, 2)


def error(message: Any) -> None:
    _log(LogLevel.ERROR, message, None, 2)


def syserr(message: Any, errno_value: Optional[int] = None) -> None:
    _log(LogLevel.ERROR, message, errno_value, 2)


def fatal(message: Any) -> None:
    _log(LogLevel.FATAL, message, None, 2)


def sysfatal(message: Any, errno_value: Optional[int] = None) -> None:
    _log(LogLevel.FATAL, message, errno_value, 2)