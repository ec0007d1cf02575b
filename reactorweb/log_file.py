"""Append-only log files that roll over by size and by day."""

from __future__ import annotations

import contextlib
import os
import threading
import time
from typing import Optional, Union

BytesLike = Union[bytes, bytearray, memoryview, str]

_FILE_BUFFER_SIZE = 64 * 1024
ROLL_INTERVAL_SECONDS = 60 * 60 * 24


def ensure_dir_exists(path: str) -> None:
    """Create ``path`` and its parents; fail if part of it is not a directory."""
    if not path or os.path.isdir(path):
        return
    try:
        os.makedirs(path, mode=0o755, exist_ok=True)
    except FileExistsError as exc:
        raise NotADirectoryError(f"path exists but is not a directory: {path}") from exc


def log_file_name(basename: str, now: Optional[float] = None) -> str:
    """Return ``basename.YYYYmmdd-HHMMSS.pid.log`` for the local time ``now``."""
    if now is None:
        now = time.time()
    stamp = time.strftime(".%Y%m%d-%H%M%S", time.localtime(now))
    return f"{basename}{stamp}.{os.getpid()}.log"


class AppendFile:
    """A buffered file opened for appending that counts bytes written."""

    def __init__(self, filename: str) -> None:
        self._file = open(filename, "ab", buffering=_FILE_BUFFER_SIZE)
        self._written = 0

    def append(self, data: BytesLike) -> None:
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        view = memoryview(payload)
        while view:
            count = self._file.write(view)
            if not count:
                raise OSError("write to log file made no progress")
            self._written += count
            view = view[count:]

    def flush(self) -> None:
        self._file.flush()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def written_bytes(self) -> int:
        return self._written

    def __enter__(self) -> "AppendFile":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class LogFile:
    """Log file writer that starts a new file when size or day limits are hit."""

    def __init__(
        self,
        basename: str,
        directory: str,
        roll_size: int,
        thread_safe: bool = True,
        flush_interval: int = 3,
        check_every_n: int = 1024,
    ) -> None:
        if "/" in basename:
            raise ValueError("basename must not contain '/'")
        self._basename = basename
        self._dir = directory
        self._roll_size = roll_size
        self._flush_interval = flush_interval
        self._check_every_n = check_every_n
        self._count = 0
        self._lock: Optional[threading.Lock] = threading.Lock() if thread_safe else None
        self._file: Optional[AppendFile] = None
        self._filename = ""
        self._start_of_period = 0
        self._last_roll = 0
        self._last_flush = 0
        ensure_dir_exists(directory)
        self.roll_file()

    @property
    def filename(self) -> str:
        """Path of the file currently written to."""
        return self._filename

    def _guard(self):
        return self._lock if self._lock is not None else contextlib.nullcontext()

    def append(self, data: BytesLike) -> None:
        with self._guard():
            self._append_unlocked(data)

    def flush(self) -> None:
        with self._guard():
            self._current().flush()

    def close(self) -> None:
        with self._guard():
            if self._file is not None:
                self._file.close()

    def _current(self) -> AppendFile:
        if self._file is None:
            raise RuntimeError("no log file is open")
        return self._file

    def _append_unlocked(self, data: BytesLike) -> None:
        current = self._current()
        current.append(data)
        if current.written_bytes() > self._roll_size:
            self.roll_file()
            return
        self._count += 1
        if self._count >= self._check_every_n:
            self._count = 0
            now = int(time.time())
            this_period = now // ROLL_INTERVAL_SECONDS * ROLL_INTERVAL_SECONDS
            if this_period > self._start_of_period:
                self.roll_file()
            elif now - self._last_flush > self._flush_interval:
                self._last_flush = now
                current.flush()

    def roll_file(self) -> bool:
        """Open a new file unless one was already opened this second."""
        now = int(time.time())
        if now <= self._last_roll:
            return False
        self._last_roll = now
        self._last_flush = now
        self._start_of_period = now // ROLL_INTERVAL_SECONDS * ROLL_INTERVAL_SECONDS
        filename = f"{self._dir}/{log_file_name(self._basename, now)}"
        new_file = AppendFile(filename)
        if self._file is not None:
            self._file.close()
        self._file = new_file
        self._filename = filename
        return True

    def __enter__(self) -> "LogFile":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()