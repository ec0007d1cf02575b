"""Background logger that batches log lines in large buffers and writes them to files."""

from __future__ import annotations

import sys
import threading
import time
from typing import Optional, Union

from reactorweb.latch import CountDownLatch
from reactorweb.log_file import LogFile
from reactorweb.log_stream import LARGE_BUFFER, FixedBuffer
from reactorweb.threads import Thread

BytesLike = Union[bytes, bytearray, memoryview, str]

MAX_BUFFERS = 25
BUFFERS_KEPT_WHEN_OVERSTOCKED = 2


def _now_string() -> str:
    now_ns = time.time_ns()
    seconds, rest = divmod(now_ns, 1_000_000_000)
    stamp = time.strftime("%Y%m%d %H:%M:%S", time.localtime(seconds))
    return f"{stamp}.{rest // 1000:06d}"


class AsyncLogger:
    """Collect log lines from many threads; a worker thread writes them to disk.

    Front-end threads append into the current buffer. Filled buffers are
    handed to the worker, which writes them at least every
    ``flush_interval`` seconds.
    """

    def __init__(
        self,
        basename: str,
        directory: str,
        roll_size: int,
        flush_interval: float = 2,
    ) -> None:
        if not basename:
            raise ValueError("basename must not be empty")
        self._basename = basename
        self._dir = directory
        self._roll_size = roll_size
        self._flush_interval = flush_interval
        self._running = False
        self._thread = Thread(self._thread_func, "Logging")
        self._latch = CountDownLatch(1)
        self._cond = threading.Condition()
        self._current = FixedBuffer(LARGE_BUFFER)
        self._next: Optional[FixedBuffer] = FixedBuffer(LARGE_BUFFER)
        self._buffers: list[FixedBuffer] = []

    @property
    def running(self) -> bool:
        return self._running

    def append(self, data: BytesLike) -> None:
        """Queue one log line; it is dropped if larger than a whole buffer."""
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        with self._cond:
            if self._current.avail() > len(payload):
                self._current.append(payload)
                return
            self._buffers.append(self._current)
            if self._next is not None:
                self._current = self._next
                self._next = None
            else:
                self._current = FixedBuffer(LARGE_BUFFER)
            self._current.append(payload)
            self._cond.notify()

    def start(self) -> None:
        """Start the worker thread and return once it runs."""
        if self._running:
            raise RuntimeError("logger already running")
        self._running = True
        self._thread.start()
        self._latch.wait()

    def stop(self) -> None:
        """Stop the worker after it has written everything queued."""
        if not self._running:
            raise RuntimeError("logger is not running")
        with self._cond:
            self._running = False
            self._cond.notify_all()
        self._thread.join()

    def __enter__(self) -> "AsyncLogger":
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        if self._running:
            self.stop()

    def _thread_func(self) -> None:
        self._latch.count_down()
        output = LogFile(self._basename, self._dir, self._roll_size, thread_safe=False)
        spare1: Optional[FixedBuffer] = FixedBuffer(LARGE_BUFFER)
        spare2: Optional[FixedBuffer] = FixedBuffer(LARGE_BUFFER)
        try:
            while self._running:
                with self._cond:
                    if not self._buffers:
                        self._cond.wait_for(
                            lambda: bool(self._buffers) or not self._running,
                            self._flush_interval,
                        )
                    self._buffers.append(self._current)
                    self._current = spare1 if spare1 is not None else FixedBuffer(LARGE_BUFFER)
                    spare1 = None
                    to_write, self._buffers = self._buffers, []
                    if self._next is None:
                        self._next = spare2 if spare2 is not None else FixedBuffer(LARGE_BUFFER)
                        spare2 = None

                self._write_buffers(output, to_write)

                del to_write[2:]
                if spare1 is None:
                    spare1 = to_write.pop() if to_write else FixedBuffer(LARGE_BUFFER)
                    spare1.reset()
                if spare2 is None:
                    spare2 = to_write.pop() if to_write else FixedBuffer(LARGE_BUFFER)
                    spare2.reset()
                output.flush()

            with self._cond:
                remaining = self._buffers + [self._current]
                self._buffers = []
                self._current = FixedBuffer(LARGE_BUFFER)
            self._write_buffers(output, remaining)
            output.flush()
        finally:
            output.close()

    @staticmethod
    def _write_buffers(output: LogFile, buffers: list[FixedBuffer]) -> None:
        if len(buffers) > MAX_BUFFERS:
            message = (
                f"Dropped log messages at {_now_string()}, "
                f"{len(buffers) - 2} larger buffers\n"
            )
            sys.stderr.write(message)
            output.append(message)
            del buffers[BUFFERS_KEPT_WHEN_OVERSTOCKED:]
        for buffer in buffers:
            if buffer.length():
                output.append(buffer.data())