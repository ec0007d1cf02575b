"""Named worker threads with a known native thread id, and per-thread names."""

from __future__ import annotations

import os
import sys
import threading
from collections.abc import Callable

from reactorweb.latch import CountDownLatch

_local = threading.local()
_counter_lock = threading.Lock()


def current_tid() -> int:
    """Return the operating-system id of the calling thread."""
    return threading.get_native_id()


def is_main_thread() -> bool:
    return threading.current_thread() is threading.main_thread()


def current_thread_name() -> str:
    """Return the name this package gave the calling thread."""
    name = getattr(_local, "name", None)
    if name is None:
        return "main" if is_main_thread() else "unknown"
    return name


def _set_current_name(name: str) -> None:
    _local.name = name


def _after_fork() -> None:
    _set_current_name("main")


if hasattr(os, "register_at_fork"):
    os.register_at_fork(after_in_child=_after_fork)


class Thread:
    """A thread whose :meth:`start` returns only once it runs and has a tid."""

    _num_created = 0

    def __init__(self, func: Callable[[], object], name: str = "") -> None:
        with _counter_lock:
            Thread._num_created += 1
            number = Thread._num_created
        self._func = func
        self._name = name or f"Thread{number}"
        self._started = False
        self._joined = False
        self._tid = 0
        self._thread: threading.Thread | None = None
        self._latch = CountDownLatch(1)
        self._exception: BaseException | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def tid(self) -> int:
        return self._tid

    @property
    def started(self) -> bool:
        return self._started

    @property
    def exception(self) -> BaseException | None:
        """The exception the thread function raised, if any."""
        return self._exception

    @staticmethod
    def num_created() -> int:
        with _counter_lock:
            return Thread._num_created

    def start(self) -> None:
        if self._started:
            raise RuntimeError("thread already started")
        self._started = True
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        self._latch.wait()

    def join(self) -> None:
        if not self._started or self._thread is None:
            raise RuntimeError("thread not started")
        if self._joined:
            raise RuntimeError("thread already joined")
        self._thread.join()
        self._joined = True

    def _run(self) -> None:
        self._tid = current_tid()
        self._latch.count_down()
        _set_current_name(self._name)
        try:
            self._func()
            _set_current_name("finished")
        except Exception as exc:
            _set_current_name("crashed")
            self._exception = exc
            print(f"exception caught in Thread {self._name}", file=sys.stderr)
            print(f"reason: {exc}", file=sys.stderr)
        except BaseException as exc:
            _set_current_name("crashed")
            self._exception = exc
            print(f"unknown exception caught in Thread {self._name}", file=sys.stderr)
            raise