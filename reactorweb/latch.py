"""A one-shot latch that releases waiters once counted down to zero."""

from __future__ import annotations

import threading


class CountDownLatch:
    """Block waiters until :meth:`count_down` has been called ``count`` times."""

    def __init__(self, count: int) -> None:
        if count <= 0:
            raise ValueError("count must be positive")
        self._count = count
        self._cond = threading.Condition()

    def wait(self, timeout: float | None = None) -> bool:
        """Wait until the count reaches zero; False if the timeout expired."""
        with self._cond:
            return self._cond.wait_for(lambda: self._count <= 0, timeout)

    def count_down(self) -> None:
        with self._cond:
            self._count -= 1
            if self._count == 0:
                self._cond.notify_all()

    @property
    def count(self) -> int:
        with self._cond:
            return self._count