"""Delivery of poller notifications to the consumer's own thread."""

from __future__ import annotations

import queue
import time
from typing import Callable

Dispatcher = Callable[[Callable[[], None]], None]


def inline_dispatch(task: Callable[[], None]) -> None:
    """Run the notification on the poll thread. Only for thread-safe consumers."""
    task()


class QueueDispatcher:
    """Queues notifications for a consumer that owns a single thread.

    The poll thread only enqueues; the consumer calls ``drain`` or
    ``run_until`` from its own loop, so callbacks never touch consumer state
    from the poll thread.
    """

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[Callable[[], None]] = queue.SimpleQueue()

    def __call__(self, task: Callable[[], None]) -> None:
        self._queue.put(task)

    def pending(self) -> int:
        return self._queue.qsize()

    def drain(self, timeout: float | None = None) -> int:
        """Run every queued task on the calling thread.

        Blocks up to ``timeout`` seconds for the first task when the queue is
        empty (``None`` means don't wait). Returns the number of tasks run.
        """
        ran = 0
        try:
            task = self._queue.get(timeout=timeout) if timeout else self._queue.get_nowait()
        except queue.Empty:
            return 0
        while True:
            task()
            ran += 1
            try:
                task = self._queue.get_nowait()
            except queue.Empty:
                return ran

    def run_until(
        self,
        done: Callable[[], bool],
        timeout: float | None = None,
        poll: float = 0.1,
    ) -> bool:
        """Drain tasks until ``done()`` is true or ``timeout`` elapses.

        Returns whether ``done()`` became true.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not done():
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self.drain(timeout=min(poll, remaining))
            else:
                self.drain(timeout=poll)
        return True
