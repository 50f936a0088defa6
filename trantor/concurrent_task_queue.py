"""A task queue served by a fixed pool of worker threads."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Callable

_log = logging.getLogger(__name__)


class ConcurrentTaskQueue:
    """Runs queued callables in parallel on ``thread_num`` threads."""

    def __init__(self, thread_num, name):
        if thread_num <= 0:
            raise ValueError("thread_num must be positive")
        self._name = name
        self._tasks: deque[Callable[[], object]] = deque()
        self._cond = threading.Condition()
        self._stopped = False
        self._threads = [
            threading.Thread(target=self._queue_func, name=f"{name}{i}",
                             daemon=True)
            for i in range(thread_num)
        ]
        for thread in self._threads:
            thread.start()

    def run_task_in_queue(self, task) -> None:
        """Queue ``task`` to be run by one of the workers."""
        _log.debug("task put into queue")
        with self._cond:
            self._tasks.append(task)
            self._cond.notify()

    def name(self) -> str:
        """The queue's name."""
        return self._name

    def task_count(self) -> int:
        """Number of tasks waiting to run."""
        with self._cond:
            return len(self._tasks)

    def stop(self) -> None:
        """Stop the workers and wait for them; tasks not yet taken are dropped."""
        with self._cond:
            if self._stopped:
                return
            self._stopped = True
            self._cond.notify_all()
        current = threading.current_thread()
        for thread in self._threads:
            if thread is not current:
                thread.join()

    def __enter__(self) -> ConcurrentTaskQueue:
        return self

    def __exit__(self, *args) -> None:
        self.stop()

    def _queue_func(self) -> None:
        while not self._stopped:
            with self._cond:
                while not self._stopped and not self._tasks:
                    self._cond.wait()
                if not self._tasks:
                    continue
                task = self._tasks.popleft()
            try:
                task()
            except Exception:
                _log.exception("task in queue %s raised", self._name)