"""A single scheduled callback, optionally repeating."""

from __future__ import annotations

import itertools
import threading
import time
from typing import Callable

INVALID_TIMER_ID = 0

_id_lock = threading.Lock()
_id_source = itertools.count(INVALID_TIMER_ID + 1)


def _next_timer_id() -> int:
    with _id_lock:
        return next(_id_source)


class Timer:
    """A callback due at a monotonic time point.

    ``when`` is a value of ``time.monotonic()``; ``interval`` is in seconds.
    A positive interval makes the timer repeat.
    """

    def __init__(self, callback: Callable[[], object], when: float,
                 interval: float = 0.0):
        self._callback = callback
        self._when = when
        self._interval = interval
        self._repeat = interval > 0
        self._id = _next_timer_id()

    def run(self) -> None:
        """Invoke the callback."""
        self._callback()

    def restart(self, now: float) -> None:
        """Reschedule a repeating timer one interval after ``now``."""
        if self._repeat:
            self._when = now + self._interval
        else:
            self._when = time.monotonic()

    @property
    def when(self) -> float:
        """The monotonic time at which the timer is due."""
        return self._when

    @property
    def is_repeat(self) -> bool:
        """True if the timer repeats."""
        return self._repeat

    @property
    def id(self) -> int:
        """The timer's unique identifier."""
        return self._id

    @property
    def interval(self) -> float:
        """The repeat interval in seconds (0 for a one-shot timer)."""
        return self._interval

    def __lt__(self, other: Timer) -> bool:
        return self._when < other._when

    def __gt__(self, other: Timer) -> bool:
        return self._when > other._when

    def __repr__(self) -> str:
        return (f"Timer(id={self._id}, when={self._when!r}, "
                f"interval={self._interval!r})")