"""A queue of timers ordered by due time."""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from typing import Callable

from trantor.timer import Timer

DEFAULT_TIMEOUT_MS = 10000
_MIN_TIMEOUT_US = 1000


class TimerQueue:
    """Holds timers, reports how long to wait and runs those that are due."""

    def __init__(self):
        self._lock = threading.Lock()
        self._heap: list[tuple[float, int, Timer]] = []
        self._seq = itertools.count()
        self._timer_ids: set[int] = set()

    def add_timer(self, callback: Callable[[], object], when: float,
                  interval: float = 0.0) -> int:
        """Schedule ``callback`` at monotonic time ``when``; return its id."""
        timer = Timer(callback, when, interval)
        with self._lock:
            self._timer_ids.add(timer.id)
            self._insert(timer)
        return timer.id

    def invalidate_timer(self, timer_id: int) -> None:
        """Cancel the timer with ``timer_id``; unknown ids are ignored."""
        with self._lock:
            self._timer_ids.discard(timer_id)

    def get_timeout(self) -> int:
        """Milliseconds until the earliest timer is due (at least 1)."""
        with self._lock:
            if not self._heap:
                return DEFAULT_TIMEOUT_MS
            when = self._heap[0][0]
        micro_seconds = int((when - time.monotonic()) * 1_000_000)
        micro_seconds = max(micro_seconds, _MIN_TIMEOUT_US)
        return micro_seconds // 1000

    def process_timers(self) -> None:
        """Run every timer that is due and reschedule the repeating ones."""
        now = time.monotonic()
        with self._lock:
            expired = self._get_expired(now)
        try:
            for timer in expired:
                with self._lock:
                    active = timer.id in self._timer_ids
                if active:
                    timer.run()
        finally:
            with self._lock:
                self._reset(expired, now)

    def __len__(self) -> int:
        with self._lock:
            return len(self._heap)

    def _insert(self, timer: Timer) -> bool:
        earliest_changed = not self._heap or timer.when < self._heap[0][0]
        heapq.heappush(self._heap, (timer.when, next(self._seq), timer))
        return earliest_changed

    def _get_expired(self, now: float) -> list[Timer]:
        expired = []
        while self._heap and self._heap[0][0] < now:
            expired.append(heapq.heappop(self._heap)[2])
        return expired

    def _reset(self, expired: list[Timer], now: float) -> None:
        for timer in expired:
            if timer.id not in self._timer_ids:
                continue
            if timer.is_repeat:
                timer.restart(now)
                self._insert(timer)
            else:
                self._timer_ids.discard(timer.id)