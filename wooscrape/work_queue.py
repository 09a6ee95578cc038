"""In-memory work queue shared by the scraper workers."""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

__all__ = ["WorkQueue", "QueueStats"]


@dataclass(frozen=True)
class QueueStats:
    total: int
    processed: int
    remaining: int
    failed: int
    elapsed_seconds: float
    success_rate: float

    @property
    def succeeded(self) -> int:
        return self.processed - self.failed

    def summary(self) -> str:
        return (
            f"processed {self.processed}/{self.total}, failed {self.failed}, "
            f"success rate {self.success_rate:.2%}, {self.elapsed_seconds:.2f}s"
        )


class WorkQueue:
    """Thread-safe FIFO of pending URLs with processing counters.

    ``next()`` pops under a lock, so no URL is ever handed to two workers.
    ``processed`` counts every dequeue; ``failed`` counts tasks that used
    up their retry budget.
    """

    def __init__(self, items: Iterable[str], clock: Callable[[], float] = time.monotonic):
        self._items = deque(items)
        self._lock = threading.Lock()
        self._clock = clock
        self._started_at = clock()
        self._processed = 0
        self._failed = 0

    @property
    def processed(self) -> int:
        with self._lock:
            return self._processed

    @property
    def failed(self) -> int:
        with self._lock:
            return self._failed

    def next(self) -> Optional[str]:
        """Remove and return the head item, or None when depleted."""
        with self._lock:
            if not self._items:
                return None
            self._processed += 1
            return self._items.popleft()

    def size(self) -> int:
        with self._lock:
            return len(self._items)

    def __len__(self) -> int:
        return self.size()

    def record_failure(self) -> None:
        with self._lock:
            self._failed += 1

    def stats(self) -> QueueStats:
        with self._lock:
            processed = self._processed
            failed = self._failed
            remaining = len(self._items)
        success_rate = (processed - failed) / processed if processed else 0.0
        return QueueStats(
            total=processed + remaining,
            processed=processed,
            remaining=remaining,
            failed=failed,
            elapsed_seconds=self._clock() - self._started_at,
            success_rate=success_rate,
        )
