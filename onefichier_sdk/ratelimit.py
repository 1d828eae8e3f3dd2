"""
Request throttling for the 1fichier SDK.

The API allows a small number of operations per second per account. This
module provides the process-wide gate every outbound call passes through, and
the local guard that keeps the unrestricted "list all files" call from being
issued more often than the service tolerates.
"""

import asyncio
import logging
import threading
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Optional

from .exceptions import AbuseGuardError

logger = logging.getLogger(__name__)

MAX_OPERATIONS = 3
OPERATION_WINDOW = 1.0
LIST_ALL_INTERVAL = 10 * 60.0


class ReadWriteLock:
    """
    Readers-writer lock built on threading primitives.

    Any number of readers may hold the lock together; a writer holds it alone.
    Waiting writers block new readers so that writers are not starved.
    Critical sections guarded by this lock never await, so it is safe to use
    from coroutines running on one or several event loops.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def acquire_read(self):
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True

    def release_write(self):
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    def read_locked(self) -> "_Guard":
        return _Guard(self.acquire_read, self.release_read)

    def write_locked(self) -> "_Guard":
        return _Guard(self.acquire_write, self.release_write)


class _Guard:
    def __init__(self, enter: Callable[[], None], exit_: Callable[[], None]):
        self._enter = enter
        self._exit = exit_

    def __enter__(self):
        self._enter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._exit()


class RateLimiter:
    """
    Bounds outbound operations to ``max_operations`` per trailing ``window``.

    The admission history is a window of at most ``max_operations`` instants,
    oldest first. A caller is admitted when the window is not full or when its
    oldest instant is at least ``window`` seconds old. There is no FIFO
    ordering among waiting callers.
    """

    def __init__(
        self,
        max_operations: int = MAX_OPERATIONS,
        window: float = OPERATION_WINDOW,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_operations < 1:
            raise ValueError("max_operations must be at least 1")
        if window <= 0:
            raise ValueError("window must be positive")

        self.max_operations = max_operations
        self.window = window
        self._clock = clock
        self._sleep = sleep
        self._timestamps: Deque[float] = deque()
        self._lock = ReadWriteLock()

    def _can_admit(self, now: float) -> bool:
        return (
            len(self._timestamps) < self.max_operations
            or now - self._timestamps[0] >= self.window
        )

    def _wait_time(self, now: float) -> float:
        if not self._timestamps:
            return 0.0
        return max(self.window - (now - self._timestamps[0]), 0.0)

    async def acquire(self) -> float:
        """
        Wait until one more operation fits in the window and record it.

        Returns:
            The clock reading recorded for this admission
        """
        while True:
            with self._lock.read_locked():
                now = self._clock()
                admissible = self._can_admit(now)
                delay = 0.0 if admissible else self._wait_time(now)

            if admissible:
                with self._lock.write_locked():
                    # Another caller may have taken the slot between the locks.
                    now = self._clock()
                    if self._can_admit(now):
                        self._timestamps.append(now)
                        if len(self._timestamps) > self.max_operations:
                            self._timestamps.popleft()
                        return now
                    delay = self._wait_time(now)

            logger.debug("Rate limit reached, waiting %.3fs", delay)
            await self._sleep(delay)

    def snapshot(self) -> list:
        """Return a copy of the recorded admission instants, oldest first."""
        with self._lock.read_locked():
            return list(self._timestamps)

    def reset(self):
        with self._lock.write_locked():
            self._timestamps.clear()


class IntervalGuard:
    """
    Allows an action at most once per ``interval`` seconds, process-wide.

    Used for the unrestricted file listing, which the service punishes when it
    is requested too often. The check fails locally before any network call.
    """

    def __init__(self, interval: float = LIST_ALL_INTERVAL, clock: Callable[[], float] = time.monotonic):
        self.interval = interval
        self._clock = clock
        self._last: Optional[float] = None
        self._lock = threading.Lock()

    def check(self):
        with self._lock:
            now = self._clock()
            if self._last is not None and now - self._last <= self.interval:
                remaining = self.interval - (now - self._last)
                raise AbuseGuardError(
                    f"Listing all files is limited to once every {self.interval:.0f}s; "
                    f"retry in {remaining:.0f}s"
                )
            self._last = now


_default_limiter = RateLimiter()
_default_list_all_guard = IntervalGuard()


def get_default_limiter() -> RateLimiter:
    """Return the limiter shared by every client in this process."""
    return _default_limiter


def get_default_list_all_guard() -> IntervalGuard:
    """Return the process-wide guard for unrestricted file listings."""
    return _default_list_all_guard
