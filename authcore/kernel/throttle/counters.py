"""
In-process attempt counters for login throttling.

Each key has its own asyncio.Lock, so an increment and the threshold
comparison that follows it happen as one step; unrelated keys never
contend. For multi-process deployments this store would be replaced by a
shared cache with the same interface.
"""

import asyncio
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Deque, Dict, Optional, Tuple


@dataclass
class AttemptCounter:
    """Failed-attempt state for one account."""

    failures: int = 0
    window_start: Optional[datetime] = None
    locked_until: Optional[datetime] = None

    def is_locked(self, now: datetime) -> bool:
        return self.locked_until is not None and now < self.locked_until


@dataclass
class AddressWindow:
    """Attempt instants for one origin address within the rolling window."""

    hits: Deque[datetime] = field(default_factory=deque)
    # Set once the current saturation has been reported
    denial_reported: bool = False


@dataclass(frozen=True)
class FailureOutcome:
    counter: AttemptCounter
    locked_now: bool


@dataclass(frozen=True)
class HitOutcome:
    allowed: bool
    count: int
    retry_after_seconds: int
    first_denial: bool


class InMemoryCounterStore:
    """Per-key atomic counters. Account keys and address keys share one lock map."""

    def __init__(self):
        self._counters: Dict[str, AttemptCounter] = {}
        self._windows: Dict[str, AddressWindow] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._guard = asyncio.Lock()

    async def _lock_for(self, key: str) -> asyncio.Lock:
        async with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[key] = lock
            return lock

    async def get(
        self,
        key: str,
        now: datetime,
        window_seconds: Optional[int] = None,
    ) -> AttemptCounter:
        """
        Snapshot of an account counter.

        An expired lock or expired window is cleared as part of the read.
        """
        async with await self._lock_for(key):
            counter = self._counters.get(key)
            if counter is None:
                return AttemptCounter()
            lock_expired = counter.locked_until is not None and now >= counter.locked_until
            window_expired = (
                counter.locked_until is None
                and window_seconds is not None
                and counter.window_start is not None
                and now - counter.window_start >= timedelta(seconds=window_seconds)
            )
            if lock_expired or window_expired:
                self._counters.pop(key, None)
                return AttemptCounter()
            return replace(counter)

    async def add_failure(
        self,
        key: str,
        now: datetime,
        threshold: int,
        window_seconds: int,
        lock_seconds: int,
    ) -> FailureOutcome:
        """Increment the failure count and lock the key when it reaches threshold."""
        async with await self._lock_for(key):
            counter = self._counters.get(key)
            window = timedelta(seconds=window_seconds)
            expired = counter is not None and (
                (counter.locked_until is not None and now >= counter.locked_until)
                or (counter.locked_until is None and counter.window_start is not None
                    and now - counter.window_start >= window)
            )
            if counter is None or expired:
                counter = AttemptCounter(failures=0, window_start=now)
                self._counters[key] = counter

            if counter.is_locked(now):
                return FailureOutcome(replace(counter), locked_now=False)

            counter.failures += 1
            locked_now = False
            if counter.failures >= threshold:
                counter.locked_until = now + timedelta(seconds=lock_seconds)
                locked_now = True
            return FailureOutcome(replace(counter), locked_now=locked_now)

    async def reset(self, key: str) -> None:
        async with await self._lock_for(key):
            self._counters.pop(key, None)

    async def hit(
        self,
        key: str,
        now: datetime,
        limit: int,
        window_seconds: int,
    ) -> HitOutcome:
        """
        Count an attempt in a rolling window.

        Returns allowed=False (and does not count the attempt) once limit
        attempts already fall inside the window.
        """
        async with await self._lock_for(key):
            window = self._windows.setdefault(key, AddressWindow())
            horizon = now - timedelta(seconds=window_seconds)
            while window.hits and window.hits[0] <= horizon:
                window.hits.popleft()

            if len(window.hits) < limit:
                window.hits.append(now)
                window.denial_reported = False
                return HitOutcome(True, len(window.hits), 0, False)

            oldest = window.hits[0]
            retry_after = (oldest + timedelta(seconds=window_seconds) - now).total_seconds()
            first_denial = not window.denial_reported
            window.denial_reported = True
            return HitOutcome(False, len(window.hits), max(int(retry_after) + 1, 1), first_denial)

    async def cleanup_old(self, now: datetime, max_age_seconds: int = 3600) -> int:
        """
        Remove idle entries to avoid unbounded growth. Returns entries removed.

        A key's lock goes with its state, unless a caller currently holds it.
        """
        horizon = now - timedelta(seconds=max_age_seconds)
        removed = 0
        async with self._guard:
            for key, counter in list(self._counters.items()):
                if not counter.is_locked(now) and (
                    counter.window_start is None or counter.window_start <= horizon
                ):
                    del self._counters[key]
                    removed += 1
            for key, window in list(self._windows.items()):
                if not window.hits or window.hits[-1] <= horizon:
                    del self._windows[key]
                    removed += 1
            idle = [
                key for key, lock in self._locks.items()
                if not lock.locked() and key not in self._counters and key not in self._windows
            ]
            for key in idle:
                del self._locks[key]
        return removed

    def snapshot(self) -> Tuple[int, int, int]:
        """(account counters, address windows, key locks) currently held."""
        return len(self._counters), len(self._windows), len(self._locks)
