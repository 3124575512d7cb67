#!/usr/bin/env python3
"""
Timed mutual exclusion for sync operations.

Every code path that touches the clipboard or calls the transport must hold
the SyncLock. The lock is advisory and never blocks: a caller that fails to
acquire it skips its cycle. Two layers guarantee forward progress:

- Callers release the lock in a finally block around the protected section.
- An auto-release timer frees the lock once the timeout elapses, and a
  try_acquire() after the timeout force-releases a stale holder.

Each acquisition returns a LockLease. Releasing with a lease that has
already been force-released is a no-op, so a hung holder that finally
completes cannot release a lock that now belongs to someone else.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from clipcloud.constants import LOCK_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LockLease:
    """Proof of a successful acquisition.

    Attributes:
        generation: Acquisition counter value for this lease.
        started_at: Clock reading when the lock was acquired.
    """

    generation: int
    started_at: float


class SyncLock:
    """Non-blocking lock with a hard timeout.

    State machine: Idle -> Processing -> Idle.
    """

    def __init__(
        self,
        timeout: float = LOCK_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.timeout = timeout
        self._clock = clock
        self._lease: LockLease | None = None
        self._generation = 0
        self._timer: asyncio.TimerHandle | None = None

    @property
    def is_processing(self) -> bool:
        """True while a lease is outstanding."""
        return self._lease is not None

    @property
    def processing_started_at(self) -> float | None:
        """Clock reading of the current acquisition, or None when idle."""
        return self._lease.started_at if self._lease else None

    def try_acquire(self) -> LockLease | None:
        """
        Try to enter the protected section without waiting.

        Returns:
            A LockLease on success, None when another operation holds the
            lock and its timeout has not elapsed.
        """
        now = self._clock()
        if self._lease is not None:
            if now - self._lease.started_at <= self.timeout:
                return None
            logger.warning(
                "Force releasing sync lock held for %.1fs", now - self._lease.started_at
            )
            self._reset()

        self._generation += 1
        lease = LockLease(generation=self._generation, started_at=now)
        self._lease = lease
        self._schedule_auto_release(lease)
        return lease

    def release(self, lease: LockLease | None = None) -> None:
        """
        Leave the protected section.

        Args:
            lease: The lease returned by try_acquire(). If it no longer
                matches the current holder (it was force-released), the call
                does nothing. None releases unconditionally.
        """
        if lease is not None and lease != self._lease:
            logger.debug("Ignoring release of stale lease %d", lease.generation)
            return
        self._reset()

    def _reset(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._lease = None

    def _schedule_auto_release(self, lease: LockLease) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: stale leases are still recovered by try_acquire().
            return
        self._timer = loop.call_later(self.timeout, self._auto_release, lease)

    def _auto_release(self, lease: LockLease) -> None:
        if self._lease != lease:
            return
        logger.warning("Sync lock timeout reached, auto-releasing")
        self._timer = None
        self._lease = None
