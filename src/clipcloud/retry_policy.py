#!/usr/bin/env python3
"""Reconnect policy for the push channel.

Bounded attempts with a fixed delay, built on tenacity. Only the push
channel reconnects automatically; uploads and downloads are never retried
inside a sync cycle, the next poll tick or doorbell is their retry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from clipcloud.constants import RECONNECT_ATTEMPTS, RECONNECT_DELAY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconnectPolicy:
    """
    Bounded retry with fixed backoff.

    Attributes:
        attempts: Total connection attempts before giving up.
        delay: Seconds to wait between attempts.
    """

    attempts: int = RECONNECT_ATTEMPTS
    delay: float = RECONNECT_DELAY

    def retrying(self, *retry_on: type[BaseException]) -> AsyncRetrying:
        """
        Build a tenacity controller for one reconnect cycle.

        The last exception is re-raised once attempts are exhausted.

        Args:
            retry_on: Exception types that trigger another attempt.

        Returns:
            An AsyncRetrying to iterate with ``async for attempt in ...``.
        """
        return AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_fixed(self.delay),
            retry=retry_if_exception_type(retry_on or (Exception,)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
