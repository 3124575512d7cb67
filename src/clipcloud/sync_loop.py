#!/usr/bin/env python3
"""Periodic clipboard poll loop.

Each tick diffs the local clipboard against the snapshot and runs the
upload path when something changed. Work that was skipped (debounce or a
busy lock) stays pending and is re-evaluated on the next tick against the
current clipboard and cloud state; nothing is queued or replayed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from clipcloud.sync_download import handle_remote_change
from clipcloud.sync_upload import handle_local_change

if TYPE_CHECKING:
    from clipcloud.sync_state import SyncOutcome, SyncState

logger = logging.getLogger(__name__)


async def poll_once(state: SyncState) -> SyncOutcome | None:
    """Run one poll tick.

    Args:
        state: The clipboard synchronization state.

    Returns:
        The outcome of the upload path, or None if it did not run.
    """
    change = state.snapshot.diff(state.clipboard)
    if change is not None:
        logger.debug(
            "Clipboard changed: %s",
            ", ".join(sorted(kind.value for kind in change.changed)) or "cleared",
        )
        state.local_pending = True

    outcome = None
    if state.local_pending:
        outcome = await handle_local_change(state)
    if state.remote_pending:
        await handle_remote_change(state)
    return outcome


async def run_poll_loop(
    state: SyncState,
    interval: float,
    stop_event: asyncio.Event,
    remote_check_interval: float = 0.0,
) -> None:
    """Poll the clipboard until stop_event is set.

    Args:
        state: The clipboard synchronization state.
        interval: Seconds between poll ticks.
        stop_event: Set to end the loop.
        remote_check_interval: Seconds between periodic remote checks;
            0 disables them.
    """
    next_remote_check = state.clock() + remote_check_interval
    while not stop_event.is_set():
        if remote_check_interval and state.clock() >= next_remote_check:
            state.remote_pending = True
            next_remote_check = state.clock() + remote_check_interval
        try:
            await poll_once(state)
        except Exception:
            logger.exception("Unexpected error during clipboard poll")

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass
