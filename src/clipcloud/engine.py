#!/usr/bin/env python3
"""Clipboard synchronization engine.

SyncEngine is the single entry point the desktop application calls into.
It owns the SyncState, starts the local poll loop and the push
subscription when automatic sync is enabled, and exposes the manual
triggers (upload, download, save) and the focus hook.

Usage:
    engine = SyncEngine(config, clipboard)
    engine.start()
    ...
    await engine.aclose()
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from contextlib import suppress
from pathlib import Path
from typing import TYPE_CHECKING

from clipcloud.events import SyncEvents
from clipcloud.sync_download import handle_remote_change, save_latest
from clipcloud.sync_loop import poll_once, run_poll_loop
from clipcloud.sync_state import SyncOutcome, SyncState, default_temp_dir
from clipcloud.sync_upload import handle_local_change
from clipcloud.transport import TransportClient

if TYPE_CHECKING:
    from clipcloud.clipboard import Clipboard
    from clipcloud.config import SyncConfig
    from clipcloud.push_channel import PushChannel

logger = logging.getLogger(__name__)


class SyncEngine:
    """Bidirectional clipboard sync between the local clipboard and the cloud.

    Args:
        config: Sync settings.
        clipboard: The local clipboard capability.
        transport: Cloud client; built from config when omitted, in which
            case the engine owns it and closes it in aclose().
        events: Channel for observable events; a new one when omitted.
        clock: Monotonic clock for debounce and lock timing.
        temp_dir: Directory for temporary uploads and downloads.
    """

    def __init__(
        self,
        config: SyncConfig,
        clipboard: Clipboard,
        transport: TransportClient | None = None,
        *,
        events: SyncEvents | None = None,
        clock: Callable[[], float] = time.monotonic,
        temp_dir: Path | None = None,
    ) -> None:
        self.config = config
        self.events = events or SyncEvents()
        self._owns_transport = transport is None
        self.transport = transport or self._build_transport(config)
        self.state = SyncState(
            clipboard=clipboard,
            transport=self.transport,
            events=self.events,
            credential=config.credential,
            clock=clock,
            temp_dir=temp_dir or default_temp_dir(),
        )
        self._stop_event = asyncio.Event()
        self._poll_task: asyncio.Task[None] | None = None
        self._subscription: PushChannel | None = None

    @property
    def running(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    def start(self) -> bool:
        """
        Start the poll loop and the push subscription.

        Must be called from a running event loop. Does nothing when
        automatic sync is disabled or no credential is configured.

        Returns:
            True if the engine is running after the call.
        """
        if self.running:
            return True
        if not self.config.enabled:
            logger.info("Automatic clipboard sync disabled or no app key, not starting")
            return False

        logger.info("Starting clipboard sync with %s", self.config.base_url)
        self._stop_event = asyncio.Event()
        self._poll_task = asyncio.get_running_loop().create_task(
            run_poll_loop(
                self.state,
                self.config.poll_interval_ms / 1000,
                self._stop_event,
                self.config.remote_check_interval_ms / 1000,
            )
        )
        self._subscription = self.transport.subscribe(
            self.on_remote_change, events=self.events
        )
        return True

    async def stop(self) -> None:
        """Stop the poll loop and close the push subscription."""
        self._stop_event.set()
        if self._subscription is not None:
            await self._subscription.close()
            self._subscription = None
        if self._poll_task is not None:
            self._poll_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._poll_task
            self._poll_task = None

    async def aclose(self) -> None:
        """Stop the engine and close a transport it created."""
        await self.stop()
        if self._owns_transport:
            await self.transport.aclose()

    async def reconfigure(self, config: SyncConfig) -> bool:
        """
        Apply new settings, restarting the loop and push channel.

        This is also how a push channel that gave up is re-established.

        Args:
            config: The new settings.

        Returns:
            True if the engine is running with the new settings.
        """
        await self.stop()
        account_changed = (
            config.base_url != self.config.base_url
            or config.credential != self.config.credential
        )
        if account_changed:
            # Another cloud clipboard: nothing synced so far applies to it.
            self.state.snapshot.clear()
            self.state.download_memory.clear()
        if self._owns_transport and (
            account_changed or config.request_timeout != self.config.request_timeout
        ):
            await self.transport.aclose()
            self.transport = self._build_transport(config)
            self.state.transport = self.transport
        self.config = config
        self.state.credential = config.credential
        return self.start()

    async def run(self, shutdown: asyncio.Event) -> None:
        """Run until shutdown is set, then stop."""
        if not self.start():
            return
        try:
            await shutdown.wait()
        finally:
            await self.stop()

    async def poll_once(self) -> SyncOutcome | None:
        """Run a single poll tick outside the loop."""
        return await poll_once(self.state)

    async def on_focus(self) -> SyncOutcome:
        """Re-evaluate the local clipboard when the window regains focus."""
        self.state.local_pending = True
        return await handle_local_change(self.state)

    async def on_remote_change(self) -> SyncOutcome:
        """
        Doorbell callback for the push channel.

        If the attempt is skipped, the notification stays pending and the
        next poll tick checks the cloud again.
        """
        self.state.remote_pending = True
        return await handle_remote_change(self.state)

    async def upload_now(self) -> SyncOutcome:
        """Upload the current clipboard, ignoring the debounce window."""
        return await handle_local_change(self.state, manual=True)

    async def download_now(self) -> SyncOutcome:
        """Download the latest cloud entry, ignoring the debounce window."""
        return await handle_remote_change(self.state, manual=True)

    async def save_latest(self, destination: str | Path) -> Path | None:
        """Save the latest cloud entry to a file; see sync_download.save_latest."""
        return await save_latest(self.state, destination)

    @staticmethod
    def _build_transport(config: SyncConfig) -> TransportClient:
        return TransportClient(
            config.base_url, config.credential, timeout=config.request_timeout
        )
