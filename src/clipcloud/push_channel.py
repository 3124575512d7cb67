#!/usr/bin/env python3
"""Push notification channel to the cloud clipboard service.

The service rings a doorbell: a ``clipboard_update`` Socket.IO event with no
payload. The channel forwards it to its callback, which fetches the content
itself. The connection is authenticated with the application key.

Liveness is checked with application level keepalives: a ``ping`` is
emitted every ping_interval seconds, and if no ``pong`` arrives within
ping_timeout the connection is treated as dead.

Lost or failed connections are re-established under a ReconnectPolicy.
When a reconnect cycle exhausts its attempts the channel emits a
connection-error event and stops; it never raises into the host process.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import suppress
from typing import Any

import socketio

from clipcloud.constants import PING_INTERVAL, PING_TIMEOUT, REQUEST_TIMEOUT
from clipcloud.errors import PushConnectionError
from clipcloud.events import CONNECTION_ERROR, SyncEvents
from clipcloud.retry_policy import ReconnectPolicy

logger = logging.getLogger(__name__)

DOORBELL_EVENT = "clipboard_update"


class PushChannel:
    """Doorbell subscription over Socket.IO.

    Args:
        url: Server URL.
        credential: Application key sent in the Socket.IO auth payload.
        on_change: Called with no arguments on every doorbell. May be a
            coroutine function.
        events: Channel for the connection-error event.
        policy: Reconnect policy.
        ping_interval: Seconds between keepalive pings.
        ping_timeout: Seconds without a pong before reconnecting.
        connect_timeout: Seconds to wait for a connection attempt.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        url: str,
        credential: str,
        on_change: Callable[[], Awaitable[Any] | None],
        *,
        events: SyncEvents | None = None,
        policy: ReconnectPolicy | None = None,
        ping_interval: float = PING_INTERVAL,
        ping_timeout: float = PING_TIMEOUT,
        connect_timeout: float = REQUEST_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.url = url
        self.credential = credential
        self.on_change = on_change
        self.events = events or SyncEvents()
        self.policy = policy or ReconnectPolicy()
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self.connect_timeout = connect_timeout
        self._clock = clock
        self._client: socketio.AsyncClient | None = None
        self._lost = asyncio.Event()
        self._last_pong = 0.0
        self._closed = False
        self._task: asyncio.Task[None] | None = None

    @property
    def connected(self) -> bool:
        return self._client is not None and self._client.connected

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> PushChannel:
        """Start the connection supervisor on the running loop."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._supervise())
        return self

    async def wait_closed(self) -> None:
        """Wait until the supervisor stops, after close() or giving up."""
        if self._task is not None:
            with suppress(asyncio.CancelledError):
                await self._task

    async def close(self) -> None:
        """End the subscription and disconnect."""
        self._closed = True
        self._lost.set()
        if self._task is not None:
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
        await self._disconnect()

    async def _supervise(self) -> None:
        while not self._closed:
            try:
                async for attempt in self.policy.retrying(PushConnectionError):
                    with attempt:
                        await self._connect_once()
            except PushConnectionError as e:
                logger.error(
                    "Push channel giving up after %d attempts: %s", self.policy.attempts, e
                )
                self.events.emit(CONNECTION_ERROR, str(e))
                self._closed = True
                return

            try:
                await self._watch()
            finally:
                await self._disconnect()
            if not self._closed:
                logger.warning("Push channel lost, reconnecting")

    async def _connect_once(self) -> None:
        client = socketio.AsyncClient(
            reconnection=False, logger=False, engineio_logger=False
        )
        client.on("connect", self._on_connect)
        client.on("disconnect", self._on_disconnect)
        client.on(DOORBELL_EVENT, self._on_doorbell)
        client.on("pong", self._on_pong)
        self._lost.clear()
        self._client = client

        logger.debug("Connecting push channel to %s", self.url)
        try:
            await client.connect(
                self.url,
                auth={"appKey": self.credential},
                transports=["websocket"],
                wait_timeout=self.connect_timeout,
            )
        except (socketio.exceptions.ConnectionError, OSError, asyncio.TimeoutError) as e:
            self._client = None
            raise PushConnectionError(f"Cannot connect to {self.url}: {e}") from e
        self._last_pong = self._clock()

    async def _watch(self) -> None:
        """Keep the connection alive until it is lost or stops answering."""
        while not self._closed:
            try:
                await asyncio.wait_for(self._lost.wait(), timeout=self.ping_interval)
            except asyncio.TimeoutError:
                pass
            else:
                logger.warning("Push channel disconnected")
                return

            silent_for = self._clock() - self._last_pong
            if silent_for > self.ping_timeout:
                logger.warning("No pong for %.0fs, treating push channel as dead", silent_for)
                return
            try:
                await self._client.emit("ping")
            except socketio.exceptions.SocketIOError as e:
                logger.warning("Keepalive ping failed: %s", e)
                return

    async def _disconnect(self) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        try:
            await client.disconnect()
        except (socketio.exceptions.SocketIOError, OSError) as e:
            logger.debug("Error while disconnecting push channel: %s", e)

    async def _on_connect(self) -> None:
        logger.debug("Push channel connected")

    async def _on_disconnect(self, *args: Any) -> None:
        self._lost.set()

    async def _on_pong(self, *args: Any) -> None:
        self._last_pong = self._clock()

    async def _on_doorbell(self, *args: Any) -> None:
        logger.debug("Received %s doorbell", DOORBELL_EVENT)
        try:
            result = self.on_change()
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Doorbell handler failed")
