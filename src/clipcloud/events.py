#!/usr/bin/env python3
"""Observable sync events for the user interface layer.

The engine reports what it did through a SyncEvents channel. The UI
subscribes to render notifications; the engine never consumes events.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# An upload finished; the UI should refresh its view of the cloud clipboard.
TRIGGER_REFRESH = "triggerRefresh"
# Remote content was written to the local clipboard.
CONTENT_SYNCED = "content-synced"
# A sync attempt failed; message holds the reason.
SYNC_ERROR = "sync-error"
# A file reference was not uploaded because it exceeds the size limit.
FILE_TOO_LARGE = "file-too-large"
# The push channel gave up reconnecting.
CONNECTION_ERROR = "connection-error"


@dataclass(frozen=True)
class SyncEvent:
    """A single notification with an optional human-readable message."""

    name: str
    message: str | None = None


Listener = Callable[[SyncEvent], None]


class SyncEvents:
    """Publish/subscribe channel for SyncEvent notifications."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener.

        Args:
            listener: Called with every emitted SyncEvent.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, name: str, message: str | None = None) -> None:
        """Deliver an event to every listener.

        A failing listener is logged and does not affect the others.
        """
        event = SyncEvent(name, message)
        logger.debug("Event %s: %s", name, message)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Event listener failed for %s", name)
