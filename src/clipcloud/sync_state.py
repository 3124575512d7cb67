#!/usr/bin/env python3
"""Clipboard synchronization state.

This module provides the SyncState dataclass that groups the collaborators
and the mutable state of one sync engine. A single instance lives for the
lifetime of the process and is never persisted: a restart starts from blank
fingerprints and re-syncs on the next detected change or manual trigger.
"""

from __future__ import annotations

import enum
import tempfile
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from clipcloud.constants import DEBOUNCE_DELAY, LOCK_TIMEOUT, MAX_FILE_SIZE, TEMP_DIR_NAME
from clipcloud.download_memory import DownloadMemory
from clipcloud.events import SyncEvents
from clipcloud.snapshot import ClipboardSnapshot
from clipcloud.sync_lock import SyncLock

if TYPE_CHECKING:
    from clipcloud.clipboard import Clipboard
    from clipcloud.transport import TransportClient


class OperationType(enum.Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"


class SyncOutcome(enum.Enum):
    """Result of one sync attempt."""

    UPLOADED = "uploaded"
    DOWNLOADED = "downloaded"
    # Nothing to do: content already synced or just downloaded.
    UNCHANGED = "unchanged"
    # Nothing on the clipboard, or nothing in the cloud.
    EMPTY = "empty"
    # Clipboard content that is never uploaded (directories, missing files).
    SKIPPED = "skipped"
    TOO_LARGE = "too-large"
    DISABLED = "disabled"
    DEBOUNCED = "debounced"
    LOCK_BUSY = "lock-busy"
    FAILED = "failed"


@dataclass(frozen=True)
class LastOperation:
    type: OperationType
    timestamp: float


def default_temp_dir() -> Path:
    """Directory for temporary uploads and downloaded files."""
    return Path(tempfile.gettempdir()) / TEMP_DIR_NAME


@dataclass
class SyncState:
    """State for clipboard synchronization.

    Attributes:
        clipboard: The local clipboard capability.
        transport: Client for the cloud service.
        events: Channel for observable sync events.
        credential: Application key; without it every sync is a no-op.
        clock: Monotonic clock used for debounce and lock timing.
        debounce_delay: Minimum seconds between sync operations.
        lock_timeout: Seconds before a held lock is force-released.
        max_file_size: Largest file reference uploaded, in bytes.
        temp_dir: Where temporary uploads and downloads are written.
        lock: Mutual exclusion gate for every clipboard or network access.
        snapshot: Local change detection.
        download_memory: Echo suppression for downloaded content.
        last_operation: Type and time of the last completed sync.
        local_pending: A local change was detected but not evaluated yet.
        remote_pending: A doorbell arrived but was not evaluated yet.
    """

    clipboard: Clipboard
    transport: TransportClient
    events: SyncEvents = field(default_factory=SyncEvents)
    credential: str | None = None
    clock: Callable[[], float] = time.monotonic
    debounce_delay: float = DEBOUNCE_DELAY
    lock_timeout: float = LOCK_TIMEOUT
    max_file_size: int = MAX_FILE_SIZE
    temp_dir: Path = field(default_factory=default_temp_dir)
    lock: SyncLock = field(init=False)
    snapshot: ClipboardSnapshot = field(default_factory=ClipboardSnapshot)
    download_memory: DownloadMemory = field(default_factory=DownloadMemory)
    last_operation: LastOperation | None = None
    local_pending: bool = False
    remote_pending: bool = False

    def __post_init__(self) -> None:
        self.lock = SyncLock(timeout=self.lock_timeout, clock=self.clock)

    @property
    def has_credential(self) -> bool:
        return bool(self.credential and self.credential.strip())

    def in_debounce_window(self, now: float) -> bool:
        """True while the last operation is more recent than the debounce delay."""
        if self.last_operation is None:
            return False
        return now - self.last_operation.timestamp < self.debounce_delay

    def record_operation(self, op_type: OperationType) -> None:
        self.last_operation = LastOperation(op_type, self.clock())
