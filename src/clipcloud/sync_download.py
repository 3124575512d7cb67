#!/usr/bin/env python3
"""Remote change handling: download from the cloud.

handle_remote_change() runs on doorbell notifications, periodic remote
checks and manual downloads. It fetches the latest cloud entry and writes
it to the local clipboard only if the clipboard does not already hold it,
so repeated notifications for the same entry cause a single write.

The download is recorded in DownloadMemory BEFORE the clipboard is written,
so the change the write causes is recognized as an echo by the upload path.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from clipcloud.constants import DEFAULT_FILENAME
from clipcloud.errors import SyncError
from clipcloud.events import CONTENT_SYNCED, SYNC_ERROR
from clipcloud.hashing import compute_file_hash, compute_hash, compute_text_hash
from clipcloud.payload import FilePayload, ImagePayload, PayloadKind, TextPayload
from clipcloud.sync_state import OperationType, SyncOutcome

if TYPE_CHECKING:
    from clipcloud.payload import ClipboardPayload
    from clipcloud.remote_entry import RemoteClipboardEntry
    from clipcloud.sync_state import SyncState

logger = logging.getLogger(__name__)


async def handle_remote_change(state: SyncState, *, manual: bool = False) -> SyncOutcome:
    """Write the latest cloud entry to the local clipboard if it changed.

    Gated exactly like the upload path: credential, debounce window
    (unless manual) and the sync lock. Errors are logged, reported as a
    sync-error event and swallowed.

    Args:
        state: The clipboard synchronization state.
        manual: Bypass the debounce window for user-triggered downloads.

    Returns:
        What happened during this attempt.
    """
    if not state.has_credential:
        logger.debug("Skipping download - no app key configured")
        return SyncOutcome.DISABLED

    now = state.clock()
    if not manual and state.in_debounce_window(now):
        logger.debug(
            "Skipping download - debounce active (%.2fs since last operation)",
            now - state.last_operation.timestamp,
        )
        return SyncOutcome.DEBOUNCED

    lease = state.lock.try_acquire()
    if lease is None:
        logger.debug("Skipping download - sync already in progress")
        return SyncOutcome.LOCK_BUSY

    state.remote_pending = False
    try:
        entry = await state.transport.fetch_latest()
        if entry is None or entry.is_empty:
            logger.debug("Cloud clipboard is empty, nothing to download")
            return SyncOutcome.EMPTY
        return await apply_remote_entry(state, entry)
    except (SyncError, OSError) as e:
        logger.error("Clipboard download failed: %s", e)
        state.events.emit(SYNC_ERROR, str(e))
        return SyncOutcome.FAILED
    finally:
        state.lock.release(lease)


async def apply_remote_entry(state: SyncState, entry: RemoteClipboardEntry) -> SyncOutcome:
    """
    Write a fetched entry to the clipboard unless it is already there.

    The caller must hold the sync lock.

    Args:
        state: The clipboard synchronization state.
        entry: The entry returned by fetch_latest().

    Returns:
        DOWNLOADED if the clipboard was written, UNCHANGED otherwise.
    """
    clipboard = state.clipboard

    if entry.kind is PayloadKind.TEXT:
        payload = TextPayload(entry.text or "")
        current = clipboard.read_text()
        if current and compute_text_hash(current) == entry.fingerprint:
            logger.debug("Clipboard already holds the latest text")
            return SyncOutcome.UNCHANGED
        state.download_memory.record_download(PayloadKind.TEXT, entry.fingerprint)
        clipboard.write_text(payload.text)
        _finish_download(state, payload, "New text content pasted from cloud")
        return SyncOutcome.DOWNLOADED

    if entry.kind is PayloadKind.IMAGE:
        payload = ImagePayload(entry.data or b"")
        current = clipboard.read_image()
        if current and compute_hash(current) == entry.fingerprint:
            logger.debug("Clipboard already holds the latest image")
            return SyncOutcome.UNCHANGED
        state.download_memory.record_download(PayloadKind.IMAGE, entry.fingerprint)
        clipboard.write_image(payload.data)
        _finish_download(state, payload, "New image content pasted from cloud")
        return SyncOutcome.DOWNLOADED

    data = entry.data or b""
    fingerprint = entry.fingerprint
    current_path = clipboard.read_file_reference()
    if current_path and await _file_matches(current_path, fingerprint):
        logger.debug("Clipboard already references the latest file")
        return SyncOutcome.UNCHANGED

    path = await asyncio.to_thread(
        _write_download, state.temp_dir, entry.filename or DEFAULT_FILENAME, data
    )
    payload = FilePayload(path=str(path), size=len(data), fingerprint=fingerprint)
    state.download_memory.record_download(PayloadKind.FILE, fingerprint, str(path))
    clipboard.write_file_reference(str(path))
    _finish_download(state, payload, "New file content pasted from cloud")
    return SyncOutcome.DOWNLOADED


async def save_latest(state: SyncState, destination: str | Path) -> Path | None:
    """
    Save the latest cloud entry to a local path without touching the clipboard.

    Text entries are written as UTF-8. When destination is an existing
    directory, the server-suggested filename is used inside it (text
    entries use ``clipboard.txt``).

    Args:
        state: The clipboard synchronization state.
        destination: Target file or directory.

    Returns:
        The written path, or None if the cloud clipboard is empty or the
        lock is busy.

    Raises:
        SyncError: On transport failure, after reporting a sync-error event.
        OSError: If the destination cannot be written.
    """
    lease = state.lock.try_acquire()
    if lease is None:
        logger.debug("Skipping save - sync already in progress")
        return None
    try:
        entry = await state.transport.fetch_latest()
    except SyncError as e:
        logger.error("Fetching latest entry failed: %s", e)
        state.events.emit(SYNC_ERROR, str(e))
        raise
    finally:
        state.lock.release(lease)

    if entry is None or entry.is_empty:
        return None

    target = Path(destination)
    if target.is_dir():
        name = "clipboard.txt" if entry.kind is PayloadKind.TEXT else entry.filename
        target = target / (name or DEFAULT_FILENAME)
    if entry.kind is PayloadKind.TEXT:
        data = (entry.text or "").encode("utf-8")
    else:
        data = entry.data or b""
    await asyncio.to_thread(target.write_bytes, data)
    logger.info("Saved latest cloud entry to %s", target)
    return target


async def _file_matches(path: str, fingerprint: str) -> bool:
    try:
        return await asyncio.to_thread(compute_file_hash, path) == fingerprint
    except OSError:
        return False


def _write_download(directory: Path, filename: str, data: bytes) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_bytes(data)
    return path


def _finish_download(state: SyncState, payload: ClipboardPayload, message: str) -> None:
    state.snapshot.record_synced(payload)
    state.record_operation(OperationType.DOWNLOAD)
    logger.info("Downloaded %s from cloud clipboard", payload.kind.value)
    state.events.emit(CONTENT_SYNCED, message)
