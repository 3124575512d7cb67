#!/usr/bin/env python3
"""Local clipboard change handling: upload to the cloud.

handle_local_change() runs on poll ticks that saw a change, on window focus
and on manual upload. It picks the highest priority payload on the
clipboard (file reference, then image, then text) and uploads it unless it
was just downloaded or already synced.
"""

from __future__ import annotations

import asyncio
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from clipcloud.errors import OversizedPayloadError, SyncError
from clipcloud.events import FILE_TOO_LARGE, SYNC_ERROR, TRIGGER_REFRESH
from clipcloud.hashing import compute_file_hash
from clipcloud.payload import FilePayload, ImagePayload, TextPayload
from clipcloud.sync_state import OperationType, SyncOutcome

if TYPE_CHECKING:
    from clipcloud.payload import ClipboardPayload
    from clipcloud.sync_state import SyncState

logger = logging.getLogger(__name__)


async def handle_local_change(state: SyncState, *, manual: bool = False) -> SyncOutcome:
    """Upload the current clipboard content if it is new.

    Skips without touching the network when no credential is configured,
    inside the debounce window (unless manual), or when another sync holds
    the lock. Errors are logged, reported as a sync-error event and
    swallowed.

    Args:
        state: The clipboard synchronization state.
        manual: Bypass the debounce window for user-triggered uploads.

    Returns:
        What happened during this attempt.
    """
    if not state.has_credential:
        logger.debug("Skipping upload - no app key configured")
        return SyncOutcome.DISABLED

    now = state.clock()
    if not manual and state.in_debounce_window(now):
        logger.debug(
            "Skipping upload - debounce active (%.2fs since last operation)",
            now - state.last_operation.timestamp,
        )
        return SyncOutcome.DEBOUNCED

    lease = state.lock.try_acquire()
    if lease is None:
        logger.debug("Skipping upload - sync already in progress")
        return SyncOutcome.LOCK_BUSY

    state.local_pending = False
    try:
        return await _upload_current(state)
    except (SyncError, OSError) as e:
        logger.error("Clipboard upload failed: %s", e)
        state.events.emit(SYNC_ERROR, str(e))
        return SyncOutcome.FAILED
    finally:
        state.lock.release(lease)


async def _upload_current(state: SyncState) -> SyncOutcome:
    clipboard = state.clipboard

    path = clipboard.read_file_reference()
    if path:
        return await _upload_file_reference(state, path)

    image = clipboard.read_image()
    if image:
        return await _upload_image(state, ImagePayload(image))

    text = clipboard.read_text()
    if text:
        return await _upload_text(state, TextPayload(text))

    logger.debug("Clipboard is empty, nothing to upload")
    return SyncOutcome.EMPTY


def _already_synced(state: SyncState, payload: ClipboardPayload) -> bool:
    path = payload.path if isinstance(payload, FilePayload) else None
    if state.download_memory.was_just_downloaded(payload.kind, payload.fingerprint, path):
        logger.debug("Skipping %s upload - content was just downloaded", payload.kind.value)
        return True
    if state.snapshot.matches_synced(payload):
        logger.debug("Skipping %s upload - content already synced", payload.kind.value)
        return True
    return False


async def _upload_file_reference(state: SyncState, path: str) -> SyncOutcome:
    try:
        info = await asyncio.to_thread(os.stat, path)
    except FileNotFoundError:
        logger.debug("Referenced file %s does not exist, skipping", path)
        return SyncOutcome.SKIPPED
    if not stat.S_ISREG(info.st_mode):
        logger.debug("Referenced path %s is not a regular file, skipping", path)
        return SyncOutcome.SKIPPED
    if info.st_size > state.max_file_size:
        notice = OversizedPayloadError(path, info.st_size, state.max_file_size)
        logger.warning("%s", notice)
        state.events.emit(FILE_TOO_LARGE, str(notice))
        return SyncOutcome.TOO_LARGE

    fingerprint = await asyncio.to_thread(compute_file_hash, path)
    payload = FilePayload(path=path, size=info.st_size, fingerprint=fingerprint)
    if _already_synced(state, payload):
        return SyncOutcome.UNCHANGED

    await state.transport.upload_file(path)
    _finish_upload(state, payload, "File copied to cloud clipboard")
    return SyncOutcome.UPLOADED


async def _upload_image(state: SyncState, payload: ImagePayload) -> SyncOutcome:
    if _already_synced(state, payload):
        return SyncOutcome.UNCHANGED

    temp_path = await asyncio.to_thread(_write_temp_image, state.temp_dir, payload.data)
    try:
        await state.transport.upload_file(str(temp_path))
    finally:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to delete temporary file %s: %s", temp_path, e)

    _finish_upload(state, payload, "Image copied to cloud clipboard")
    return SyncOutcome.UPLOADED


async def _upload_text(state: SyncState, payload: TextPayload) -> SyncOutcome:
    if _already_synced(state, payload):
        return SyncOutcome.UNCHANGED

    await state.transport.upload_text(payload.text)
    _finish_upload(state, payload, "Text copied to cloud clipboard")
    return SyncOutcome.UPLOADED


def _write_temp_image(directory: Path, data: bytes) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(prefix="clipboard-", suffix=".png", dir=directory)
    with os.fdopen(fd, "wb") as handle:
        handle.write(data)
    return Path(name)


def _finish_upload(state: SyncState, payload: ClipboardPayload, message: str) -> None:
    state.snapshot.record_synced(payload)
    state.record_operation(OperationType.UPLOAD)
    logger.info("Uploaded %s to cloud clipboard", payload.kind.value)
    state.events.emit(TRIGGER_REFRESH, message)
