#!/usr/bin/env python3
"""
Tests for handle_local_change.

Covers payload priority, the credential, debounce and lock gates, echo
suppression and the skip rules for file references.
"""
from pathlib import Path

import pytest

from clipcloud.errors import NetworkError, ServerError
from clipcloud.events import FILE_TOO_LARGE, SYNC_ERROR, TRIGGER_REFRESH
from clipcloud.hashing import compute_hash, compute_text_hash
from clipcloud.payload import PayloadKind
from clipcloud.sync_state import OperationType, SyncOutcome
from clipcloud.sync_upload import handle_local_change


@pytest.mark.asyncio
async def test_uploads_text(state, clipboard, transport, emitted, clock) -> None:
    """Test text on the clipboard is uploaded and reported."""
    clipboard.text = "hello"
    outcome = await handle_local_change(state)

    assert outcome is SyncOutcome.UPLOADED
    assert transport.calls == [("upload_text", "hello")]
    assert state.snapshot.synced[PayloadKind.TEXT] == compute_text_hash("hello")
    assert state.last_operation.type is OperationType.UPLOAD
    assert state.last_operation.timestamp == clock.now
    assert [(e.name, e.message) for e in emitted] == [
        (TRIGGER_REFRESH, "Text copied to cloud clipboard")
    ]


@pytest.mark.asyncio
async def test_empty_clipboard(state, transport) -> None:
    assert await handle_local_change(state) is SyncOutcome.EMPTY
    assert transport.network_calls == 0


@pytest.mark.asyncio
async def test_no_credential_is_noop(state, clipboard, transport) -> None:
    """Test nothing happens without an app key."""
    state.credential = "   "
    clipboard.text = "hello"
    assert await handle_local_change(state) is SyncOutcome.DISABLED
    assert transport.network_calls == 0
    assert not state.lock.is_processing


@pytest.mark.asyncio
async def test_debounce_skips_until_delay_passes(state, clipboard, transport, clock) -> None:
    state.record_operation(OperationType.DOWNLOAD)
    clipboard.text = "hello"

    clock.advance(0.5)
    assert await handle_local_change(state) is SyncOutcome.DEBOUNCED
    assert transport.network_calls == 0

    clock.advance(0.6)
    assert await handle_local_change(state) is SyncOutcome.UPLOADED


@pytest.mark.asyncio
async def test_manual_upload_bypasses_debounce(state, clipboard, transport) -> None:
    """Test a user-triggered upload ignores the debounce window."""
    state.record_operation(OperationType.DOWNLOAD)
    clipboard.text = "hello"
    assert await handle_local_change(state, manual=True) is SyncOutcome.UPLOADED


@pytest.mark.asyncio
async def test_busy_lock_skips_and_keeps_pending(state, clipboard, transport) -> None:
    clipboard.text = "hello"
    state.local_pending = True
    state.lock.try_acquire()

    assert await handle_local_change(state) is SyncOutcome.LOCK_BUSY
    assert state.local_pending
    assert transport.network_calls == 0


@pytest.mark.asyncio
async def test_file_reference_has_priority(
    state, clipboard, transport, tmp_path: Path
) -> None:
    """Test a file reference wins over text and image formats."""
    path = tmp_path / "doc.txt"
    path.write_bytes(b"file body")
    clipboard.file_path = str(path)
    clipboard.image = b"image"
    clipboard.text = str(path)

    assert await handle_local_change(state) is SyncOutcome.UPLOADED
    assert transport.calls == [("upload_file", str(path))]
    assert state.snapshot.synced[PayloadKind.FILE] == compute_hash(b"file body")


@pytest.mark.asyncio
async def test_image_has_priority_over_text(state, clipboard, transport, emitted) -> None:
    """Test images are uploaded through a temporary file that is removed."""
    clipboard.image = b"\x89PNG pixels"
    clipboard.text = "alt text"

    assert await handle_local_change(state) is SyncOutcome.UPLOADED
    assert transport.uploaded_files == [b"\x89PNG pixels"]
    temp_path = Path(transport.calls[0][1])
    assert temp_path.parent == state.temp_dir
    assert not temp_path.exists()
    assert emitted[-1].message == "Image copied to cloud clipboard"


@pytest.mark.asyncio
async def test_image_temp_file_removed_on_failure(state, clipboard, transport) -> None:
    clipboard.image = b"pixels"
    transport.error = ServerError(500)

    assert await handle_local_change(state) is SyncOutcome.FAILED
    assert list(state.temp_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_just_downloaded_text_not_uploaded(state, clipboard, transport) -> None:
    """Test echo suppression of downloaded content."""
    clipboard.text = "from cloud"
    state.download_memory.record_download(PayloadKind.TEXT, compute_text_hash("from cloud"))

    assert await handle_local_change(state) is SyncOutcome.UNCHANGED
    assert transport.network_calls == 0


@pytest.mark.asyncio
async def test_downloaded_file_at_other_path_is_uploaded(
    state, clipboard, transport, tmp_path: Path
) -> None:
    """Test a same-content file at a different path is not an echo."""
    path = tmp_path / "copy.bin"
    path.write_bytes(b"same")
    state.download_memory.record_download(
        PayloadKind.FILE, compute_hash(b"same"), str(tmp_path / "downloaded.bin")
    )
    clipboard.file_path = str(path)

    assert await handle_local_change(state) is SyncOutcome.UPLOADED


@pytest.mark.asyncio
async def test_already_synced_content_not_uploaded_twice(
    state, clipboard, transport, clock
) -> None:
    clipboard.text = "hello"
    await handle_local_change(state)
    clock.advance(5)

    assert await handle_local_change(state) is SyncOutcome.UNCHANGED
    assert transport.network_calls == 1


@pytest.mark.asyncio
async def test_missing_file_is_skipped(state, clipboard, transport, tmp_path: Path) -> None:
    clipboard.file_path = str(tmp_path / "vanished.txt")
    assert await handle_local_change(state) is SyncOutcome.SKIPPED
    assert transport.network_calls == 0


@pytest.mark.asyncio
async def test_directory_is_skipped(state, clipboard, transport, tmp_path: Path) -> None:
    """Test directories are never uploaded."""
    clipboard.file_path = str(tmp_path)
    assert await handle_local_change(state) is SyncOutcome.SKIPPED
    assert transport.network_calls == 0


@pytest.mark.asyncio
async def test_oversized_file_emits_notice(
    state, clipboard, transport, emitted, tmp_path: Path
) -> None:
    path = tmp_path / "big.bin"
    path.write_bytes(b"x" * 10)
    state.max_file_size = 4
    clipboard.file_path = str(path)

    assert await handle_local_change(state) is SyncOutcome.TOO_LARGE
    assert transport.network_calls == 0
    assert [e.name for e in emitted] == [FILE_TOO_LARGE]
    assert "big.bin" in emitted[0].message


@pytest.mark.asyncio
async def test_file_at_exact_limit_is_uploaded(
    state, clipboard, transport, tmp_path: Path
) -> None:
    path = tmp_path / "edge.bin"
    path.write_bytes(b"x" * 4)
    state.max_file_size = 4
    clipboard.file_path = str(path)
    assert await handle_local_change(state) is SyncOutcome.UPLOADED


@pytest.mark.asyncio
async def test_network_failure_reports_and_releases_lock(
    state, clipboard, transport, emitted
) -> None:
    """Test failures emit sync-error, release the lock and record nothing."""
    clipboard.text = "hello"
    transport.error = NetworkError("service unreachable")

    assert await handle_local_change(state) is SyncOutcome.FAILED
    assert not state.lock.is_processing
    assert state.last_operation is None
    assert PayloadKind.TEXT not in state.snapshot.synced
    assert [(e.name, e.message) for e in emitted] == [(SYNC_ERROR, "service unreachable")]


@pytest.mark.asyncio
async def test_text_copied_again_after_remote_image(
    state, clipboard, transport, clock
) -> None:
    """Test re-copying text uploads it once the cloud holds another kind."""
    from clipcloud.remote_entry import RemoteClipboardEntry
    from clipcloud.sync_download import handle_remote_change
    from clipcloud.sync_loop import poll_once

    clipboard.text = "A"
    assert await poll_once(state) is SyncOutcome.UPLOADED

    clock.advance(2)
    transport.latest = RemoteClipboardEntry(kind=PayloadKind.IMAGE, data=b"other device")
    assert await handle_remote_change(state) is SyncOutcome.DOWNLOADED

    clock.advance(2)
    clipboard.write_text("A")
    assert await poll_once(state) is SyncOutcome.UPLOADED
    assert transport.calls[-1] == ("upload_text", "A")


@pytest.mark.asyncio
async def test_file_copied_again_after_remote_text(
    state, clipboard, transport, clock, tmp_path: Path
) -> None:
    """Test re-copying a file uploads it once the cloud holds text."""
    from clipcloud.remote_entry import RemoteClipboardEntry
    from clipcloud.sync_download import handle_remote_change
    from clipcloud.sync_loop import poll_once

    path = tmp_path / "shared.txt"
    path.write_bytes(b"shared")
    clipboard.file_path = str(path)
    assert await poll_once(state) is SyncOutcome.UPLOADED

    clock.advance(2)
    transport.latest = RemoteClipboardEntry(kind=PayloadKind.TEXT, text="other device")
    assert await handle_remote_change(state) is SyncOutcome.DOWNLOADED

    clock.advance(2)
    clipboard.write_file_reference(str(path))
    assert await poll_once(state) is SyncOutcome.UPLOADED
    assert transport.calls[-1] == ("upload_file", str(path))
