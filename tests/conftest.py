#!/usr/bin/env python3
"""Pytest fixtures for clipcloud tests.

Provides an in-memory clipboard, a scripted transport, a manual clock and
a SyncState wired to all three.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from clipcloud.events import SyncEvent, SyncEvents
from clipcloud.payload import PayloadKind
from clipcloud.remote_entry import RemoteClipboardEntry
from clipcloud.sync_state import SyncState


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeClipboard:
    """In-memory clipboard holding one logical item, like the real one."""

    def __init__(self) -> None:
        self.text: str | None = None
        self.image: bytes | None = None
        self.file_path: str | None = None
        self.writes: list[tuple[str, object]] = []

    def read_text(self) -> str | None:
        return self.text

    def write_text(self, text: str) -> None:
        self.text, self.image, self.file_path = text, None, None
        self.writes.append(("text", text))

    def read_image(self) -> bytes | None:
        return self.image

    def write_image(self, data: bytes) -> None:
        self.text, self.image, self.file_path = None, data, None
        self.writes.append(("image", data))

    def read_file_reference(self) -> str | None:
        return self.file_path

    def write_file_reference(self, path: str) -> None:
        self.text, self.image, self.file_path = None, None, path
        self.writes.append(("file", path))


class FakeSubscription:
    def __init__(self, on_change) -> None:
        self.on_change = on_change
        self.closed = False

    async def close(self) -> None:
        self.closed = True


class FakeTransport:
    """Transport double recording every network call.

    Attributes:
        latest: Entry returned by fetch_latest().
        error: Exception raised by every call when set.
        gate: When set, uploads and fetches wait on this event first.
    """

    def __init__(self) -> None:
        self.latest: RemoteClipboardEntry | None = None
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple[str, object]] = []
        self.uploaded_files: list[bytes] = []
        self.subscriptions: list[FakeSubscription] = []
        self.closed = False

    @property
    def network_calls(self) -> int:
        return len(self.calls)

    async def _enter(self, name: str, arg: object) -> None:
        self.calls.append((name, arg))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error

    async def upload_text(self, text: str) -> None:
        await self._enter("upload_text", text)
        self.latest = RemoteClipboardEntry(kind=PayloadKind.TEXT, text=text)

    async def upload_file(self, path: str) -> None:
        await self._enter("upload_file", path)
        data = Path(path).read_bytes()
        self.uploaded_files.append(data)

    async def fetch_latest(self) -> RemoteClipboardEntry | None:
        await self._enter("fetch_latest", None)
        return self.latest

    def subscribe(self, on_change, *, events=None) -> FakeSubscription:
        subscription = FakeSubscription(on_change)
        self.subscriptions.append(subscription)
        return subscription

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def events() -> SyncEvents:
    return SyncEvents()


@pytest.fixture
def emitted(events: SyncEvents) -> list[SyncEvent]:
    """Every event emitted on the events fixture."""
    received: list[SyncEvent] = []
    events.subscribe(received.append)
    return received


@pytest.fixture
def state(
    clipboard: FakeClipboard,
    transport: FakeTransport,
    events: SyncEvents,
    clock: FakeClock,
    tmp_path: Path,
) -> SyncState:
    """A SyncState with a credential, fakes and a manual clock."""
    return SyncState(
        clipboard=clipboard,
        transport=transport,
        events=events,
        credential="test-key",
        clock=clock,
        temp_dir=tmp_path / "clipcloud",
    )
