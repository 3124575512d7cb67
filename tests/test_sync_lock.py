#!/usr/bin/env python3
"""
Tests for SyncLock.

Tests acquisition, non-blocking refusal, stale lock recovery, lease
validation and the auto-release timer.
"""
import asyncio
import logging

import pytest

from clipcloud.sync_lock import SyncLock
from conftest import FakeClock


def test_try_acquire_when_idle() -> None:
    """Test an idle lock is acquired and records its start time."""
    clock = FakeClock()
    lock = SyncLock(clock=clock)
    lease = lock.try_acquire()
    assert lease is not None
    assert lock.is_processing
    assert lock.processing_started_at == clock.now


def test_try_acquire_refused_while_processing() -> None:
    """Test a held lock within its timeout refuses without blocking."""
    clock = FakeClock()
    lock = SyncLock(timeout=10.0, clock=clock)
    lock.try_acquire()
    clock.advance(9.9)
    assert lock.try_acquire() is None


def test_release_returns_to_idle() -> None:
    """Test release makes the lock available again."""
    lock = SyncLock(clock=FakeClock())
    lease = lock.try_acquire()
    lock.release(lease)
    assert not lock.is_processing
    assert lock.try_acquire() is not None


def test_stale_lock_is_force_released(caplog: pytest.LogCaptureFixture) -> None:
    """Test try_acquire after the timeout recovers a hung holder."""
    clock = FakeClock()
    lock = SyncLock(timeout=10.0, clock=clock)
    first = lock.try_acquire()
    clock.advance(10.5)
    with caplog.at_level(logging.WARNING):
        second = lock.try_acquire()
    assert second is not None
    assert second != first
    assert "Force releasing" in caplog.text


def test_stale_lease_release_is_ignored() -> None:
    """Test a hung holder finishing late cannot release the new holder's lock."""
    clock = FakeClock()
    lock = SyncLock(timeout=10.0, clock=clock)
    stale = lock.try_acquire()
    clock.advance(11)
    current = lock.try_acquire()
    lock.release(stale)
    assert lock.is_processing
    lock.release(current)
    assert not lock.is_processing


@pytest.mark.asyncio
async def test_auto_release_timer_frees_lock() -> None:
    """Test the scheduled timer releases a lock nobody released."""
    lock = SyncLock(timeout=0.01)
    assert lock.try_acquire() is not None
    await asyncio.sleep(0.05)
    assert not lock.is_processing


@pytest.mark.asyncio
async def test_release_cancels_auto_release_timer() -> None:
    """Test a timer from an old lease does not release a newer one."""
    lock = SyncLock(timeout=0.05)
    first = lock.try_acquire()
    lock.release(first)
    second = lock.try_acquire()
    await asyncio.sleep(0.02)
    assert lock.is_processing
    lock.release(second)
