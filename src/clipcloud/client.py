#!/usr/bin/env python3
"""Command line client modes for clipcloud.

This module runs a SyncEngine against the system text clipboard, either
continuously (watch mode) or for a single manual operation. Engine events
are echoed to stderr as notifications.
"""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path

import click

from clipcloud.clipboard_pyperclip import PyperclipClipboard
from clipcloud.config import SyncConfig
from clipcloud.engine import SyncEngine
from clipcloud.events import SyncEvent
from clipcloud.sync_state import SyncOutcome

# Outcomes of a one-shot operation that mean it did not succeed.
FAILED_OUTCOMES = frozenset(
    {SyncOutcome.FAILED, SyncOutcome.TOO_LARGE, SyncOutcome.LOCK_BUSY, SyncOutcome.DISABLED}
)


def echo_event(event: SyncEvent) -> None:
    """Print an engine event as a one-line notification."""
    if event.message:
        click.echo(f"[{event.name}] {event.message}", err=True)
    else:
        click.echo(f"[{event.name}]", err=True)


def build_engine(config: SyncConfig) -> SyncEngine:
    engine = SyncEngine(config, PyperclipClipboard())
    engine.events.subscribe(echo_event)
    return engine


async def run_watch(config: SyncConfig) -> None:
    """Run the engine until SIGINT or SIGTERM.

    Args:
        config: Sync settings with automatic sync enabled.
    """
    engine = build_engine(config)

    shutdown_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, shutdown_requested.set)
    loop.add_signal_handler(signal.SIGTERM, shutdown_requested.set)

    try:
        await engine.run(shutdown_requested)
    finally:
        await engine.aclose()


async def run_once(config: SyncConfig, mode: str, save_path: str | None = None) -> bool:
    """Run a single manual operation.

    Args:
        config: Sync settings.
        mode: One of "push", "pull" or "save".
        save_path: Destination for "save".

    Returns:
        True if the operation succeeded.

    Raises:
        SyncError: If saving the latest entry fails.
    """
    engine = build_engine(config)
    try:
        if mode == "push":
            outcome = await engine.upload_now()
        elif mode == "pull":
            outcome = await engine.download_now()
        else:
            written = await engine.save_latest(Path(save_path))
            if written is None:
                click.echo("Cloud clipboard is empty", err=True)
                return False
            click.echo(str(written))
            return True
    finally:
        await engine.aclose()

    click.echo(f"{mode}: {outcome.value}", err=True)
    return outcome not in FAILED_OUTCOMES
