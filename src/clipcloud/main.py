"""CLI handling for clipcloud.

This module provides the command-line interface for clipcloud, handling
argument parsing via click, settings and logging configuration, and
dispatching to the requested mode.

Usage:
    clipcloud --watch [--app-key KEY] [--api-base-url URL] [--verbose]
    clipcloud --push | --pull | --save PATH [options]
"""

import sys

import click

from clipcloud.config import ConfigError, SyncConfig, load_config
from clipcloud.main_logging import configure_logging
from clipcloud.main_options import MutuallyExclusiveOption

MODES = ["watch", "push", "pull", "save"]


def _others(mode: str) -> list[str]:
    return [other for other in MODES if other != mode]


@click.command()
@click.option(
    "--watch",
    is_flag=True,
    cls=MutuallyExclusiveOption,
    not_required_if=_others("watch"),
    help="Keep the clipboard in sync until interrupted",
)
@click.option(
    "--push",
    is_flag=True,
    cls=MutuallyExclusiveOption,
    not_required_if=_others("push"),
    help="Upload the current clipboard once",
)
@click.option(
    "--pull",
    is_flag=True,
    cls=MutuallyExclusiveOption,
    not_required_if=_others("pull"),
    help="Download the latest cloud entry into the clipboard once",
)
@click.option(
    "--save",
    type=click.Path(),
    cls=MutuallyExclusiveOption,
    not_required_if=_others("save"),
    help="Save the latest cloud entry to PATH",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON settings file",
)
@click.option("--api-base-url", envvar="CLIPCLOUD_API_BASE_URL", help="Cloud service URL")
@click.option("--app-key", envvar="CLIPCLOUD_APP_KEY", help="Application key")
@click.option(
    "--poll-interval-ms",
    type=click.IntRange(min=1),
    help="Local clipboard poll interval",
)
@click.option(
    "--remote-check-interval-ms",
    type=click.IntRange(min=0),
    help="Periodic cloud check interval, 0 to disable",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable DEBUG-level logging",
)
def main(
    watch: bool,
    push: bool,
    pull: bool,
    save: str | None,
    config_path: str | None,
    api_base_url: str | None,
    app_key: str | None,
    poll_interval_ms: int | None,
    remote_check_interval_ms: int | None,
    verbose: bool,
) -> None:
    """Synchronize the system clipboard with a cloud clipboard service."""
    if not (watch or push or pull or save):
        raise click.UsageError("One of --watch, --push, --pull or --save must be specified")

    try:
        config = load_config(config_path) if config_path else SyncConfig()
        config = config.with_overrides(
            api_base_url=api_base_url,
            credential=app_key,
            poll_interval_ms=poll_interval_ms,
            remote_check_interval_ms=remote_check_interval_ms,
        )
    except ConfigError as e:
        raise click.UsageError(str(e)) from e

    if not config.has_credential:
        raise click.UsageError("An app key is required (--app-key or CLIPCLOUD_APP_KEY)")

    configure_logging(verbose or config.debug_logging)

    if watch:
        config = config.with_overrides(automatic_clipboard_sync=True)
        _run_mode("watch", config, None)
    elif push:
        _run_mode("push", config, None)
    elif pull:
        _run_mode("pull", config, None)
    else:
        _run_mode("save", config, save)


def _run_mode(mode: str, config: SyncConfig, save_path: str | None) -> None:
    """Run the selected mode and exit non-zero on failure.

    Args:
        mode: One of the MODES.
        config: Effective settings.
        save_path: Destination for save mode.
    """
    import asyncio
    from clipcloud.client import run_once, run_watch
    from clipcloud.errors import SyncError

    try:
        if mode == "watch":
            asyncio.run(run_watch(config))
            return
        succeeded = asyncio.run(run_once(config, mode, save_path))
    except (SyncError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not succeeded:
        sys.exit(1)
