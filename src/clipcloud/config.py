#!/usr/bin/env python3
"""Configuration consumed by the sync engine.

The desktop application's settings store owns these values. The engine only
reads them: a missing credential or disabled automatic sync means the poll
loop and the push subscription must not start.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from clipcloud.constants import POLL_INTERVAL_MS, REQUEST_TIMEOUT

DEFAULT_API_BASE_URL = "http://127.0.0.1:8000"


class ConfigError(ValueError):
    """Raised when a settings file cannot be read or holds invalid values."""

    pass


@dataclass(frozen=True)
class SyncConfig:
    """Sync settings.

    Attributes:
        credential: Application key sent as the ``AppKey`` header.
        api_base_url: Base URL of the cloud clipboard service.
        automatic_clipboard_sync: Run the poll loop and push subscription.
        poll_interval_ms: Local clipboard poll interval.
        remote_check_interval_ms: Periodic remote check interval, 0 disables.
        request_timeout: HTTP request timeout in seconds.
        debug_logging: Enable DEBUG-level logging.
    """

    credential: str | None = None
    api_base_url: str = DEFAULT_API_BASE_URL
    automatic_clipboard_sync: bool = False
    poll_interval_ms: int = POLL_INTERVAL_MS
    remote_check_interval_ms: int = 0
    request_timeout: float = REQUEST_TIMEOUT
    debug_logging: bool = False

    def __post_init__(self) -> None:
        if self.poll_interval_ms <= 0:
            raise ConfigError("poll_interval_ms must be positive")
        if self.remote_check_interval_ms < 0:
            raise ConfigError("remote_check_interval_ms must not be negative")
        if self.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")

    @property
    def has_credential(self) -> bool:
        return bool(self.credential and self.credential.strip())

    @property
    def enabled(self) -> bool:
        """True when automatic sync is on and a credential is configured."""
        return self.automatic_clipboard_sync and self.has_credential

    @property
    def base_url(self) -> str:
        return self.api_base_url.rstrip("/")

    def with_overrides(self, **overrides: Any) -> SyncConfig:
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SyncConfig:
        """
        Build a config from a settings mapping.

        Accepts the field names of this class as well as the desktop
        settings store layout::

            {"apiKey": ..., "apiBaseUrl": ...,
             "preferences": {"automaticClipboardSync": ..., "debugLogging": ...}}

        Args:
            data: Parsed settings.

        Returns:
            The resulting SyncConfig; absent keys keep their defaults.

        Raises:
            ConfigError: If a value has the wrong type or range.
        """
        preferences = data.get("preferences") or {}
        if not isinstance(preferences, Mapping):
            raise ConfigError("preferences must be an object")

        def pick(*keys: str, source: Mapping[str, Any] = data) -> Any:
            for key in keys:
                if key in source:
                    return source[key]
            return None

        values = {
            "credential": pick("credential", "apiKey", "appKey"),
            "api_base_url": pick("api_base_url", "apiBaseUrl"),
            "automatic_clipboard_sync": pick("automatic_clipboard_sync")
            if "automatic_clipboard_sync" in data
            else pick("automaticClipboardSync", source=preferences),
            "poll_interval_ms": pick("poll_interval_ms", "pollIntervalMs"),
            "remote_check_interval_ms": pick(
                "remote_check_interval_ms", "remoteCheckIntervalMs"
            ),
            "request_timeout": pick("request_timeout", "requestTimeout"),
            "debug_logging": pick("debug_logging")
            if "debug_logging" in data
            else pick("debugLogging", source=preferences),
        }
        try:
            return cls().with_overrides(**_coerce(values))
        except ConfigError:
            raise
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid settings: {e}") from e


def _coerce(values: dict[str, Any]) -> dict[str, Any]:
    coerced: dict[str, Any] = {}
    for key, value in values.items():
        if value is None:
            continue
        if key in ("automatic_clipboard_sync", "debug_logging"):
            if not isinstance(value, bool):
                raise ConfigError(f"{key} must be a boolean")
        elif key in ("poll_interval_ms", "remote_check_interval_ms"):
            value = int(value)
        elif key == "request_timeout":
            value = float(value)
        elif not isinstance(value, str):
            raise ConfigError(f"{key} must be a string")
        coerced[key] = value
    return coerced


def load_config(path: str | Path) -> SyncConfig:
    """
    Load settings from a JSON file.

    Args:
        path: Path to the settings file.

    Returns:
        The parsed SyncConfig.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read settings from {path}: {e}") from e
    if not isinstance(data, Mapping):
        raise ConfigError(f"Settings in {path} must be a JSON object")
    return SyncConfig.from_mapping(data)
