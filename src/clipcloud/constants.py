#!/usr/bin/env python3
"""Timing and size constants for clipboard synchronization.

These constants control debounce, lock timeout, payload limits and the
push channel reconnect behavior.
"""

# Minimum delay between consecutive sync operations in seconds.
DEBOUNCE_DELAY: float = 1.0

# Maximum time a sync operation may hold the lock before it is force-released.
LOCK_TIMEOUT: float = 10.0

# Largest file reference uploaded from the clipboard (100 MB).
MAX_FILE_SIZE: int = 100 * 1024 * 1024

# Default local clipboard poll interval in milliseconds.
POLL_INTERVAL_MS: int = 1000

# Per-request timeout for HTTP calls in seconds.
REQUEST_TIMEOUT: float = 5.0

# Push channel reconnect policy: bounded attempts with a fixed delay.
RECONNECT_ATTEMPTS: int = 3
RECONNECT_DELAY: float = 1.0

# Keepalive ping cadence and the window in which a pong must arrive.
PING_INTERVAL: float = 25.0
PING_TIMEOUT: float = 30.0

# Filename used when the server does not suggest one.
DEFAULT_FILENAME: str = "downloaded_file"

# Directory name under the system temp dir for downloaded files.
TEMP_DIR_NAME: str = "clipcloud"
