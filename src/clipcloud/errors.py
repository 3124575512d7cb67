#!/usr/bin/env python3
"""
Error taxonomy for clipboard synchronization.

All errors raised by the transport, the push channel and the clipboard
backends derive from SyncError. The sync engine catches SyncError at its
boundary, reports it through the sync-error event and carries on; the next
poll tick or doorbell notification is the retry mechanism.

A busy lock is not an error. It is reported as SyncOutcome.LOCK_BUSY.
"""
from __future__ import annotations


class SyncError(Exception):
    """Base class for every failure of a sync attempt."""

    pass


class NetworkError(SyncError):
    """
    Exception raised when the cloud service cannot be reached.

    Covers connection failures and request timeouts.
    """

    pass


class ServerError(SyncError):
    """
    Exception raised when the cloud service answers with a non-2xx status.

    Attributes:
        status: The HTTP status code of the response.
    """

    def __init__(self, status: int, message: str | None = None) -> None:
        self.status = status
        super().__init__(message or f"Server responded with status {status}")


class InvalidResponseError(SyncError):
    """Exception raised when a response body cannot be interpreted."""

    pass


class FileMissingError(SyncError):
    """
    Exception raised when a local file vanished before it could be uploaded.

    Attributes:
        path: The path that no longer exists.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"File not found: {path}")


class OversizedPayloadError(SyncError):
    """
    Exception raised when a file exceeds the upload size limit.

    Attributes:
        path: Path of the rejected file.
        size: Size of the file in bytes.
        limit: The maximum allowed size in bytes.
    """

    def __init__(self, path: str, size: int, limit: int) -> None:
        self.path = path
        self.size = size
        self.limit = limit
        super().__init__(
            f"File {path} is too large to sync "
            f"({size // (1024 * 1024)} MB, limit {limit // (1024 * 1024)} MB)"
        )


class UnsupportedFormatError(SyncError):
    """Exception raised when a clipboard backend cannot hold a payload kind."""

    pass


class PushConnectionError(SyncError):
    """Exception raised when the push channel cannot connect to the server."""

    pass
