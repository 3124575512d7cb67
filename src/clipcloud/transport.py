#!/usr/bin/env python3
"""HTTP transport to the cloud clipboard service.

This module provides TransportClient, which uploads clipboard content,
fetches the latest cloud entry and opens the push notification channel.
Requests go through an httpx.AsyncClient with a per-request timeout and the
application credential in the ``AppKey`` header.

Errors are translated into the errors module taxonomy and never retried
here; the sync engine decides what happens next.

Endpoints:
    POST {base}/app/copy           JSON ``{"text": ...}`` or multipart ``file``
    GET  {base}/app/paste/latest   JSON metadata, or raw bytes for binaries
"""

from __future__ import annotations

import logging
import mimetypes
import os
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from clipcloud.constants import REQUEST_TIMEOUT
from clipcloud.errors import (
    FileMissingError,
    InvalidResponseError,
    NetworkError,
    ServerError,
)
from clipcloud.events import SyncEvents
from clipcloud.payload import PayloadKind
from clipcloud.push_channel import PushChannel
from clipcloud.remote_entry import (
    RemoteClipboardEntry,
    filename_from_headers,
    kind_for_content_type,
)
from clipcloud.retry_policy import ReconnectPolicy

logger = logging.getLogger(__name__)

COPY_PATH = "/app/copy"
LATEST_PATH = "/app/paste/latest"


class TransportClient:
    """Client for the cloud clipboard HTTP API and push channel.

    Args:
        base_url: Base URL of the service, without trailing slash.
        credential: Application key.
        timeout: Per-request timeout in seconds.
        http_transport: Optional httpx transport, used by tests.
        reconnect_policy: Reconnect policy for subscribe().
    """

    def __init__(
        self,
        base_url: str,
        credential: str | None,
        *,
        timeout: float = REQUEST_TIMEOUT,
        http_transport: httpx.AsyncBaseTransport | None = None,
        reconnect_policy: ReconnectPolicy | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.credential = credential
        self.reconnect_policy = reconnect_policy or ReconnectPolicy()
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"AppKey": credential or ""},
            transport=http_transport,
        )

    async def __aenter__(self) -> TransportClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    async def upload_text(self, text: str) -> None:
        """
        Upload text to the cloud clipboard.

        Raises:
            NetworkError: If the service cannot be reached.
            ServerError: If the service rejects the upload.
        """
        await self._send("POST", COPY_PATH, json={"text": text})
        logger.debug("Uploaded %d characters of text", len(text))

    async def upload_file(self, path: str) -> None:
        """
        Upload a file as multipart form data with its guessed MIME type.

        Args:
            path: Local path of the file.

        Raises:
            FileMissingError: If the file vanished since it was detected.
            NetworkError: If the service cannot be reached.
            ServerError: If the service rejects the upload.
        """
        mime_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
        try:
            handle = open(path, "rb")
        except (FileNotFoundError, IsADirectoryError) as e:
            raise FileMissingError(path) from e

        with handle:
            files = {"file": (os.path.basename(path), handle, mime_type)}
            await self._send("POST", COPY_PATH, files=files)
        logger.debug("Uploaded file %s (%s)", path, mime_type)

    async def fetch_latest(self) -> RemoteClipboardEntry | None:
        """
        Fetch the newest cloud clipboard entry.

        The first request asks for JSON metadata. A text entry is complete
        at that point. For any other type the service decides the
        representation from its own response headers, so the resource is
        requested a second time and read as raw bytes.

        Returns:
            The entry, or None when the cloud clipboard is empty.

        Raises:
            NetworkError: If the service cannot be reached.
            ServerError: If the service answers with an error status.
            InvalidResponseError: If a text entry is malformed.
        """
        try:
            response = await self._send(
                "GET", LATEST_PATH, headers={"Accept": "application/json"}
            )
        except ServerError as e:
            if e.status == 404:
                logger.debug("Cloud clipboard is empty")
                return None
            raise

        metadata = _json_metadata(response)
        if metadata and not metadata.get("type"):
            logger.debug("Cloud clipboard entry has no type, treating as empty")
            return None
        if metadata.get("type") == "text":
            content = metadata.get("content")
            if content is None:
                content = ""
            if not isinstance(content, str):
                raise InvalidResponseError("Text entry content is not a string")
            return RemoteClipboardEntry(
                kind=PayloadKind.TEXT,
                text=content,
                timestamp=metadata.get("timestamp"),
            )

        response = await self._send("GET", LATEST_PATH, headers={"Accept": "*/*"})
        content_type = response.headers.get("content-type", "application/octet-stream")
        return RemoteClipboardEntry(
            kind=kind_for_content_type(content_type),
            data=response.content,
            content_type=content_type,
            filename=filename_from_headers(
                response.headers.get("content-disposition"), content_type
            ),
            timestamp=metadata.get("timestamp"),
        )

    def subscribe(
        self,
        on_change: Callable[[], Awaitable[Any] | None],
        *,
        events: SyncEvents | None = None,
    ) -> PushChannel:
        """
        Open the push notification channel.

        Must be called from a running event loop.

        Args:
            on_change: Called with no arguments whenever the server reports
                new content. It must fetch the content itself.
            events: Channel for the connection-error event.

        Returns:
            The started PushChannel; close() ends the subscription.
        """
        channel = PushChannel(
            self.base_url,
            self.credential or "",
            on_change,
            events=events,
            policy=self.reconnect_policy,
        )
        return channel.start()

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request to {self.base_url}{url} timed out") from e
        except httpx.TransportError as e:
            raise NetworkError(f"Cannot reach {self.base_url}: {e}") from e
        if not response.is_success:
            raise ServerError(response.status_code)
        return response


def _json_metadata(response: httpx.Response) -> dict[str, Any]:
    """Parse a metadata response, or {} when it is not a JSON object."""
    if "json" not in response.headers.get("content-type", ""):
        return {}
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
