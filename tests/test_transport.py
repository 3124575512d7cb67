#!/usr/bin/env python3
"""
Tests for TransportClient against an in-process fake cloud service.

The fake service is an httpx.MockTransport handler implementing the two
endpoints, including the metadata-then-bytes fetch of binary entries.
"""
import json
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from clipcloud.errors import FileMissingError, NetworkError, ServerError
from clipcloud.hashing import compute_text_hash
from clipcloud.payload import PayloadKind
from clipcloud.transport import TransportClient


class FakeCloud:
    """Minimal cloud clipboard service."""

    def __init__(self, app_key: str = "key") -> None:
        self.app_key = app_key
        self.latest: dict | None = None
        self.requests: list[httpx.Request] = []
        self.binary_on_first_request = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.headers.get("AppKey") != self.app_key:
            return httpx.Response(401)
        if request.method == "POST" and request.url.path == "/app/copy":
            return self._copy(request)
        if request.method == "GET" and request.url.path == "/app/paste/latest":
            return self._latest(request)
        return httpx.Response(404)

    def _copy(self, request: httpx.Request) -> httpx.Response:
        if request.headers["content-type"].startswith("application/json"):
            self.latest = {"type": "text", "content": json.loads(request.content)["text"]}
        else:
            self.latest = {"type": "file", "multipart": request.content}
        return httpx.Response(200, json={"ok": True})

    def _latest(self, request: httpx.Request) -> httpx.Response:
        if self.latest is None:
            return httpx.Response(404)
        if self.latest["type"] == "text":
            return httpx.Response(
                200, json={**self.latest, "timestamp": "2024-05-01T10:00:00Z"}
            )
        wants_json = request.headers.get("Accept") == "application/json"
        if wants_json and not self.binary_on_first_request:
            return httpx.Response(200, json={"type": self.latest["type"]})
        return httpx.Response(
            200,
            content=self.latest["data"],
            headers={
                "content-type": self.latest["content_type"],
                "content-disposition": self.latest.get("disposition", ""),
            },
        )


@pytest.fixture
def cloud() -> FakeCloud:
    return FakeCloud()


@pytest.fixture
def client(cloud: FakeCloud) -> TransportClient:
    return TransportClient(
        "https://clip.example/", "key", http_transport=httpx.MockTransport(cloud.handler)
    )


@pytest.mark.asyncio
async def test_upload_text_posts_json_with_app_key(cloud: FakeCloud, client) -> None:
    """Test text uploads are JSON bodies authenticated by AppKey."""
    await client.upload_text("hello")
    request = cloud.requests[0]
    assert request.method == "POST"
    assert request.url == "https://clip.example/app/copy"
    assert request.headers["AppKey"] == "key"
    assert json.loads(request.content) == {"text": "hello"}


@pytest.mark.asyncio
async def test_upload_file_sends_multipart_with_mime_type(
    cloud: FakeCloud, client, tmp_path: Path
) -> None:
    """Test files are uploaded as multipart with an inferred MIME type."""
    path = tmp_path / "picture.png"
    path.write_bytes(b"\x89PNG fake")
    await client.upload_file(str(path))

    body = cloud.requests[0].content
    assert b'name="file"' in body
    assert b'filename="picture.png"' in body
    assert b"Content-Type: image/png" in body
    assert b"\x89PNG fake" in body


@pytest.mark.asyncio
async def test_upload_file_unknown_type_is_octet_stream(
    cloud: FakeCloud, client, tmp_path: Path
) -> None:
    path = tmp_path / "blob.unknownext"
    path.write_bytes(b"data")
    await client.upload_file(str(path))
    assert b"Content-Type: application/octet-stream" in cloud.requests[0].content


@pytest.mark.asyncio
async def test_upload_file_missing_raises_before_request(
    cloud: FakeCloud, client, tmp_path: Path
) -> None:
    """Test a vanished file raises FileMissingError without a network call."""
    with pytest.raises(FileMissingError) as exc_info:
        await client.upload_file(str(tmp_path / "gone.txt"))
    assert exc_info.value.path.endswith("gone.txt")
    assert cloud.requests == []


@pytest.mark.asyncio
async def test_fetch_latest_text(cloud: FakeCloud, client) -> None:
    """Test a text entry needs a single request."""
    cloud.latest = {"type": "text", "content": "hi there"}
    entry = await client.fetch_latest()
    assert entry.kind is PayloadKind.TEXT
    assert entry.text == "hi there"
    assert entry.timestamp == "2024-05-01T10:00:00Z"
    assert len(cloud.requests) == 1


@pytest.mark.asyncio
async def test_fetch_latest_image_refetches_as_bytes(cloud: FakeCloud, client) -> None:
    """Test non-text entries are re-requested and read as raw bytes."""
    cloud.latest = {
        "type": "image",
        "data": b"\x89PNG image",
        "content_type": "image/png",
        "disposition": 'attachment; filename="shot.png"',
    }
    entry = await client.fetch_latest()
    assert entry.kind is PayloadKind.IMAGE
    assert entry.data == b"\x89PNG image"
    assert entry.filename == "shot.png"
    assert len(cloud.requests) == 2
    assert cloud.requests[0].headers["Accept"] == "application/json"


@pytest.mark.asyncio
async def test_fetch_latest_file_infers_extension(cloud: FakeCloud, client) -> None:
    """Test a file without a named extension gets one from its MIME type."""
    cloud.latest = {
        "type": "file",
        "data": b"%PDF-1.7",
        "content_type": "application/pdf",
        "disposition": 'attachment; filename="report"',
    }
    entry = await client.fetch_latest()
    assert entry.kind is PayloadKind.FILE
    assert entry.filename == "report.pdf"


@pytest.mark.asyncio
async def test_fetch_latest_binary_first_response(cloud: FakeCloud, client) -> None:
    """Test a binary answer to the metadata request still yields the entry."""
    cloud.binary_on_first_request = True
    cloud.latest = {"type": "file", "data": b"zipdata", "content_type": "application/zip"}
    entry = await client.fetch_latest()
    assert entry.kind is PayloadKind.FILE
    assert entry.data == b"zipdata"
    assert entry.filename == "downloaded_file.zip"


@pytest.mark.asyncio
async def test_fetch_latest_empty_cloud_returns_none(client) -> None:
    """Test a 404 means the cloud clipboard is empty."""
    assert await client.fetch_latest() is None


@pytest.mark.asyncio
async def test_server_error_carries_status() -> None:
    """Test non-2xx responses raise ServerError with the status."""
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    async with TransportClient("https://clip.example", "key", http_transport=transport) as client:
        with pytest.raises(ServerError) as exc_info:
            await client.upload_text("x")
    assert exc_info.value.status == 503


@pytest.mark.asyncio
async def test_wrong_credential_is_server_error(cloud: FakeCloud) -> None:
    async with TransportClient(
        "https://clip.example", "wrong", http_transport=httpx.MockTransport(cloud.handler)
    ) as client:
        with pytest.raises(ServerError) as exc_info:
            await client.fetch_latest()
    assert exc_info.value.status == 401


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [httpx.ConnectError("refused"), httpx.ReadTimeout("slow")],
)
async def test_transport_failures_become_network_error(error: Exception) -> None:
    """Test connection failures and timeouts raise NetworkError."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise error

    async with TransportClient(
        "https://clip.example", "key", http_transport=httpx.MockTransport(handler)
    ) as client:
        with pytest.raises(NetworkError) as exc_info:
            await client.fetch_latest()
    assert exc_info.value.__cause__ is error


@pytest.mark.asyncio
async def test_subscribe_starts_push_channel(client) -> None:
    """Test subscribe builds a push channel for the same server and key."""
    with patch("clipcloud.transport.PushChannel") as mock_channel:
        subscription = client.subscribe(lambda: None)

    args, kwargs = mock_channel.call_args
    assert args[0] == "https://clip.example"
    assert args[1] == "key"
    assert kwargs["policy"] is client.reconnect_policy
    assert subscription is mock_channel.return_value.start.return_value


@pytest.mark.asyncio
async def test_text_round_trip_through_service(client) -> None:
    """Test text uploaded to the service comes back with the same fingerprint."""
    await client.upload_text("hello")
    entry = await client.fetch_latest()
    assert entry.kind is PayloadKind.TEXT
    assert entry.text == "hello"
    assert entry.fingerprint == compute_text_hash("hello")
