#!/usr/bin/env python3
"""
Latest clipboard entry as reported by the cloud service.

The service owns these entries; the client only ever fetches the newest
one. Binary entries arrive with a ``content-type`` header and a
``content-disposition`` filename hint. This module parses those headers:

- ``filename*=UTF-8''...`` (RFC 5987) takes precedence over ``filename=``.
- Directory components are stripped from the suggested name.
- Without a hint the name defaults to DEFAULT_FILENAME.
- A name without extension gets one guessed from the content type.
"""

from __future__ import annotations

import mimetypes
import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from urllib.parse import unquote

from clipcloud.constants import DEFAULT_FILENAME
from clipcloud.hashing import compute_hash, compute_text_hash
from clipcloud.payload import PayloadKind

_FILENAME_EXT = re.compile(r"filename\*\s*=\s*([\w-]*)'[^']*'([^;]+)", re.IGNORECASE)
_FILENAME = re.compile(r'filename\s*=\s*"?([^";]+)"?', re.IGNORECASE)


@dataclass(frozen=True)
class RemoteClipboardEntry:
    """
    The newest entry of the cloud clipboard.

    Attributes:
        kind: Payload kind of the entry.
        text: Text content for text entries.
        data: Raw bytes for image and file entries.
        content_type: Declared MIME type of binary entries.
        filename: Suggested filename of binary entries.
        timestamp: Server timestamp, informational only.
    """

    kind: PayloadKind
    text: str | None = None
    data: bytes | None = None
    content_type: str | None = None
    filename: str | None = None
    timestamp: str | int | float | None = None

    @property
    def is_empty(self) -> bool:
        if self.kind is PayloadKind.TEXT:
            return not self.text
        return not self.data

    @property
    def fingerprint(self) -> str:
        if self.kind is PayloadKind.TEXT:
            return compute_text_hash(self.text or "")
        return compute_hash(self.data or b"")


def kind_for_content_type(content_type: str | None) -> PayloadKind:
    """Images become IMAGE entries; every other binary type is a FILE."""
    if content_type and content_type.lower().startswith("image/"):
        return PayloadKind.IMAGE
    return PayloadKind.FILE


def filename_from_headers(
    content_disposition: str | None, content_type: str | None
) -> str:
    """
    Recover the filename of a binary entry from its response headers.

    Args:
        content_disposition: The ``content-disposition`` header, if any.
        content_type: The ``content-type`` header, if any.

    Returns:
        A bare filename safe to join onto a local directory.
    """
    name = ""
    if content_disposition:
        match = _FILENAME_EXT.search(content_disposition)
        if match:
            encoding = match.group(1) or "utf-8"
            try:
                name = unquote(match.group(2).strip(), encoding=encoding)
            except LookupError:
                name = unquote(match.group(2).strip())
        else:
            match = _FILENAME.search(content_disposition)
            if match:
                name = match.group(1).strip()

    name = PurePosixPath(name.replace("\\", "/")).name
    if name in ("", ".", ".."):
        name = DEFAULT_FILENAME

    if not PurePosixPath(name).suffix and content_type:
        extension = mimetypes.guess_extension(content_type.split(";")[0].strip())
        if extension:
            name += extension
    return name
