#!/usr/bin/env python3
"""Clipboard payload types.

A clipboard holds exactly one logical payload at a time. When several
formats are present, selection priority is file reference, then image,
then text.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

from clipcloud.hashing import compute_hash, compute_text_hash


class PayloadKind(enum.Enum):
    """Kinds of clipboard payload, listed in selection priority order."""

    FILE = "file"
    IMAGE = "image"
    TEXT = "text"


@dataclass(frozen=True)
class TextPayload:
    """Plain text clipboard content."""

    text: str

    kind = PayloadKind.TEXT

    @property
    def fingerprint(self) -> str:
        return compute_text_hash(self.text)


@dataclass(frozen=True)
class ImagePayload:
    """Raw image bytes as exposed by the clipboard (PNG encoded)."""

    data: bytes

    kind = PayloadKind.IMAGE

    @property
    def fingerprint(self) -> str:
        return compute_hash(self.data)


@dataclass(frozen=True)
class FilePayload:
    """A file reference on the clipboard.

    Attributes:
        path: Normalized local path of the referenced file.
        size: File size in bytes.
        fingerprint: Fingerprint of the file content.
    """

    path: str
    size: int
    fingerprint: str

    kind = PayloadKind.FILE


ClipboardPayload = Union[TextPayload, ImagePayload, FilePayload]
