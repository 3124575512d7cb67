#!/usr/bin/env python3
"""
Memory of the most recently downloaded content.

Echo suppression is what keeps the sync from looping. Writing downloaded
content to the local clipboard makes the change detector fire; without this
memory the engine would upload the content it just pulled, the server would
ring the doorbell again and the cycle would repeat forever.

The clipboard holds one logical item at a time, so recording a download of
one kind clears the fingerprints of the other two kinds.

A blank stored fingerprint never matches. All fields start blank, which
keeps startup and a freshly cleared clipboard from being suppressed by
accident.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from clipcloud.payload import PayloadKind


@dataclass
class DownloadMemory:
    """
    Identity of the content last pulled from the cloud.

    Attributes:
        text_hash: Fingerprint of the last downloaded text, or "".
        image_hash: Fingerprint of the last downloaded image, or "".
        file_hash: Fingerprint of the last downloaded file, or "".
        file_path: Local path the last downloaded file was written to, or "".
        timestamp: Wall-clock time of the last download, 0.0 if none.
    """

    text_hash: str = ""
    image_hash: str = ""
    file_hash: str = ""
    file_path: str = ""
    timestamp: float = 0.0

    def record_download(
        self,
        kind: PayloadKind,
        fingerprint: str,
        path: str | None = None,
        *,
        at: float | None = None,
    ) -> None:
        """
        Record a download and forget downloads of the other kinds.

        Args:
            kind: Kind of the downloaded payload.
            fingerprint: Fingerprint of the downloaded payload.
            path: Local path the file was written to, for file downloads.
            at: Download time; defaults to now.
        """
        self.text_hash = fingerprint if kind is PayloadKind.TEXT else ""
        self.image_hash = fingerprint if kind is PayloadKind.IMAGE else ""
        self.file_hash = fingerprint if kind is PayloadKind.FILE else ""
        self.file_path = (path or "") if kind is PayloadKind.FILE else ""
        self.timestamp = time.time() if at is None else at

    def was_just_downloaded(
        self, kind: PayloadKind, fingerprint: str, path: str | None = None
    ) -> bool:
        """
        Check whether content matches the last download of the same kind.

        Args:
            kind: Kind of the payload found on the clipboard.
            fingerprint: Its fingerprint.
            path: For file references, the referenced path. When both this
                and the recorded path are set they must match as well.

        Returns:
            True if the payload is the content that was just downloaded.
        """
        stored = self._stored(kind)
        if not stored or stored != fingerprint:
            return False
        if kind is PayloadKind.FILE and path and self.file_path:
            return path == self.file_path
        return True

    def clear(self) -> None:
        """Reset to the initial blank state."""
        self.text_hash = ""
        self.image_hash = ""
        self.file_hash = ""
        self.file_path = ""
        self.timestamp = 0.0

    def _stored(self, kind: PayloadKind) -> str:
        if kind is PayloadKind.TEXT:
            return self.text_hash
        if kind is PayloadKind.IMAGE:
            return self.image_hash
        return self.file_hash
