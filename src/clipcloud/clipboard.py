#!/usr/bin/env python3
"""Clipboard capability used by the sync engine.

The engine never talks to the operating system directly. It receives an
object implementing the Clipboard protocol, which exposes the three payload
formats it synchronizes. Reads and writes are synchronous.

FormatClipboard builds a Clipboard out of a host clipboard that speaks raw
format names, delegating file references to a platform adapter from
file_refs so the engine never branches on platform.
"""

from __future__ import annotations

from typing import Protocol

from clipcloud.file_refs import FileReferences, RawClipboard, file_references_for


class Clipboard(Protocol):
    """Read and write access to the local clipboard.

    Every read returns None (or "") when the format is absent.
    """

    def read_text(self) -> str | None: ...

    def write_text(self, text: str) -> None: ...

    def read_image(self) -> bytes | None: ...

    def write_image(self, data: bytes) -> None: ...

    def read_file_reference(self) -> str | None: ...

    def write_file_reference(self, path: str) -> None: ...


class HostClipboard(RawClipboard, Protocol):
    """Clipboard of the host application: text, PNG images and raw formats."""

    def read_text(self) -> str | None: ...

    def write_text(self, text: str) -> None: ...

    def read_image(self) -> bytes | None: ...

    def write_image(self, data: bytes) -> None: ...


class FormatClipboard:
    """Clipboard backed by a host clipboard and a file reference adapter.

    Args:
        host: The host application's clipboard.
        references: Platform adapter; defaults to the running platform's.
    """

    def __init__(self, host: HostClipboard, references: FileReferences | None = None) -> None:
        self.host = host
        self.references = references or file_references_for()

    def read_text(self) -> str | None:
        return self.host.read_text()

    def write_text(self, text: str) -> None:
        self.host.write_text(text)

    def read_image(self) -> bytes | None:
        return self.host.read_image() or None

    def write_image(self, data: bytes) -> None:
        self.host.write_image(data)

    def read_file_reference(self) -> str | None:
        return self.references.read(self.host)

    def write_file_reference(self, path: str) -> None:
        self.references.write(self.host, path)
