#!/usr/bin/env python3
"""
Platform-specific file references on the clipboard.

Each desktop platform exposes copied files through a different clipboard
format with its own encoding:

- Windows: ``FileNameW``, a UTF-16-LE path list separated and terminated
  by NUL characters.
- macOS: ``public.file-url``, a single percent-encoded ``file://`` URL.
- Linux: ``text/uri-list`` (RFC 2483, CRLF separated, ``#`` comments) and
  ``x-special/gnome-copied-files`` (an action line followed by URLs).

The adapters in this module hide those differences behind read() and
write(). Decoding strips the ``file://`` scheme, percent-decodes, fixes the
leading slash in front of Windows drive letters and normalizes separators.
Only the first referenced path is used: the clipboard carries one logical
item at a time.
"""

from __future__ import annotations

import re
import sys
from pathlib import PureWindowsPath
from typing import Protocol
from urllib.parse import quote, unquote

_DRIVE_PREFIX = re.compile(r"^/([A-Za-z]:)")


class RawClipboard(Protocol):
    """Clipboard access by raw format name, provided by the host application."""

    def available_formats(self) -> list[str]: ...

    def read_buffer(self, fmt: str) -> bytes: ...

    def write_buffer(self, fmt: str, data: bytes) -> None: ...


def url_to_path(value: str, windows: bool = False) -> str:
    """
    Convert a clipboard file URL or plain path to a local path.

    Args:
        value: A ``file://`` URL or an already plain path.
        windows: Normalize to backslash separators.

    Returns:
        The decoded local path, or "" if value holds no path.
    """
    path = value.strip().strip("\x00").strip()
    if path.lower().startswith("file://"):
        path = unquote(path[len("file://"):])
        if path.lower().startswith("localhost/"):
            path = path[len("localhost"):]
    path = _DRIVE_PREFIX.sub(r"\1", path)
    if windows or _DRIVE_PREFIX.match("/" + path):
        path = path.replace("/", "\\")
    return path


def path_to_url(path: str) -> str:
    """Encode a local path as a ``file://`` URL."""
    if re.match(r"^[A-Za-z]:", path):
        return PureWindowsPath(path).as_uri()
    return "file://" + quote(path)


def decode_file_name_w(data: bytes) -> list[str]:
    """Decode a Windows ``FileNameW`` buffer into a list of paths."""
    text = data.decode("utf-16-le", errors="ignore")
    return [url_to_path(part, windows=True) for part in text.split("\x00") if part.strip()]


def encode_file_name_w(paths: list[str]) -> bytes:
    """Encode paths as a double NUL terminated ``FileNameW`` buffer."""
    return ("\x00".join(paths) + "\x00\x00").encode("utf-16-le")


def decode_uri_list(data: bytes) -> list[str]:
    """
    Decode a ``text/uri-list`` or ``public.file-url`` buffer.

    Comment lines, blank lines and the ``copy``/``cut`` action line of the
    GNOME format are skipped.
    """
    paths = []
    for line in data.decode("utf-8", errors="ignore").splitlines():
        line = line.strip().strip("\x00")
        if not line or line.startswith("#") or line in ("copy", "cut"):
            continue
        path = url_to_path(line)
        if path:
            paths.append(path)
    return paths


def encode_uri_list(paths: list[str]) -> bytes:
    """Encode paths as an RFC 2483 ``text/uri-list`` buffer."""
    return "".join(f"{path_to_url(path)}\r\n" for path in paths).encode("utf-8")


class FileReferences:
    """Base adapter: read and write a file reference in one format family.

    Attributes:
        formats: Clipboard format names to try, in order.
    """

    formats: tuple[str, ...] = ()

    def read(self, raw: RawClipboard) -> str | None:
        """
        Return the first file path referenced on the clipboard.

        Args:
            raw: The raw format clipboard.

        Returns:
            A normalized local path, or None when no file is referenced.
        """
        available = set(raw.available_formats())
        for fmt in self.formats:
            if fmt not in available:
                continue
            paths = self.decode(fmt, raw.read_buffer(fmt))
            if paths:
                return paths[0]
        return None

    def write(self, raw: RawClipboard, path: str) -> None:
        """Put a reference to path on the clipboard."""
        fmt = self.formats[0]
        raw.write_buffer(fmt, self.encode(fmt, path))

    def decode(self, fmt: str, data: bytes) -> list[str]:
        raise NotImplementedError

    def encode(self, fmt: str, path: str) -> bytes:
        raise NotImplementedError


class WindowsFileReferences(FileReferences):
    formats = ("FileNameW",)

    def decode(self, fmt: str, data: bytes) -> list[str]:
        return decode_file_name_w(data)

    def encode(self, fmt: str, path: str) -> bytes:
        return encode_file_name_w([path])


class MacFileReferences(FileReferences):
    formats = ("public.file-url",)

    def decode(self, fmt: str, data: bytes) -> list[str]:
        return decode_uri_list(data)

    def encode(self, fmt: str, path: str) -> bytes:
        return path_to_url(path).encode("utf-8")


class LinuxFileReferences(FileReferences):
    formats = ("text/uri-list", "x-special/gnome-copied-files")

    def decode(self, fmt: str, data: bytes) -> list[str]:
        return decode_uri_list(data)

    def encode(self, fmt: str, path: str) -> bytes:
        if fmt == "x-special/gnome-copied-files":
            return f"copy\n{path_to_url(path)}".encode("utf-8")
        return encode_uri_list([path])


def file_references_for(platform: str = sys.platform) -> FileReferences:
    """
    Pick the file reference adapter for a platform.

    Args:
        platform: A ``sys.platform`` value.

    Returns:
        The adapter instance; unknown platforms use the Linux formats.
    """
    if platform.startswith("win"):
        return WindowsFileReferences()
    if platform == "darwin":
        return MacFileReferences()
    return LinuxFileReferences()
