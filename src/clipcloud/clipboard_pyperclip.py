#!/usr/bin/env python3
"""Text-only clipboard backend built on pyperclip.

Used by the command line client, which has no access to image or file
clipboard formats. Image and file reads report nothing; writing them raises
UnsupportedFormatError so the engine reports the download as failed instead
of silently dropping it.
"""

from __future__ import annotations

import logging

import pyperclip

from clipcloud.errors import UnsupportedFormatError

logger = logging.getLogger(__name__)


class PyperclipClipboard:
    """Clipboard implementation using the system text clipboard."""

    def read_text(self) -> str | None:
        try:
            return pyperclip.paste()
        except pyperclip.PyperclipException as e:
            logger.debug("Clipboard read failed: %s", e)
            return None

    def write_text(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise UnsupportedFormatError(f"Cannot write clipboard text: {e}") from e

    def read_image(self) -> bytes | None:
        return None

    def write_image(self, data: bytes) -> None:
        raise UnsupportedFormatError("Text-only clipboard cannot hold images")

    def read_file_reference(self) -> str | None:
        return None

    def write_file_reference(self, path: str) -> None:
        raise UnsupportedFormatError(
            f"Text-only clipboard cannot hold file references (saved to {path})"
        )
