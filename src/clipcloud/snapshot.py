#!/usr/bin/env python3
"""
Local clipboard change detection.

The snapshot tracks two things:

- The last observed clipboard identity (which formats were present and the
  fingerprint of each). diff() compares the live clipboard with it and
  overwrites it on every call, so each change is reported exactly once.
- The identity of the last payload synchronized in either direction. The
  clipboard holds one logical item, so syncing a payload of one kind
  forgets the others. The upload path consults it so that content already
  in the cloud is not uploaded a second time.

File references are compared by path rather than by content hash so the
poll loop does not read large files every tick. Images and text are
compared by fingerprint.

The snapshot starts empty: the first non-empty clipboard observed is a
change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from clipcloud.hashing import compute_hash, compute_text_hash
from clipcloud.payload import PayloadKind

if TYPE_CHECKING:
    from clipcloud.clipboard import Clipboard
    from clipcloud.payload import ClipboardPayload


@dataclass(frozen=True)
class ClipboardObservation:
    """Identity of the clipboard at one point in time.

    Attributes:
        file_path: Referenced file path, or None.
        image_hash: Fingerprint of the image bytes, or None.
        text_hash: Fingerprint of the text, or None.
    """

    file_path: str | None = None
    image_hash: str | None = None
    text_hash: str | None = None

    @property
    def formats(self) -> frozenset[PayloadKind]:
        """Payload kinds present on the clipboard."""
        present = set()
        if self.file_path:
            present.add(PayloadKind.FILE)
        if self.image_hash:
            present.add(PayloadKind.IMAGE)
        if self.text_hash:
            present.add(PayloadKind.TEXT)
        return frozenset(present)

    def identity(self, kind: PayloadKind) -> str | None:
        if kind is PayloadKind.FILE:
            return self.file_path
        if kind is PayloadKind.IMAGE:
            return self.image_hash
        return self.text_hash

    @classmethod
    def read(cls, clipboard: Clipboard) -> ClipboardObservation:
        """Observe the live clipboard."""
        image = clipboard.read_image()
        text = clipboard.read_text()
        return cls(
            file_path=clipboard.read_file_reference() or None,
            image_hash=compute_hash(image) if image else None,
            text_hash=compute_text_hash(text) if text else None,
        )


@dataclass(frozen=True)
class ChangeSet:
    """Description of a detected clipboard change.

    Attributes:
        changed: Kinds whose content appeared or changed.
        removed: Kinds that were present before and are gone now.
    """

    changed: frozenset[PayloadKind]
    removed: frozenset[PayloadKind]

    @property
    def is_empty_clipboard(self) -> bool:
        """True when the change left nothing on the clipboard."""
        return not self.changed


@dataclass
class ClipboardSnapshot:
    """Last observed and last synchronized clipboard state.

    Attributes:
        observed: Identity seen by the most recent diff() call.
        synced: Fingerprint of the last payload synced, keyed by its kind.
            Holds at most one entry.
    """

    observed: ClipboardObservation = field(default_factory=ClipboardObservation)
    synced: dict[PayloadKind, str] = field(default_factory=dict)

    def diff(self, clipboard: Clipboard) -> ChangeSet | None:
        """
        Compare the live clipboard with the last observation.

        The stored observation is replaced with the current one before
        returning, whether or not anything changed.

        Args:
            clipboard: The clipboard capability to read.

        Returns:
            A ChangeSet describing what changed, or None if nothing did.
        """
        current = ClipboardObservation.read(clipboard)
        previous = self.observed
        self.observed = current
        if current == previous:
            return None

        changed = frozenset(
            kind
            for kind in current.formats
            if current.identity(kind) != previous.identity(kind)
        )
        removed = previous.formats - current.formats
        return ChangeSet(changed=changed, removed=removed)

    def record_synced(self, payload: ClipboardPayload) -> None:
        """Remember a payload that was just uploaded or downloaded.

        Replaces whatever was synced before, whatever its kind.
        """
        self.synced = {payload.kind: payload.fingerprint}

    def matches_synced(self, payload: ClipboardPayload) -> bool:
        """Check whether payload equals the last synced payload of its kind."""
        return self.synced.get(payload.kind) == payload.fingerprint

    def clear(self) -> None:
        """Forget everything; the next diff() reports any content as new."""
        self.observed = ClipboardObservation()
        self.synced.clear()
