#!/usr/bin/env python3
"""
Content fingerprints for change detection and echo suppression.

A fingerprint is the MD5 hex digest of the raw payload bytes: text is
hashed as UTF-8, images and files as their raw bytes. Fingerprints are only
compared for equality and are never used for anything security related.

This module provides:
- compute_hash(): fingerprint of an in-memory payload
- compute_text_hash(): fingerprint of a text payload
- compute_file_hash(): fingerprint of a file, read in chunks
"""
import hashlib
from pathlib import Path

__all__ = ["compute_hash", "compute_text_hash", "compute_file_hash"]

# Read size used when hashing files from disk.
CHUNK_SIZE: int = 1024 * 1024


def compute_hash(data: bytes) -> str:
    """
    Compute the fingerprint of clipboard content.

    Args:
        data: Raw clipboard content bytes to hash.

    Returns:
        Hexadecimal string representation of the 128-bit MD5 digest.
    """
    return hashlib.md5(data, usedforsecurity=False).hexdigest()


def compute_text_hash(text: str) -> str:
    """Compute the fingerprint of a text payload encoded as UTF-8."""
    return compute_hash(text.encode("utf-8"))


def compute_file_hash(path: str | Path) -> str:
    """
    Compute the fingerprint of a file without loading it into memory.

    Produces the same digest as compute_hash() over the file's bytes.

    Args:
        path: Path of the file to hash.

    Returns:
        Hexadecimal MD5 digest of the file content.

    Raises:
        OSError: If the file cannot be opened or read.
    """
    digest = hashlib.md5(usedforsecurity=False)
    with open(path, "rb") as handle:
        for chunk in iter(lambda: handle.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()
