"""Streaming content hashing for file fingerprints."""

from __future__ import annotations

import hashlib
import pathlib


HASH_ALGORITHM = "md5"

DEFAULT_CHUNK_SIZE = 64 * 1024


def hash_file(path: pathlib.Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Compute the MD5 hex digest of a file, reading it in chunks."""
    digest = hashlib.new(HASH_ALGORITHM)
    with path.open("rb") as f:
        while chunk := f.read(chunk_size):
            digest.update(chunk)
    return digest.hexdigest()
