"""SHA-256 digests for blobs and serialized directories."""

from __future__ import annotations

import hashlib

from .codec import encode_directory
from .types import Digest, Directory

HASH_ALGORITHM = "sha256"


def compute_digest(data: bytes) -> Digest:
    """Return the digest of raw ``data``."""
    return Digest(hash=hashlib.new(HASH_ALGORITHM, data).hexdigest(), size_bytes=len(data))


def directory_digest(directory: Directory) -> Digest:
    """Return the digest of ``directory`` in its canonical encoding."""
    return compute_digest(encode_directory(directory))


__all__ = ["HASH_ALGORITHM", "compute_digest", "directory_digest"]
