"""Exception hierarchy for cache inspection and replay.

Tree-integrity failures are raised while walking content-addressed trees.
Fetch failures carry the digest and the purpose of the request.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .container import ContainerImageError
    from .remote_model.types import Digest


class CacheViewError(RuntimeError):
    """Base class for all errors reported by cacheview."""


class TreeIntegrityError(CacheViewError):
    """A tree references directories that cannot be walked."""


class MissingObjectError(TreeIntegrityError):
    """A directory digest has no entry in the tree's directory pool."""

    def __init__(self, digest: Digest, path: PurePosixPath) -> None:
        super().__init__(f"Directory {digest} referenced at {path} is missing from the tree")
        self.digest = digest
        self.path = path


class CyclicTreeError(TreeIntegrityError):
    """A directory digest appears among its own ancestors."""

    def __init__(self, digest: Digest, path: PurePosixPath) -> None:
        super().__init__(f"Directory {digest} at {path} references one of its ancestors")
        self.digest = digest
        self.path = path


class BlobNotFoundError(CacheViewError):
    """The accessor could not retrieve a requested digest."""

    def __init__(self, digest: Digest, purpose: str = "blob") -> None:
        super().__init__(f"Could not obtain {purpose} {digest}")
        self.digest = digest
        self.purpose = purpose


class ContainerSpecError(CacheViewError):
    """The action's container image declaration is unusable."""

    def __init__(self, kind: ContainerImageError, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class OutputPathExistsError(CacheViewError):
    """A replay target path already exists and must not be overwritten."""

    def __init__(self, path: object, kind: str = "path") -> None:
        super().__init__(f"Output {kind} already exists: {path}")
        self.path = path


class LocalWriteError(CacheViewError):
    """Writing fetched data to the local filesystem failed."""

    def __init__(self, path: object, purpose: str, cause: OSError) -> None:
        super().__init__(f"Could not write {purpose} {path}: {cause.strerror or cause}")
        self.path = path
        self.purpose = purpose


class DecodeError(CacheViewError):
    """Serialized remote-execution data could not be decoded."""


__all__ = [
    "CacheViewError",
    "TreeIntegrityError",
    "MissingObjectError",
    "CyclicTreeError",
    "BlobNotFoundError",
    "ContainerSpecError",
    "OutputPathExistsError",
    "LocalWriteError",
    "DecodeError",
]
