"""Local content-addressed cache directory implementing the blob/tree accessor.

Blobs are stored under ``<root>/cas/<hash[:2]>/<hash>``. Directories are
blobs holding their canonical JSON encoding, so a tree is reassembled by
following ``DirectoryNode`` digests from the root.
"""

from __future__ import annotations

import logging
import os
from collections import deque
from pathlib import Path, PurePosixPath

from .errors import BlobNotFoundError, CacheViewError, DecodeError, LocalWriteError, OutputPathExistsError
from .listing import index_directories, resolve_directory
from .remote_model.codec import decode_directory, encode_directory, encode_tree, loads
from .remote_model.digest import compute_digest
from .remote_model.types import Digest, Directory, OutputDirectory, Tree
from .report import fetch_output_tree

logger = logging.getLogger(__name__)

CAS_DIRNAME = "cas"


def _checked_name(name: str) -> str:
    """Reject path components that would escape the materialized directory."""
    if not name or name in {".", ".."} or "/" in name or "\x00" in name:
        raise DecodeError(f"Invalid path component in tree: {name!r}")
    return name


def _make_directory(path: Path, parents: bool = False) -> None:
    """Create ``path`` unless it is already a directory; anything else in the way is an error."""
    try:
        path.mkdir(parents=parents, exist_ok=True)
    except OSError as exc:
        raise LocalWriteError(path, "directory", exc) from exc


class DiskCache:
    """Content-addressed blob store rooted at a local directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def blob_path(self, digest: Digest) -> Path:
        if len(digest.hash) < 3 or not all(ch in "0123456789abcdef" for ch in digest.hash):
            raise CacheViewError(f"Invalid digest hash: {digest.hash!r}")
        return self.root / CAS_DIRNAME / digest.hash[:2] / digest.hash

    def has_blob(self, digest: Digest) -> bool:
        return self.blob_path(digest).is_file()

    def fetch_blob(self, digest: Digest) -> bytes:
        path = self.blob_path(digest)
        logger.debug("Reading blob %s from %s", digest, path)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise BlobNotFoundError(digest) from exc
        except OSError as exc:
            raise CacheViewError(f"Could not read blob {digest}: {exc}") from exc

    def put_blob(self, data: bytes) -> Digest:
        """Store ``data`` and return its digest; existing blobs are left untouched."""
        digest = compute_digest(data)
        target = self.blob_path(digest)
        if target.exists():
            return digest
        target.parent.mkdir(parents=True, exist_ok=True)
        temp_path = target.with_suffix(".tmp")
        temp_path.write_bytes(data)
        temp_path.replace(target)
        logger.debug("Stored blob %s", digest)
        return digest

    def put_directory(self, directory: Directory) -> Digest:
        return self.put_blob(encode_directory(directory))

    def put_tree(self, tree: Tree) -> Digest:
        """Store ``tree`` as one serialized Tree blob, as output directories reference it."""
        return self.put_blob(encode_tree(tree))

    def fetch_directory(self, digest: Digest) -> Directory:
        try:
            data = self.fetch_blob(digest)
        except BlobNotFoundError as exc:
            raise BlobNotFoundError(digest, "Directory") from exc
        return loads(data, decode_directory, "Directory")

    def fetch_tree(self, digest: Digest) -> Tree:
        """Assemble the tree rooted at directory ``digest``, fetching each distinct directory once."""
        root = self.fetch_directory(digest)
        children: list[Directory] = []
        seen: set[Digest] = {digest}
        pending = deque(node.digest for node in root.directories)
        while pending:
            child_digest = pending.popleft()
            if child_digest in seen:
                continue
            seen.add(child_digest)
            child = self.fetch_directory(child_digest)
            children.append(child)
            pending.extend(node.digest for node in child.directories)
        logger.debug("Fetched tree %s with %d directories", digest, len(children) + 1)
        return Tree(root=root, children=tuple(children))

    def write_tree(self, path: Path, tree: Tree) -> None:
        """Write ``tree``'s files below ``path`` without overwriting anything."""
        path = Path(path)
        children = index_directories(tree.children)
        _make_directory(path, parents=True)
        pending: list[tuple[Path, Directory]] = [(path, tree.root)]
        while pending:
            directory_path, directory = pending.pop()
            for file_node in directory.files:
                target = directory_path / _checked_name(file_node.name)
                if target.exists():
                    raise OutputPathExistsError(target, "file")
                try:
                    data = self.fetch_blob(file_node.digest)
                except BlobNotFoundError as exc:
                    raise BlobNotFoundError(file_node.digest, f"contents of {target}") from exc
                try:
                    target.write_bytes(data)
                    if file_node.is_executable:
                        os.chmod(target, 0o755)
                except OSError as exc:
                    raise LocalWriteError(target, "file", exc) from exc
            for node in directory.directories:
                target = directory_path / _checked_name(node.name)
                child = resolve_directory(children, node.digest, PurePosixPath(target.relative_to(path).as_posix()))
                _make_directory(target)
                pending.append((target, child))

    def materialize_directory(self, path: Path, digest: Digest) -> None:
        logger.debug("Materializing directory %s into %s", digest, path)
        self.write_tree(Path(path), self.fetch_tree(digest))

    def materialize_output_directory(self, output_directory: OutputDirectory, path: Path) -> None:
        logger.debug("Materializing output directory %s into %s", output_directory.path, path)
        self.write_tree(Path(path), fetch_output_tree(self, output_directory))


__all__ = ["CAS_DIRNAME", "DiskCache"]
