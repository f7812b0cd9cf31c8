"""Resolve content-addressed trees and list them under an entry budget.

A ``Tree`` carries its directories as a flat pool; nested ``DirectoryNode``
references are followed by digest lookup. Listing walks depth-first with an
explicit stack and threads the count of emitted file rows through the whole
walk, so one budget covers every level and at most one truncation marker is
written.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from pathlib import PurePosixPath

from .errors import CyclicTreeError, MissingObjectError
from .remote_model.digest import directory_digest
from .remote_model.types import Digest, Directory, DirectoryNode, FileNode, Tree

FILES_TRUNCATED_MARKER = " ... (too many files to list, some omitted)"


def index_directories(
    directories: Iterable[Directory],
    digest_function: Callable[[Directory], Digest] = directory_digest,
) -> dict[Digest, Directory]:
    """Map each pooled directory's digest to the directory itself."""
    return {digest_function(directory): directory for directory in directories}


def resolve_directory(children: dict[Digest, Directory], digest: Digest, path: PurePosixPath) -> Directory:
    """Look up ``digest`` in ``children``; a miss is a broken tree, never empty."""
    directory = children.get(digest)
    if directory is None:
        raise MissingObjectError(digest, path)
    return directory


def format_file_node(path: PurePosixPath, node: FileNode) -> str:
    return f"{path} [File content digest: {node.digest}]"


def format_directory_node(path: PurePosixPath, node: DirectoryNode) -> str:
    return f"{path} [Directory digest: {node.digest}]"


def _list_files(
    path: PurePosixPath,
    directory: Directory,
    limit: int,
    listed: int,
    lines: list[str],
) -> tuple[int, bool]:
    """Append file rows until the budget runs out; return ``(listed, truncated)``."""
    for node in directory.files:
        if listed >= limit:
            return listed, True
        lines.append(format_file_node(path / node.name, node))
        listed += 1
    return listed, False


def list_directory(
    path: PurePosixPath,
    directory: Directory,
    children: dict[Digest, Directory],
    limit: int,
    listed: int = 0,
    root_digest: Digest | None = None,
) -> tuple[list[str], int]:
    """List ``directory`` and everything below it.

    ``listed`` is the number of file rows already emitted by the caller; the
    updated running total is returned with the rows. Files count against
    ``limit``; directory summary rows do not. Once the budget is spent, one
    truncation marker is written if anything was left unvisited.
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")

    lines: list[str] = []
    listed, truncated = _list_files(path, directory, limit, listed, lines)

    # Each frame: (directory path, remaining subdirectory nodes, digest of that directory).
    stack: list[tuple[PurePosixPath, Iterator[DirectoryNode], Digest | None]] = [
        (path, iter(directory.directories), root_digest)
    ]
    ancestors: set[Digest] = {root_digest} if root_digest is not None else set()

    while stack and not truncated:
        parent_path, nodes, parent_digest = stack[-1]
        node = next(nodes, None)
        if node is None:
            stack.pop()
            ancestors.discard(parent_digest)
            continue
        if listed >= limit:
            truncated = True
            break

        child_path = parent_path / node.name
        if node.digest in ancestors:
            raise CyclicTreeError(node.digest, child_path)
        lines.append(format_directory_node(child_path, node))
        child = resolve_directory(children, node.digest, child_path)
        listed, truncated = _list_files(child_path, child, limit, listed, lines)
        stack.append((child_path, iter(child.directories), node.digest))
        ancestors.add(node.digest)

    if truncated:
        lines.append(FILES_TRUNCATED_MARKER)
    return lines, listed


def list_tree_lines(path: PurePosixPath, tree: Tree, limit: int) -> list[str]:
    """Index ``tree``'s pool and list its root directory."""
    children = index_directories(tree.children)
    lines, _listed = list_directory(path, tree.root, children, limit)
    return lines


def list_tree(path: PurePosixPath, tree: Tree, limit: int) -> str:
    """Render a bounded listing of ``tree`` rooted at ``path``."""
    return "".join(f"{line}\n" for line in list_tree_lines(path, tree, limit))


__all__ = [
    "FILES_TRUNCATED_MARKER",
    "index_directories",
    "resolve_directory",
    "format_file_node",
    "format_directory_node",
    "list_directory",
    "list_tree_lines",
    "list_tree",
]
