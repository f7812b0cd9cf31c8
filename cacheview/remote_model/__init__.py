"""Domain model for content-addressed remote-execution objects.

This package contains non-presentation primitives:
- immutable value types for actions, commands, results and trees
- JSON decoding/encoding of those messages
- digest computation for blobs and directories
"""

from __future__ import annotations

from .types import (
    Action,
    ActionResult,
    Command,
    Content,
    Digest,
    DigestContent,
    Directory,
    DirectoryNode,
    EnvironmentVariable,
    FileNode,
    InlineContent,
    OutputDirectory,
    OutputFile,
    Platform,
    Property,
    Tree,
)
from .digest import compute_digest, directory_digest

__all__ = [
    "Action",
    "ActionResult",
    "Command",
    "Content",
    "Digest",
    "DigestContent",
    "Directory",
    "DirectoryNode",
    "EnvironmentVariable",
    "FileNode",
    "InlineContent",
    "OutputDirectory",
    "OutputFile",
    "Platform",
    "Property",
    "Tree",
    "compute_digest",
    "directory_digest",
]
