"""Domain datatypes for remote-execution cache objects."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Digest:
    """Content hash plus byte size; identity is the hash alone."""

    hash: str
    size_bytes: int = field(default=0, compare=False)

    def __str__(self) -> str:
        return f"{self.hash}/{self.size_bytes}"

    @classmethod
    def parse(cls, text: str) -> "Digest":
        """Parse ``<hash>/<size_bytes>`` as printed by ``str(digest)``."""
        hash_part, sep, size_part = text.strip().partition("/")
        if not sep or not hash_part:
            raise ValueError(f"digest must look like <hash>/<size>: {text!r}")
        try:
            size_bytes = int(size_part)
        except ValueError as exc:
            raise ValueError(f"invalid digest size: {size_part!r}") from exc
        if size_bytes < 0:
            raise ValueError(f"invalid digest size: {size_part!r}")
        return cls(hash=hash_part.lower(), size_bytes=size_bytes)


@dataclass(frozen=True)
class FileNode:
    name: str
    digest: Digest
    is_executable: bool = False


@dataclass(frozen=True)
class DirectoryNode:
    name: str
    digest: Digest


@dataclass(frozen=True)
class Directory:
    """One directory level: files and subdirectory references in stored order."""

    files: tuple[FileNode, ...] = ()
    directories: tuple[DirectoryNode, ...] = ()


@dataclass(frozen=True)
class Tree:
    """Root directory plus the flat pool of every directory it reaches."""

    root: Directory
    children: tuple[Directory, ...] = ()

    def file_count(self) -> int:
        return len(self.root.files) + sum(len(child.files) for child in self.children)


@dataclass(frozen=True)
class EnvironmentVariable:
    name: str
    value: str


@dataclass(frozen=True)
class Command:
    arguments: tuple[str, ...] = ()
    environment_variables: tuple[EnvironmentVariable, ...] = ()


@dataclass(frozen=True)
class Property:
    name: str
    value: str


@dataclass(frozen=True)
class Platform:
    properties: tuple[Property, ...] = ()


@dataclass(frozen=True)
class Action:
    command_digest: Digest
    input_root_digest: Digest
    output_files: tuple[str, ...] = ()
    output_directories: tuple[str, ...] = ()
    platform: Platform = Platform()


@dataclass(frozen=True)
class InlineContent:
    """Bytes carried directly inside an action result."""

    data: bytes = b""


@dataclass(frozen=True)
class DigestContent:
    """Bytes stored separately in the cache under ``digest``."""

    digest: Digest


Content = InlineContent | DigestContent


@dataclass(frozen=True)
class OutputFile:
    path: str
    content: Content
    is_executable: bool = False


@dataclass(frozen=True)
class OutputDirectory:
    path: str
    tree_digest: Digest


@dataclass(frozen=True)
class ActionResult:
    output_files: tuple[OutputFile, ...] = ()
    output_directories: tuple[OutputDirectory, ...] = ()
    exit_code: int = 0
    stdout: Content = InlineContent()
    stderr: Content = InlineContent()


__all__ = [
    "Digest",
    "FileNode",
    "DirectoryNode",
    "Directory",
    "Tree",
    "EnvironmentVariable",
    "Command",
    "Property",
    "Platform",
    "Action",
    "InlineContent",
    "DigestContent",
    "Content",
    "OutputFile",
    "OutputDirectory",
    "ActionResult",
]
