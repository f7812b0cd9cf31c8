"""Human-readable reports for actions, action results and output directories.

``ReportPresenter`` fetches commands, trees and stdout/stderr blobs through
the injected accessor on demand and returns plain text. Sections are built
in order; a failing fetch aborts the remaining sections.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import PurePosixPath
from typing import Protocol

from .errors import BlobNotFoundError
from .highlight import sanitize_terminal_text
from .listing import list_tree_lines
from .remote_model.codec import decode_command, decode_tree, loads
from .remote_model.types import (
    Action,
    ActionResult,
    Command,
    Content,
    Digest,
    DigestContent,
    OutputDirectory,
    OutputFile,
    Tree,
)
from .shell import render_command

logger = logging.getLogger(__name__)

NONE_MARKER = "(none)"
LIST_TRUNCATED_MARKER = " ... (too many to list, some omitted)"


class BlobTreeAccessor(Protocol):
    """Read access to a content-addressed cache."""

    def fetch_blob(self, digest: Digest) -> bytes: ...

    def fetch_tree(self, digest: Digest) -> Tree: ...

    def materialize_directory(self, path, digest: Digest) -> None: ...


def _bounded_list(items: Sequence[str], limit: int) -> list[str]:
    if not items:
        return [NONE_MARKER]
    lines = list(items[:limit])
    if len(items) > limit:
        lines.append(LIST_TRUNCATED_MARKER)
    return lines


def _decode_text(data: bytes) -> str:
    return sanitize_terminal_text(data.decode("utf-8", errors="replace"))


def _join(lines: list[str]) -> str:
    return "".join(f"{line}\n" for line in lines)


def fetch_command(accessor: BlobTreeAccessor, digest: Digest) -> Command:
    """Fetch and decode the Command stored under ``digest``."""
    try:
        data = accessor.fetch_blob(digest)
    except BlobNotFoundError as exc:
        raise BlobNotFoundError(digest, "Command for Action") from exc
    return loads(data, decode_command, "Command")


def fetch_output_tree(accessor: BlobTreeAccessor, output_directory: OutputDirectory) -> Tree:
    """Fetch the serialized Tree describing ``output_directory``."""
    try:
        data = accessor.fetch_blob(output_directory.tree_digest)
    except BlobNotFoundError as exc:
        raise BlobNotFoundError(output_directory.tree_digest, "Tree for OutputDirectory") from exc
    return loads(data, decode_tree, "Tree")


class ReportPresenter:
    """Render cache objects as text, fetching referenced objects as needed."""

    def __init__(self, accessor: BlobTreeAccessor) -> None:
        self._accessor = accessor

    def list_tree(self, path: PurePosixPath, tree: Tree, limit: int) -> str:
        return _join(list_tree_lines(path, tree, limit))

    def list_tree_digest(self, digest: Digest, limit: int) -> str:
        """Fetch the tree rooted at ``digest`` and list it."""
        return self.list_tree(PurePosixPath(""), self._accessor.fetch_tree(digest), limit)

    def _output_directory_lines(self, output_directory: OutputDirectory, limit: int) -> list[str]:
        tree = fetch_output_tree(self._accessor, output_directory)
        lines = [f"OutputDirectory rooted at {output_directory.path}:"]
        lines.extend(list_tree_lines(PurePosixPath(""), tree, limit))
        return lines

    def list_output_directory(self, output_directory: OutputDirectory, limit: int) -> str:
        return _join(self._output_directory_lines(output_directory, limit))

    def render_action(self, action: Action, limit: int) -> str:
        command = fetch_command(self._accessor, action.command_digest)
        lines = [f"Command [digest: {action.command_digest}]:", render_command(command)]

        logger.debug("Fetching input root %s", action.input_root_digest)
        try:
            tree = self._accessor.fetch_tree(action.input_root_digest)
        except BlobNotFoundError as exc:
            raise BlobNotFoundError(action.input_root_digest, "input root Tree for Action") from exc
        lines.append("")
        lines.append(
            f"Input files [total: {tree.file_count()}, root Directory digest: {action.input_root_digest}]:"
        )
        lines.extend(list_tree_lines(PurePosixPath(""), tree, limit))

        lines.append("")
        lines.append("Output files:")
        lines.extend(_bounded_list(action.output_files, limit))

        lines.append("")
        lines.append("Output directories:")
        lines.extend(_bounded_list(action.output_directories, limit))

        lines.append("")
        lines.append("Platform:")
        if action.platform.properties:
            lines.extend(f"  {prop.name}: {prop.value}" for prop in action.platform.properties)
        else:
            lines.append(NONE_MARKER)
        return _join(lines)

    def _output_file_line(self, output_file: OutputFile, show_raw: bool) -> str:
        content = output_file.content
        if isinstance(content, DigestContent):
            description = f"Content digest: {content.digest}"
        elif show_raw:
            description = f"Raw contents: '{_decode_text(content.data)}', size (bytes): {len(content.data)}"
        else:
            description = "Raw contents (not printed)"
        executable = "true" if output_file.is_executable else "false"
        return f"{output_file.path} [{description}, executable: {executable}]"

    def _content_text(self, content: Content, purpose: str) -> str:
        if isinstance(content, DigestContent):
            try:
                data = self._accessor.fetch_blob(content.digest)
            except BlobNotFoundError as exc:
                raise BlobNotFoundError(content.digest, purpose) from exc
            return _decode_text(data)
        return _decode_text(content.data)

    def render_action_result(self, result: ActionResult, limit: int, show_raw: bool = False) -> str:
        lines = ["Output files:"]
        lines.extend(self._output_file_line(item, show_raw) for item in result.output_files[:limit])
        if len(result.output_files) > limit:
            lines.append(LIST_TRUNCATED_MARKER)
        elif not result.output_files:
            lines.append(NONE_MARKER)

        lines.append("")
        lines.append("Output directories:")
        if result.output_directories:
            for output_directory in result.output_directories:
                lines.extend(self._output_directory_lines(output_directory, limit))
        else:
            lines.append(NONE_MARKER)

        lines.append("")
        lines.append(f"Exit code: {result.exit_code}")

        lines.append("")
        lines.append("Stderr buffer:")
        lines.append(self._content_text(result.stderr, "stderr"))

        lines.append("")
        lines.append("Stdout buffer:")
        lines.append(self._content_text(result.stdout, "stdout"))
        return _join(lines)


__all__ = [
    "NONE_MARKER",
    "LIST_TRUNCATED_MARKER",
    "BlobTreeAccessor",
    "fetch_command",
    "fetch_output_tree",
    "ReportPresenter",
]
