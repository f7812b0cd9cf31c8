"""Prepare a local directory for replaying an action and build its command line.

Inputs are materialized through the accessor and declared outputs are
checked so that a replay never writes over existing files.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .container import ContainerImageError, container_image, docker_command
from .errors import ContainerSpecError, LocalWriteError, OutputPathExistsError
from .remote_model.types import Action, Command
from .report import BlobTreeAccessor, fetch_command
from .shell import escape_shell, render_command

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplayPlan:
    """Replay directory plus the shell command that reruns the action there."""

    root: Path
    command_line: str
    containerized: bool


def _output_target(root: Path, output: str) -> Path:
    target = (root / output).resolve()
    if not target.is_relative_to(root.resolve()):
        raise ValueError(f"Output path escapes replay directory: {output!r}")
    return target


def local_command(command: Command, root: Path) -> str:
    """Command line running ``command`` from ``root`` without a container."""
    return f"cd {escape_shell(str(root))} && \\\n{render_command(command)}"


def prepare_outputs(action: Action, root: Path) -> None:
    """Create parent directories for outputs, refusing any path that already exists."""
    for output in action.output_files:
        target = _output_target(root, output)
        if target.exists():
            raise OutputPathExistsError(target, "file")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise LocalWriteError(target.parent, "parent directory of output file", exc) from exc
    for output in action.output_directories:
        target = _output_target(root, output)
        if target.exists():
            raise OutputPathExistsError(target, "directory")
        try:
            target.mkdir(parents=True)
        except OSError as exc:
            raise LocalWriteError(target, "output directory", exc) from exc


def setup_replay(accessor: BlobTreeAccessor, action: Action, root: Path) -> ReplayPlan:
    """Materialize ``action``'s inputs under ``root`` and return how to rerun it.

    Container declaration errors are reported before anything is written. An
    action without a container image yields a plain local command line.
    """
    image = container_image(action.platform)
    if not image.ok and image.error is not ContainerImageError.NOT_SPECIFIED:
        assert image.error is not None
        raise ContainerSpecError(image.error, image.message)

    root = Path(root).resolve()
    command = fetch_command(accessor, action.command_digest)
    logger.debug("Materializing inputs %s into %s", action.input_root_digest, root)
    accessor.materialize_directory(root, action.input_root_digest)
    prepare_outputs(action, root)

    if image.image is not None:
        return ReplayPlan(root=root, command_line=docker_command(image.image, command, str(root)), containerized=True)
    return ReplayPlan(root=root, command_line=local_command(command, root), containerized=False)


__all__ = ["ReplayPlan", "local_command", "prepare_outputs", "setup_replay"]
