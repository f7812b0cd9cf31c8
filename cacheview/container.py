"""Container image extraction and ``docker run`` synthesis for actions.

The image comes from the action platform's ``container-image`` property and
must be a ``docker://`` reference. Validation returns a ``ContainerImage``
result; callers branch on its ``error`` kind.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .errors import ContainerSpecError
from .remote_model.types import Command, Platform
from .shell import command_line

CONTAINER_IMAGE_ENTRY_NAME = "container-image"
DOCKER_IMAGE_PREFIX = "docker://"
CONTAINER_PATH_SUFFIX = "-docker"


class ContainerImageError(enum.Enum):
    NOT_SPECIFIED = "not-specified"
    DUPLICATE_DECLARATION = "duplicate-declaration"
    MALFORMED_REFERENCE = "malformed-reference"


_ERROR_MESSAGES = {
    ContainerImageError.NOT_SPECIFIED: "No docker image specified in given Action.",
    ContainerImageError.DUPLICATE_DECLARATION: (
        f"Multiple entries for {CONTAINER_IMAGE_ENTRY_NAME} in action.Platform"
    ),
    ContainerImageError.MALFORMED_REFERENCE: (
        f"{CONTAINER_IMAGE_ENTRY_NAME}: Docker images must be stored in gcr.io with an image spec "
        f"in the form '{DOCKER_IMAGE_PREFIX}gcr.io/{{IMAGE_NAME}}'"
    ),
}


@dataclass(frozen=True)
class ContainerImage:
    """Validated image reference or the reason there is none."""

    image: str | None = None
    error: ContainerImageError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        return _ERROR_MESSAGES[self.error] if self.error is not None else ""


def container_image(platform: Platform) -> ContainerImage:
    """Find the single ``docker://`` image declared on ``platform``."""
    values = [prop.value for prop in platform.properties if prop.name == CONTAINER_IMAGE_ENTRY_NAME]
    if not values:
        return ContainerImage(error=ContainerImageError.NOT_SPECIFIED)
    if len(values) > 1:
        return ContainerImage(error=ContainerImageError.DUPLICATE_DECLARATION)
    value = values[0]
    if not value.startswith(DOCKER_IMAGE_PREFIX):
        return ContainerImage(error=ContainerImageError.MALFORMED_REFERENCE)
    return ContainerImage(image=value[len(DOCKER_IMAGE_PREFIX) :])


def container_path(path: str) -> str:
    """In-container mount point for host ``path``."""
    return path + CONTAINER_PATH_SUFFIX


def docker_command(image: str, command: Command, path: str) -> str:
    """Build a ``docker run`` line executing ``command`` with ``path`` mounted as its working directory."""
    mounted = container_path(path)
    elements = ["docker", "run", "-v", f"{path}:{mounted}", "-w", mounted]
    for var in command.environment_variables:
        elements.extend(["-e", f"{var.name}={var.value}"])
    elements.append(image)
    elements.extend(command.arguments)
    return command_line(elements)


def container_command(platform: Platform, command: Command, path: str) -> str:
    """Validate ``platform``'s image and build the ``docker run`` line, raising on any image error."""
    result = container_image(platform)
    if not result.ok:
        assert result.error is not None
        raise ContainerSpecError(result.error, result.message)
    assert result.image is not None
    return docker_command(result.image, command, path)


__all__ = [
    "CONTAINER_IMAGE_ENTRY_NAME",
    "DOCKER_IMAGE_PREFIX",
    "CONTAINER_PATH_SUFFIX",
    "ContainerImageError",
    "ContainerImage",
    "container_image",
    "container_path",
    "docker_command",
    "container_command",
]
