"""POSIX shell quoting for replayable command lines.

``escape_shell`` leaves strings made only of safe ASCII characters alone and
wraps everything else in single quotes, so each input survives a shell as
exactly one literal argument.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .remote_model.types import Command

_SAFE_RE = re.compile(r"[A-Za-z0-9@%\-_+:,./]+")
_QUOTE_ESCAPE = "'\\''"


def escape_shell(arg: str) -> str:
    """Quote ``arg`` so a POSIX shell reads it back as one identical word."""
    if not arg:
        # An unquoted empty string would vanish as an argument.
        return "''"
    if _SAFE_RE.fullmatch(arg):
        return arg
    return "'" + arg.replace("'", _QUOTE_ESCAPE) + "'"


def command_line(args: Iterable[str]) -> str:
    """Escape and space-join ``args`` into one shell command line."""
    return " ".join(escape_shell(arg) for arg in args)


def render_command(command: Command) -> str:
    """Render ``command`` as env assignments with continuations, then its arguments."""
    lines = [f"{escape_shell(var.name)}={escape_shell(var.value)} \\" for var in command.environment_variables]
    lines.append("  " + command_line(command.arguments))
    return "\n".join(lines)


__all__ = ["escape_shell", "command_line", "render_command"]
