"""Terminal text sanitization and shell-command highlighting.

Blob contents printed to the terminal have control bytes escaped so they
cannot move the cursor or ring the bell. Replay command lines are colorized
with Pygments when writing to a color-capable terminal.
"""

from __future__ import annotations

import re
from typing import TextIO

from pygments import highlight as pygments_highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import BashLexer
from pygments.styles import get_all_styles, get_style_by_name
from pygments.util import ClassNotFound

DEFAULT_STYLE = "monokai"

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_FORMATTERS: dict[str, TerminalFormatter] = {}
_VALID_STYLES: set[str] = set()


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(source) is None:
        return source

    out: list[str] = []
    for ch in source:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(ch)
            continue
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


def available_style_names() -> list[str]:
    return sorted(get_all_styles())


def normalize_style(style: str | None) -> str:
    """Return ``style`` if Pygments knows it, else the default style."""
    if not style:
        return DEFAULT_STYLE
    if style in _VALID_STYLES:
        return style
    try:
        get_style_by_name(style)
    except ClassNotFound:
        return DEFAULT_STYLE
    _VALID_STYLES.add(style)
    return style


def _formatter_for_style(style: str) -> TerminalFormatter:
    formatter = _FORMATTERS.get(style)
    if formatter is None:
        formatter = TerminalFormatter(style=style)
        _FORMATTERS[style] = formatter
    return formatter


def highlight_shell(text: str, style: str | None = DEFAULT_STYLE) -> str:
    """Colorize shell ``text`` with ANSI escapes, keeping its line structure."""
    style = normalize_style(style)
    rendered = pygments_highlight(text, BashLexer(), _formatter_for_style(style))
    # Pygments always terminates output with a newline.
    if not text.endswith("\n") and rendered.endswith("\n"):
        rendered = rendered[:-1]
    return rendered


def use_color(stream: TextIO, no_color: bool) -> bool:
    """Return whether ANSI color should be written to ``stream``."""
    if no_color:
        return False
    isatty = getattr(stream, "isatty", None)
    try:
        return bool(isatty()) if isatty is not None else False
    except ValueError:
        return False


__all__ = [
    "DEFAULT_STYLE",
    "sanitize_terminal_text",
    "available_style_names",
    "normalize_style",
    "highlight_shell",
    "use_color",
]
