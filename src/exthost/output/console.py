"""Rich Console factory and theme for exthost output.

Consoles render into a StringIO buffer so renderers return plain strings.
In non-TTY environments (tests, pipes) Rich disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

EXT_THEME = Theme(
    {
        "ext.ok": "bold green",
        "ext.error": "bold red",
        "ext.warning": "bold yellow",
        "ext.op": "bold cyan",
        "ext.key": "dim",
        "ext.path": "dim",
        "ext.text": "bold",
        "ext.binding": "magenta",
        "ext.none": "dim italic",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    return Console(
        file=StringIO(),
        theme=EXT_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
