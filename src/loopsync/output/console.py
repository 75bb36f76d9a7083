"""Rich Console factory and theme for loopsync output.

Consoles render to a StringIO buffer so every renderer keeps a
``-> str`` contract. Outside a terminal (tests, pipes) Rich drops color.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

LOOPSYNC_THEME = Theme(
    {
        "ls.ok": "bold green",
        "ls.error": "bold red",
        "ls.warning": "bold yellow",
        "ls.op": "bold cyan",
        "ls.key": "dim",
        "ls.id": "bold blue",
        "ls.version": "magenta",
        "ls.domain": "bold",
        "ls.match": "green",
        "ls.mismatch": "yellow",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=LOOPSYNC_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 100,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
