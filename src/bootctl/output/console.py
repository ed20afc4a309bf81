"""Rich Console factory and theme for bootctl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

BOOT_THEME = Theme(
    {
        "boot.ok": "bold green",
        "boot.error": "bold red",
        "boot.warning": "bold yellow",
        "boot.op": "bold cyan",
        "boot.key": "dim",
        "boot.id": "bold blue",
        "boot.step.succeeded": "green",
        "boot.step.failed": "bold red",
        "boot.step.skipped": "yellow",
        "boot.step.not_run": "dim",
        "boot.alert.escalate": "bold white on red",
        "boot.alert.prominent": "bold yellow",
    }
)

_STATUS_STYLES: dict[str, str] = {
    "succeeded": "boot.step.succeeded",
    "failed": "boot.step.failed",
    "skipped": "boot.step.skipped",
    "not_run": "boot.step.not_run",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=BOOT_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    """Return the Rich style name for a step status."""
    return _STATUS_STYLES.get(status, "")
