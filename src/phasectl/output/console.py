"""Rich Console factory and theme for phasectl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

PHASE_THEME = Theme(
    {
        "phase.ok": "bold green",
        "phase.error": "bold red",
        "phase.warning": "bold yellow",
        "phase.op": "bold cyan",
        "phase.key": "dim",
        "phase.id": "bold blue",
        "phase.path": "dim",
        "phase.title": "bold",
        "phase.name": "magenta",
        "phase.terminal": "bold magenta",
        "phase.type.feature": "green",
        "phase.type.enhancement": "cyan",
        "phase.type.bug": "red",
        "phase.type.concept": "yellow",
        "phase.bucket.mvp": "bold red",
        "phase.bucket.short": "yellow",
        "phase.bucket.long": "dim",
        "phase.review.pending": "yellow",
        "phase.review.approved": "green",
        "phase.review.rejected": "red",
    }
)

_TYPE_STYLES: dict[str, str] = {
    "feature": "phase.type.feature",
    "enhancement": "phase.type.enhancement",
    "bug": "phase.type.bug",
    "concept": "phase.type.concept",
}

_REVIEW_STYLES: dict[str, str] = {
    "pending": "phase.review.pending",
    "approved": "phase.review.approved",
    "rejected": "phase.review.rejected",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=PHASE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_type(item_type: str) -> str:
    """Return the Rich style name for a work item type."""
    return _TYPE_STYLES.get(item_type, "")


def style_for_review(status: str) -> str:
    return _REVIEW_STYLES.get(status, "")


def style_for_bucket(bucket: str | None) -> str:
    return f"phase.bucket.{bucket.lower()}" if bucket and bucket != "unscheduled" else "dim"
