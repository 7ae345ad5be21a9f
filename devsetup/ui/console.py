"""
Console — user-facing status lines.

Logging is for diagnostics; this is what the person at the terminal
reads. Every user-visible line goes through one Console so tests can
point it at a buffer.
"""

from __future__ import annotations

import sys
from typing import TextIO

import click

_CLEAR_LINE = "\r\033[K"


class Console:
    """Colored, tagged output on a single stream."""

    def __init__(self, stream: TextIO | None = None, color: bool | None = None) -> None:
        self._stream = stream
        self.color = color

    @property
    def stream(self) -> TextIO:
        # Resolved lazily so CliRunner's swapped sys.stdout is honoured.
        return self._stream if self._stream is not None else sys.stdout

    def isatty(self) -> bool:
        try:
            return self.stream.isatty()
        except (AttributeError, ValueError):
            return False

    # ── Tagged lines ────────────────────────────────────────────

    def _tagged(self, tag: str, fg: str, message: str) -> None:
        click.secho(f"[{tag}]", fg=fg, nl=False, file=self.stream, color=self.color)
        click.echo(f" {message}", file=self.stream, color=self.color)

    def info(self, message: str) -> None:
        self._tagged("INFO", "blue", message)

    def success(self, message: str) -> None:
        self._tagged("SUCCESS", "green", message)

    def warn(self, message: str) -> None:
        self._tagged("WARNING", "yellow", message)

    def error(self, message: str) -> None:
        self._tagged("ERROR", "red", message)

    def prefixed(self, prefix: str, line: str) -> None:
        """Print one command-output line attributed to ``prefix``."""
        click.secho(f"[{prefix}]", dim=True, nl=False, file=self.stream, color=self.color)
        click.echo(f" {line}", file=self.stream, color=self.color)

    def labelled(self, label: str, text: str) -> None:
        """``label:`` dimmed, followed by ``text``."""
        click.secho(f"{label}:", dim=True, nl=False, file=self.stream, color=self.color)
        click.echo(f" {text}", file=self.stream, color=self.color)

    def echo(self, message: str = "", dim: bool = False) -> None:
        click.secho(message, dim=dim, file=self.stream, color=self.color)

    # ── Progress line ───────────────────────────────────────────

    def progress(self, text: str) -> None:
        """Redraw the single in-place progress line."""
        self.stream.write(f"{_CLEAR_LINE}{text}")
        self.stream.flush()

    def clear_progress(self) -> None:
        self.stream.write(_CLEAR_LINE)
        self.stream.flush()
