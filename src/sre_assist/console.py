"""Colored progress output shared by every alert command."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape


class Reporter:
    """Green for progress headers and success, yellow for steps, red for failures."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(highlight=False)

    def _print(self, style: str | None, message: str, end: str = "\n") -> None:
        text = escape(message)
        self.console.print(f"[{style}]{text}[/{style}]" if style else text, end=end)

    def plain(self, message: str = "") -> None:
        self._print(None, message)

    def success(self, message: str) -> None:
        self._print("green", message)

    def notice(self, message: str) -> None:
        self._print("yellow", message)

    def error(self, message: str) -> None:
        self._print("red", message)

    def warning(self, message: str) -> None:
        self._print(None, f"Warning: {message}")

    def prompt(self, message: str) -> None:
        self._print("green", message, end="")

    # Collector progress
    def collecting(self, what: str) -> None:
        self.notice(f"Collecting: {what}")

    def saved(self, filename: str) -> None:
        self.success(f"  ✓ Saved to {filename}\n")

    def failed(self, what: str) -> None:
        self.error(f"  ✗ Failed to collect {what}\n")
