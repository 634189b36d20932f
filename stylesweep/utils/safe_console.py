"""Terminal-safe Console wrapper for Rich.

Wraps Rich's Console to sanitize Unicode icons on terminals that don't
support UTF-8, and adds the warning section the CLI prints after a report.
"""
from rich.console import Console
from rich.markup import escape
from typing import Any
from .logger import sanitize_for_terminal, is_utf8_capable, WarningLog


class SafeConsole(Console):
    """Console that sanitizes Unicode output for non-UTF-8 terminals."""

    def __init__(self, *args, **kwargs):
        """Initialize SafeConsole with UTF-8 capability detection.

        All arguments are passed through to Rich's Console.
        """
        self._needs_sanitization = not is_utf8_capable()

        if self._needs_sanitization:
            kwargs['legacy_windows'] = True

        super().__init__(*args, **kwargs)

    def print(self, *objects: Any, **kwargs) -> None:
        """Print with automatic Unicode sanitization.

        Args:
            *objects: Objects to print (same as Rich Console.print)
            **kwargs: Keyword arguments (same as Rich Console.print)
        """
        if self._needs_sanitization:
            objects = tuple(
                sanitize_for_terminal(obj) if isinstance(obj, str) else obj
                for obj in objects
            )
        super().print(*objects, **kwargs)

    def print_warnings(self, warnings: WarningLog, title: str = "Warnings") -> None:
        """Render collected run warnings as a distinct yellow section."""
        if not warnings:
            return
        self.print(f"\n[bold yellow]{title} ({len(warnings)}):[/bold yellow]")
        for entry in warnings:
            self.print(f"  [yellow]⚠[/yellow] {escape(entry.render())}")
