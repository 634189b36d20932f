"""Structured warning collection and terminal-safe text.

Library code never prints. Per-file problems are recorded in a WarningLog and
rendered by the CLI after the report, separate from the findings themselves.
"""
import sys
import locale
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


# Unicode to ASCII fallbacks for terminals without UTF-8 support
ICON_MAP = {
    '✓': '[OK]',
    '✔': '[OK]',
    '✗': '[FAIL]',
    '⚠': '[WARN]',
    '→': '->',
    '←': '<-',
    '…': '...',
    '•': '*',
    '│': '|',
    '─': '-',
}


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    if hasattr(sys.stdout, 'encoding') and sys.stdout.encoding:
        return sys.stdout.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except (LookupError, ValueError):
        return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can handle UTF-8 output."""
    return detect_terminal_encoding().replace('_', '-') in ('utf-8', 'utf8')


def sanitize_for_terminal(text: str) -> str:
    """Replace Unicode icons with ASCII equivalents if the terminal lacks UTF-8.

    Args:
        text: Text potentially containing Unicode icons

    Returns:
        str: Text safe for the current terminal
    """
    if is_utf8_capable():
        return text

    for unicode_char, ascii_replacement in ICON_MAP.items():
        text = text.replace(unicode_char, ascii_replacement)
    return text


@dataclass(frozen=True)
class RunWarning:
    """A recoverable, per-file problem encountered during a run."""
    category: str  # 'read', 'empty', 'backup', 'write', 'parse'
    message: str
    path: Optional[Path] = None

    def render(self) -> str:
        if self.path is None:
            return f"[{self.category}] {self.message}"
        return f"[{self.category}] {self.path}: {self.message}"


@dataclass
class WarningLog:
    """Append-only collection of RunWarning records for one run."""
    entries: List[RunWarning] = field(default_factory=list)

    def warn(self, category: str, message: str, path: str | Path | None = None) -> RunWarning:
        entry = RunWarning(category, message, Path(path) if path is not None else None)
        self.entries.append(entry)
        return entry

    def by_category(self, category: str) -> List[RunWarning]:
        return [w for w in self.entries if w.category == category]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)
