"""Textual class-usage detection across a component source tree.

A candidate name counts as used in a file when its literal text occurs within
MARKER_WINDOW characters after a class-attribute marker (className=, class=,
clsx(, styles., ...). This is a co-occurrence heuristic, not an AST lookup.

Known limitation: matching is by substring, so a candidate that is a prefix of
a longer class ('btn' inside 'btn-primary') is reported as used. That hides
some genuinely unused classes (false negatives in the unused report) and is
kept deliberately rather than guessed away.
"""
import re
import threading
from bisect import bisect_right
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Set

from .files import find_components, read_text
from ..errors import OperationCancelled
from ..utils.logger import WarningLog

MARKER_WINDOW = 200

CLASS_MARKERS = re.compile(
    r'className|class\s*=|class\s*:|:class|classList|classNames?\s*\('
    r'|clsx\s*\(|\bcx\s*\(|\bcn\s*\(|styles\s*(?:\.|\[)'
)


@dataclass(frozen=True)
class UsageRecord:
    """Evidence that a class name appears in a component file."""
    class_name: str
    file: str


def _marker_spans(text: str) -> List[int]:
    return [m.end() for m in CLASS_MARKERS.finditer(text)]


def name_used_in_text(name: str, text: str, marker_ends: Optional[List[int]] = None) -> bool:
    """True if name occurs within MARKER_WINDOW characters after a class marker."""
    if marker_ends is None:
        marker_ends = _marker_spans(text)
    if not marker_ends:
        return False

    start = text.find(name)
    while start != -1:
        # nearest marker ending at or before the occurrence
        index = bisect_right(marker_ends, start)
        if index and start - marker_ends[index - 1] <= MARKER_WINDOW:
            return True
        start = text.find(name, start + 1)
    return False


class UsageScanner:
    """Scans component files for textual references to candidate class names."""

    def __init__(self, warnings: Optional[WarningLog] = None,
                 cancel: Optional[threading.Event] = None):
        """Initialize scanner.

        Args:
            warnings: Log receiving per-file read warnings (a new one if None)
            cancel: Event checked at every file boundary
        """
        self.warnings = warnings if warnings is not None else WarningLog()
        self.cancel = cancel
        self.files_scanned = 0

    def scan_files(self, candidate_names: Iterable[str], files: Iterable[Path],
                   on_file: Optional[Callable[[Path], None]] = None) -> Set[UsageRecord]:
        """Check every candidate against every file.

        Args:
            candidate_names: Class names to look for
            files: Component files to read
            on_file: Optional progress callback, called after each file

        Returns:
            One UsageRecord per (name, file) hit

        Raises:
            OperationCancelled: If the cancel event is set at a file boundary
        """
        names = sorted(set(candidate_names))
        records: Set[UsageRecord] = set()

        for path in files:
            if self.cancel is not None and self.cancel.is_set():
                raise OperationCancelled("Usage scan cancelled")

            text = read_text(path, self.warnings)
            if text is not None:
                self.files_scanned += 1
                marker_ends = _marker_spans(text)
                for name in names:
                    if name_used_in_text(name, text, marker_ends):
                        records.add(UsageRecord(name, str(path)))

            if on_file is not None:
                on_file(path)

        return records

    def find_usage(self, candidate_names: Iterable[str], source_root: str | Path) -> Set[UsageRecord]:
        """Scan all component files under source_root."""
        return self.scan_files(candidate_names, find_components(source_root))


def find_usage(candidate_names: Iterable[str], source_root: str | Path,
               warnings: Optional[WarningLog] = None) -> Set[UsageRecord]:
    """Return usage records for candidate names found under source_root."""
    return UsageScanner(warnings).find_usage(candidate_names, source_root)
