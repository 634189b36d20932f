"""In-place removal of unused class blocks from stylesheets.

Each file is cut into statements after every brace and semicolon, the same
units extraction works on, and rewritten with a two-state machine:

    COPY      the statement is kept
    SKIPPING  the statement belongs to a block being removed

A selector statement whose names are all scheduled for removal switches to
SKIPPING; brace accounting starts there and the block ends when the balance
returns to zero. Lines are rebuilt from their kept statements, so text
sharing a line with a removed block survives. Dry runs go through exactly
the same detection and only skip the final write.
"""
import re
import shutil
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from .backup import BackupManager, BackupRecord
from ..analyzer.extractor import (
    STATEMENT_BOUNDARY,
    ClassDefinition,
    ScannedLine,
    SelectorScanner,
    mask_non_selectors,
    strip_non_selectors,
)
from ..errors import BackupError, OperationCancelled
from ..utils.logger import WarningLog

LOOKAHEAD_LINES = 3
MAX_BLANK_RUN = 2

STATEMENT_END = re.compile(r'[{};]')

COPY = "copy"
SKIPPING = "skipping"

ConfirmCallback = Callable[[Path, List[ClassDefinition]], bool]


@dataclass
class DeletionOutcome:
    """Result of one file's deletion pass."""
    file: Path
    dry_run: bool
    removed: List[str] = field(default_factory=list)
    blocks_removed: int = 0
    changed: bool = False
    written: bool = False
    skipped: bool = False
    backup: Optional[BackupRecord] = None
    anomalies: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class DeletionReport:
    """Outcomes for a whole deletion batch."""
    dry_run: bool
    outcomes: List[DeletionOutcome] = field(default_factory=list)

    @property
    def changed_files(self) -> List[DeletionOutcome]:
        return [o for o in self.outcomes if o.changed]

    @property
    def written_files(self) -> List[DeletionOutcome]:
        return [o for o in self.outcomes if o.written]

    @property
    def blocks_removed(self) -> int:
        return sum(o.blocks_removed for o in self.outcomes if o.error is None)

    @property
    def errors(self) -> List[Tuple[Path, str]]:
        return [(o.file, o.error) for o in self.outcomes if o.error]


def _removable_names(scanned: Optional[ScannedLine], names: Set[str]) -> List[str]:
    """Names a selector line defines if every selector member is being removed.

    A comma list with any member that does not contain a removed class (a
    kept class, a tag, '&:hover', an unresolved BEM suffix) is left alone.
    """
    if scanned is None or not scanned.members:
        return []

    targets = []
    for member in scanned.members:
        hits = [name for name, _ in member.names if name in names]
        if not hits:
            return []
        for name in hits:
            if name not in targets:
                targets.append(name)
    return targets


def _split_statements(text: str) -> Tuple[List[str], List[str], List[int]]:
    """Cut text after every '{', '}' and ';', the way extraction does.

    Returns:
        Parallel lists of raw statements, cleaned statements and the 0-based
        line each statement sits on

    Raises:
        ValueError: If the raw and cleaned text disagree on a line's boundaries
    """
    raw_lines = text.split('\n')
    clean_lines = strip_non_selectors(text).split('\n')
    mask_lines = mask_non_selectors(text).split('\n')
    if not len(raw_lines) == len(clean_lines) == len(mask_lines):
        raise ValueError("Could not align cleaned lines with the source; file left unchanged")

    raw_parts: List[str] = []
    clean_parts: List[str] = []
    owners: List[int] = []
    for number, (raw, clean, mask) in enumerate(zip(raw_lines, clean_lines, mask_lines)):
        cleaned = STATEMENT_BOUNDARY.split(clean)
        cuts = [match.end() for match in STATEMENT_END.finditer(mask)]
        if len(mask) != len(raw) or len(cuts) != len(cleaned) - 1:
            raise ValueError(f"Could not split line {number + 1} into statements; file left unchanged")

        pieces = [raw[start:end] for start, end in zip([0] + cuts, cuts + [len(raw)])]
        if len(pieces) > 1 and not pieces[-1]:
            pieces.pop()
            cleaned.pop()
        raw_parts.extend(pieces)
        clean_parts.extend(cleaned)
        owners.extend([number] * len(pieces))

    return raw_parts, clean_parts, owners


def _opening_brace_ahead(clean_parts: List[str], owners: List[int], index: int) -> bool:
    last_line = owners[index] + LOOKAHEAD_LINES
    for position in range(index + 1, len(clean_parts)):
        if owners[position] > last_line:
            break
        text = clean_parts[position].strip()
        if text:
            return text.startswith('{')
    return False


def collapse_blank_lines(lines: List[str], limit: int = MAX_BLANK_RUN) -> List[str]:
    """Collapse runs of more than `limit` blank lines down to `limit`."""
    result = []
    run = 0
    for line in lines:
        if line.strip():
            run = 0
        else:
            run += 1
            if run > limit:
                continue
        result.append(line)
    return result


def remove_blocks(text: str, names: Iterable[str]) -> Tuple[str, List[str], int, List[str]]:
    """Remove the brace-balanced blocks of the given class names from text.

    Pure function: no file-system access. A block may start or end partway
    through a line; the text before its selector and after its closing brace
    is kept.

    Args:
        text: Stylesheet source
        names: Class names whose blocks should be removed

    Returns:
        Tuple of (new_text, removed_names, blocks_removed, anomalies)
    """
    names = set(names)
    if not names:
        return text, [], 0, []

    try:
        raw_parts, clean_parts, owners = _split_statements(text)
    except ValueError as e:
        return text, [], 0, [str(e)]

    line_count = owners[-1] + 1
    kept: List[List[str]] = [[] for _ in range(line_count)]
    cut = [False] * line_count

    scanner = SelectorScanner()
    removed: List[str] = []
    anomalies: List[str] = []
    blocks = 0

    state = COPY
    balance = 0
    awaiting_open = False
    block_start = 0
    last_kept = ""

    for index, raw_part in enumerate(raw_parts):
        clean = clean_parts[index].strip()
        line = owners[index]

        if state == SKIPPING:
            cut[line] = True
            opens = clean.count('{')
            balance += opens - clean.count('}')
            if awaiting_open and opens:
                awaiting_open = False
            if not awaiting_open and balance <= 0:
                state = COPY
            continue

        scanned = scanner.inspect(clean_parts, index)
        targets = _removable_names(scanned, names)

        # A selector continued from the previous line must stay with its list
        if targets and not last_kept.endswith(','):
            net = scanned.opens - scanned.closes
            if scanned.opens and net >= 0:
                removed.extend(n for n in targets if n not in removed)
                blocks += 1
                cut[line] = True
                scanner.pending = None
                if net > 0:
                    state, balance, awaiting_open = SKIPPING, net, False
                    block_start = line + 1
                continue
            if not scanned.opens and _opening_brace_ahead(clean_parts, owners, index):
                removed.extend(n for n in targets if n not in removed)
                blocks += 1
                cut[line] = True
                scanner.pending = None
                state, balance, awaiting_open = SKIPPING, 0, True
                block_start = line + 1
                continue

        scanner.commit(scanned)
        kept[line].append(raw_part)
        if clean:
            last_kept = clean

    if state == SKIPPING:
        anomalies.append(
            f"Block starting at line {block_start} was never closed; "
            f"removed through end of file"
        )

    if not blocks:
        return text, [], 0, anomalies

    output = []
    for line, pieces in enumerate(kept):
        rebuilt = ''.join(pieces)
        # Lines emptied by a removal go; leftovers after a closing brace stay
        if cut[line] and not rebuilt.strip():
            continue
        output.append(rebuilt)

    return '\n'.join(collapse_blank_lines(output)), removed, blocks, anomalies


class DeletionEngine:
    """Applies deletion plans to stylesheet files, one file at a time."""

    def __init__(self, backups: Optional[BackupManager] = None,
                 warnings: Optional[WarningLog] = None):
        """Initialize deletion engine.

        Args:
            backups: Backup manager (a manifest-less one if None)
            warnings: Log receiving per-file warnings (a new one if None)
        """
        self.backups = backups if backups is not None else BackupManager()
        self.warnings = warnings if warnings is not None else WarningLog()

    def apply(self, file_path: str | Path, definitions_to_remove: Iterable[ClassDefinition],
              dry_run: bool = True, create_backup: bool = True) -> DeletionOutcome:
        """Remove the blocks of the given definitions from one file.

        Never raises for per-file problems; they are reported on the outcome
        and in the warning log.

        Args:
            file_path: Stylesheet to rewrite
            definitions_to_remove: Unused definitions from this file
            dry_run: Compute the change without writing anything
            create_backup: Copy the original aside before writing

        Returns:
            DeletionOutcome
        """
        file_path = Path(file_path)
        outcome = DeletionOutcome(file=file_path, dry_run=dry_run)

        try:
            with open(file_path, 'r', encoding='utf-8', newline='') as f:
                original = f.read()
        except (OSError, UnicodeDecodeError) as e:
            outcome.error = f"Could not read file: {e}"
            self.warnings.warn('read', outcome.error, file_path)
            return outcome

        names = {d.name for d in definitions_to_remove}
        new_text, removed, blocks, anomalies = remove_blocks(original, names)
        outcome.removed = removed
        outcome.blocks_removed = blocks
        outcome.anomalies = anomalies
        outcome.changed = new_text != original
        for anomaly in anomalies:
            self.warnings.warn('parse', anomaly, file_path)

        # No-op guard: nothing matched in the live text
        if not outcome.changed or dry_run:
            return outcome

        if create_backup:
            try:
                outcome.backup = self.backups.backup(file_path)
            except BackupError as e:
                outcome.error = f"Backup failed, file left untouched: {e}"
                self.warnings.warn('backup', outcome.error, file_path)
                return outcome

        try:
            _write_atomic(file_path, new_text)
        except OSError as e:
            outcome.error = f"Write failed: {e}"
            if outcome.backup is not None:
                try:
                    self.backups.rollback(outcome.backup)
                except BackupError as rollback_error:
                    outcome.error += f"; rollback failed: {rollback_error}"
            self.warnings.warn('write', outcome.error, file_path)
            return outcome

        outcome.written = True
        return outcome

    def apply_plan(self, plan: Dict[str, List[ClassDefinition]], dry_run: bool = True,
                   create_backup: bool = True, confirm: Optional[ConfirmCallback] = None,
                   cancel: Optional[threading.Event] = None) -> DeletionReport:
        """Apply a per-file deletion plan sequentially.

        A failure in one file never stops the others. Files with an empty
        definition list are not touched.

        Args:
            plan: Mapping of file path to the definitions to remove from it
            dry_run: Compute changes without writing
            create_backup: Back up each file before rewriting it
            confirm: Called per file before a live write; False skips the file
            cancel: Event checked before each file

        Returns:
            DeletionReport

        Raises:
            OperationCancelled: If cancel is set at a file boundary
        """
        report = DeletionReport(dry_run=dry_run)

        for file_name, definitions in plan.items():
            if cancel is not None and cancel.is_set():
                raise OperationCancelled("Deletion cancelled")
            if not definitions:
                continue

            path = Path(file_name)
            if confirm is not None and not dry_run and not confirm(path, definitions):
                report.outcomes.append(DeletionOutcome(file=path, dry_run=dry_run, skipped=True))
                continue

            report.outcomes.append(self.apply(path, definitions, dry_run, create_backup))

        return report


def _write_atomic(path: Path, text: str):
    temp_path = path.with_name(f".{path.name}.stylesweep.tmp")
    try:
        with open(temp_path, 'w', encoding='utf-8', newline='') as f:
            f.write(text)
        shutil.copymode(path, temp_path)
        temp_path.replace(path)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise
