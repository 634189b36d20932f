"""Usage reconciliation and the analysis pipeline.

Results from many independently parsed files are aggregated in an explicit
AnalysisAccumulator that is passed through the pipeline, never held in
module state:

    stylesheets -> extract -> exclude -> threshold -> candidates
    candidates + component tree -> usage records -> reconcile -> result
"""
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set

from .classifier import Confidence
from .exclusions import ExclusionFilter
from .extractor import ClassDefinition, extract
from .files import find_components, find_stylesheets, read_text
from .usage_scanner import UsageRecord, UsageScanner
from ..errors import MissingRootError, NoStylesheetsError, OperationCancelled
from ..utils.logger import WarningLog

ProgressCallback = Callable[[str, int, int], None]


@dataclass
class Reconciliation:
    """Partition of the candidate set into used and unused names."""
    used: Set[str]
    unused: Set[str]
    unused_by_confidence: Dict[Confidence, List[ClassDefinition]] = field(default_factory=dict)


def reconcile(candidates: Iterable[str], usage_records: Iterable[UsageRecord],
              definitions: Iterable[ClassDefinition] = ()) -> Reconciliation:
    """Set-difference candidates against usage evidence.

    unused = candidates - {distinct names in usage_records}. Unused findings
    are grouped by tier per definition record, so a name defined in two files
    with different confidences appears once per file.

    Args:
        candidates: Candidate class names
        usage_records: Usage evidence from the component tree
        definitions: Definitions to partition (only those with unused names)

    Returns:
        Reconciliation with used/unused names and per-tier definitions
    """
    candidates = set(candidates)
    seen = {record.class_name for record in usage_records}

    used = candidates & seen
    unused = candidates - seen

    by_confidence: Dict[Confidence, List[ClassDefinition]] = {tier: [] for tier in Confidence}
    for definition in definitions:
        if definition.name in unused:
            by_confidence[definition.confidence].append(definition)
    for tier in by_confidence:
        by_confidence[tier].sort(key=lambda d: (d.source_file, d.name))

    return Reconciliation(used=used, unused=unused, unused_by_confidence=by_confidence)


@dataclass
class AnalysisAccumulator:
    """Per-run aggregation across stylesheets; append-only during scanning."""
    definitions_by_file: Dict[str, List[ClassDefinition]] = field(default_factory=dict)
    all_names: Set[str] = field(default_factory=set)
    excluded_names: Set[str] = field(default_factory=set)
    candidates: Set[str] = field(default_factory=set)
    usage_records: Set[UsageRecord] = field(default_factory=set)
    warnings: WarningLog = field(default_factory=WarningLog)

    def add_file(self, source_file: str, definitions: List[ClassDefinition],
                 exclusion: ExclusionFilter, threshold: Confidence):
        """Record one file's definitions, dropping excluded names."""
        kept = []
        for definition in definitions:
            self.all_names.add(definition.name)
            if exclusion(definition.name):
                self.excluded_names.add(definition.name)
                continue
            kept.append(definition)
            if definition.confidence.meets(threshold):
                self.candidates.add(definition.name)
        if kept:
            self.definitions_by_file[source_file] = kept

    def iter_definitions(self) -> Iterable[ClassDefinition]:
        for definitions in self.definitions_by_file.values():
            yield from definitions


@dataclass
class AnalysisResult:
    """Everything one analysis run produced."""
    styles_root: Path
    components_root: Path
    threshold: Confidence
    accumulator: AnalysisAccumulator
    reconciliation: Reconciliation
    stylesheet_count: int = 0
    component_count: int = 0

    @property
    def warnings(self) -> WarningLog:
        return self.accumulator.warnings

    @property
    def used_names(self) -> Set[str]:
        return self.reconciliation.used

    @property
    def unused_names(self) -> Set[str]:
        return self.reconciliation.unused

    @property
    def unused_definitions(self) -> List[ClassDefinition]:
        """Unused definitions at or above the threshold, ordered by file then name."""
        found = [
            d for tier, definitions in self.reconciliation.unused_by_confidence.items()
            if tier.meets(self.threshold)
            for d in definitions
        ]
        return sorted(found, key=lambda d: (d.source_file, d.name))

    def deletion_plan(self) -> Dict[str, List[ClassDefinition]]:
        """Per-file unused definitions; files with nothing to remove are omitted."""
        plan: Dict[str, List[ClassDefinition]] = defaultdict(list)
        for definition in self.unused_definitions:
            plan[definition.source_file].append(definition)
        return dict(plan)


def _check_cancel(cancel: Optional[threading.Event]):
    if cancel is not None and cancel.is_set():
        raise OperationCancelled("Analysis cancelled")


def analyze(styles_root: str | Path, components_root: str | Path,
            exclude_patterns: Iterable[str] = (),
            threshold: Confidence | str = Confidence.MEDIUM,
            cancel: Optional[threading.Event] = None,
            on_progress: Optional[ProgressCallback] = None) -> AnalysisResult:
    """Run extraction, filtering, usage scanning and reconciliation.

    Args:
        styles_root: Directory containing .scss/.css files
        components_root: Directory containing component sources
        exclude_patterns: Glob patterns for names that are never reported
        threshold: Minimum confidence tier (inclusive)
        cancel: Event checked at every file boundary
        on_progress: Callback(phase, completed, total) for UI updates

    Returns:
        AnalysisResult

    Raises:
        MissingRootError: If either root directory does not exist
        NoStylesheetsError: If no stylesheet files are found
        OperationCancelled: If cancel is set during the run
    """
    styles_root = Path(styles_root).resolve()
    components_root = Path(components_root).resolve()
    threshold = Confidence.parse(threshold)

    if not styles_root.is_dir():
        raise MissingRootError("Styles", styles_root)
    if not components_root.is_dir():
        raise MissingRootError("Components", components_root)

    stylesheets = find_stylesheets(styles_root)
    if not stylesheets:
        raise NoStylesheetsError(styles_root)

    accumulator = AnalysisAccumulator()
    exclusion = ExclusionFilter(exclude_patterns)

    for index, path in enumerate(stylesheets, 1):
        _check_cancel(cancel)
        text = read_text(path, accumulator.warnings)
        if text is not None:
            definitions = extract(text, path, scoring_path=path.relative_to(styles_root))
            accumulator.add_file(str(path), definitions, exclusion, threshold)
        if on_progress is not None:
            on_progress("extract", index, len(stylesheets))

    components = find_components(components_root)
    scanner = UsageScanner(accumulator.warnings, cancel=cancel)
    progress_state = {"done": 0}

    def _advance(_path):
        progress_state["done"] += 1
        if on_progress is not None:
            on_progress("usage", progress_state["done"], len(components))

    accumulator.usage_records = scanner.scan_files(accumulator.candidates, components, on_file=_advance)

    reconciliation = reconcile(
        accumulator.candidates,
        accumulator.usage_records,
        accumulator.iter_definitions(),
    )

    return AnalysisResult(
        styles_root=styles_root,
        components_root=components_root,
        threshold=threshold,
        accumulator=accumulator,
        reconciliation=reconciliation,
        stylesheet_count=len(stylesheets),
        component_count=len(components),
    )
