"""Report data for audit and clean runs.

Builds the structured (JSON) report and the groupings the CLI renders. No
printing happens here.
"""
import json
from collections import defaultdict
from pathlib import Path
from typing import Dict, List

from .analyzer.classifier import Confidence
from .analyzer.extractor import ClassDefinition
from .analyzer.reconciler import AnalysisResult
from .reaper.deletion_engine import DeletionReport


def build_report(result: AnalysisResult) -> Dict:
    """Build the structured report for one analysis run.

    Args:
        result: Completed analysis

    Returns:
        Dictionary with a 'summary' object and sorted name lists
    """
    accumulator = result.accumulator
    return {
        "summary": {
            "totalClasses": len(accumulator.all_names),
            "excludedClasses": len(accumulator.excluded_names),
            "usedClasses": len(result.used_names),
            "unusedClasses": len(result.unused_names),
            "confidenceLevel": result.threshold.value,
        },
        "unusedClasses": sorted(result.unused_names),
        "usedClasses": sorted(result.used_names),
    }


def write_report(report: Dict, output_path: str | Path) -> Path:
    """Write a report as indented JSON, creating parent directories."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(report, f, indent=2, ensure_ascii=False)
        f.write('\n')
    return output_path


def display_path(path: str | Path, root: Path) -> str:
    """Path relative to root when possible, else unchanged."""
    try:
        return str(Path(path).relative_to(root))
    except ValueError:
        return str(path)


def group_by_file(definitions: List[ClassDefinition], root: Path) -> Dict[str, List[ClassDefinition]]:
    """Group definitions by their stylesheet, keyed by display path."""
    grouped: Dict[str, List[ClassDefinition]] = defaultdict(list)
    for definition in definitions:
        grouped[display_path(definition.source_file, root)].append(definition)
    return {key: sorted(value, key=lambda d: d.name) for key, value in sorted(grouped.items())}


def confidence_breakdown(result: AnalysisResult) -> Dict[Confidence, int]:
    """Count unused definitions per tier, for tiers included by the threshold."""
    return {
        tier: len(definitions)
        for tier, definitions in result.reconciliation.unused_by_confidence.items()
        if tier.meets(result.threshold)
    }


def build_deletion_report(report: DeletionReport, root: Path) -> Dict:
    """Structured summary of a deletion batch, for JSON output."""
    return {
        "dryRun": report.dry_run,
        "blocksRemoved": report.blocks_removed,
        "files": [
            {
                "file": display_path(outcome.file, root),
                "removed": outcome.removed,
                "blocks": outcome.blocks_removed,
                "written": outcome.written,
                "skipped": outcome.skipped,
                "backup": str(outcome.backup.backup_path) if outcome.backup else None,
                "error": outcome.error,
            }
            for outcome in report.outcomes
        ],
    }
