"""stylesweep CLI - Find and remove unused CSS classes from SCSS/CSS stylesheets."""
import json
import signal
import threading
from contextlib import contextmanager, nullcontext
from pathlib import Path
from typing import List

import typer
import click
from rich.table import Table
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TaskProgressColumn,
    TimeElapsedColumn
)
from rich.markup import escape

from stylesweep.utils.safe_console import SafeConsole
from stylesweep.utils.logger import WarningLog
from stylesweep.analyzer.classifier import Confidence
from stylesweep.analyzer.extractor import ClassDefinition
from stylesweep.analyzer.reconciler import AnalysisResult, analyze
from stylesweep.config import CONFIDENCE_LEVELS, OUTPUT_FORMATS, Config, __version__, get_config
from stylesweep.errors import OperationCancelled, StyleSweepError
from stylesweep.reaper.backup import BackupManager
from stylesweep.reaper.deletion_engine import DeletionEngine, DeletionReport
from stylesweep.report import (
    build_deletion_report,
    build_report,
    confidence_breakdown,
    display_path,
    group_by_file,
    write_report,
)

app = typer.Typer(
    name="stylesweep",
    help="Find and remove unused CSS classes",
    add_completion=False
)
# Use SafeConsole for non-UTF-8 terminals
console = SafeConsole(force_terminal=True)
# Warnings go to stderr when stdout carries JSON
err_console = SafeConsole(stderr=True)

MANIFEST_DIR_NAME = ".stylesweep"
EXIT_CANCELLED = 130

PHASE_LABELS = {
    "extract": "[cyan]Phase 1/2: Extracting class selectors...",
    "usage": "[yellow]Phase 2/2: Scanning components for usage...",
}

CONFIDENCE_STYLES = {
    Confidence.HIGH: "green",
    Confidence.MEDIUM: "yellow",
    Confidence.LOW: "red",
}


def _load_config() -> Config:
    try:
        return get_config()
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


@contextmanager
def _interruptible():
    """Turn the first Ctrl+C into a cancel request checked at file boundaries.

    A second Ctrl+C interrupts immediately.
    """
    cancel = threading.Event()

    def _handler(signum, frame):
        if cancel.is_set():
            raise KeyboardInterrupt
        cancel.set()
        console.print("\n[yellow]Stopping after the current file... press Ctrl+C again to force quit.[/yellow]")

    # Signal handlers can only be installed from the main thread
    installed = threading.current_thread() is threading.main_thread()
    previous = signal.signal(signal.SIGINT, _handler) if installed else None
    try:
        yield cancel
    finally:
        if installed:
            signal.signal(signal.SIGINT, previous if previous is not None else signal.SIG_DFL)


def run_analysis(styles_root: Path, components_root: Path, patterns: List[str],
                 threshold: Confidence, cancel: threading.Event,
                 show_progress: bool = True) -> AnalysisResult:
    """Shared analysis logic for the audit and clean commands.

    Fatal conditions are reported on the console and end the process with
    exit code 1; a cancelled run exits with 130.
    """
    if show_progress:
        progress_ctx = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            transient=True
        )
    else:
        progress_ctx = nullcontext()

    tasks = {}

    try:
        with progress_ctx as progress:

            def on_progress(phase: str, done: int, total: int):
                if not show_progress:
                    return
                if phase not in tasks:
                    tasks[phase] = progress.add_task(PHASE_LABELS[phase], total=total)
                progress.update(tasks[phase], completed=done)

            return analyze(
                styles_root,
                components_root,
                exclude_patterns=patterns,
                threshold=threshold,
                cancel=cancel,
                on_progress=on_progress,
            )
    except OperationCancelled:
        console.print("[yellow]Cancelled - no files were changed[/yellow]")
        raise typer.Exit(EXIT_CANCELLED)
    except StyleSweepError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


def _resolve_options(styles_dir, components_dir, exclude, confidence, output_format):
    """Merge CLI options over the environment configuration."""
    config = _load_config()
    styles_root = Path(styles_dir or config.styles_dir).resolve()
    components_root = Path(components_dir or config.components_dir).resolve()
    patterns = config.exclude_patterns + [p for p in (exclude or []) if p]
    threshold = Confidence.parse(confidence or config.confidence)
    fmt = output_format or config.output_format
    return config, styles_root, components_root, patterns, threshold, fmt


def _print_summary(result: AnalysisResult):
    """Render the count table and the confidence breakdown."""
    accumulator = result.accumulator

    table = Table(title="Class Summary", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right", style="green")

    table.add_row("Stylesheets Scanned", str(result.stylesheet_count))
    table.add_row("Component Files Scanned", str(result.component_count))
    table.add_row("Total Classes", str(len(accumulator.all_names)))
    table.add_row("Excluded Classes", str(len(accumulator.excluded_names)))
    table.add_row("Used Classes", str(len(result.used_names)))
    table.add_row("Unused Classes", str(len(result.unused_names)))
    console.print(table)

    breakdown = confidence_breakdown(result)
    if not any(breakdown.values()):
        console.print("\n[green]✓ No unused classes found[/green]")
        return

    tiers = Table(title=f"Unused by Confidence (threshold: {result.threshold.value})")
    tiers.add_column("Confidence", style="cyan")
    tiers.add_column("Definitions", justify="right", style="yellow")
    for tier, count in breakdown.items():
        tiers.add_row(f"[{CONFIDENCE_STYLES[tier]}]{tier.value}[/{CONFIDENCE_STYLES[tier]}]", str(count))
    console.print(tiers)

    console.print("\n[bold yellow]Unused classes:[/bold yellow]")
    for name in sorted(result.unused_names):
        console.print(f"  • {escape(name)}")
    console.print("\n[dim]Run with --format detailed to see where each class is defined.[/dim]")


def _print_detailed(result: AnalysisResult):
    """Render one table per stylesheet with its unused definitions."""
    grouped = group_by_file(result.unused_definitions, result.styles_root)
    if not grouped:
        console.print("[green]✓ No unused classes found[/green]")
        return

    for file_name, definitions in grouped.items():
        table = Table(title=file_name)
        table.add_column("Class", style="cyan", no_wrap=True)
        table.add_column("Context", style="magenta")
        table.add_column("Confidence")
        for definition in definitions:
            style = CONFIDENCE_STYLES[definition.confidence]
            table.add_row(
                escape(definition.name),
                definition.context.value,
                f"[{style}]{definition.confidence.value}[/{style}]",
            )
        console.print(table)

    console.print(f"\n[bold yellow]Total:[/bold yellow] {len(result.unused_names)} unused classes "
                  f"in {len(grouped)} stylesheets")


def _print_run_warnings(warnings: WarningLog, json_mode: bool):
    if json_mode:
        err_console.print_warnings(warnings)
    else:
        console.print_warnings(warnings)


def _print_deletion(report: DeletionReport, styles_root: Path):
    """Render per-file deletion results and aggregated errors."""
    table = Table(title="Dry Run: Blocks to Remove" if report.dry_run else "Removed Blocks")
    table.add_column("Stylesheet", style="cyan", no_wrap=False)
    table.add_column("Classes", style="yellow")
    table.add_column("Blocks", justify="right", style="magenta")
    table.add_column("Status", style="green")

    for outcome in report.outcomes:
        if outcome.error:
            status = "[red]error[/red]"
        elif outcome.skipped:
            status = "[dim]skipped[/dim]"
        elif outcome.written:
            status = "written"
        elif outcome.changed:
            status = "would change"
        else:
            status = "[dim]no match[/dim]"
        table.add_row(
            escape(display_path(outcome.file, styles_root)),
            escape(", ".join(outcome.removed)) or "-",
            str(outcome.blocks_removed),
            status,
        )

    console.print(table)
    console.print(f"\n[bold yellow]Blocks:[/bold yellow] {report.blocks_removed} in "
                  f"{len(report.changed_files)} stylesheets")

    if report.errors:
        console.print(f"\n[bold red]Errors ({len(report.errors)}):[/bold red]")
        for path, message in report.errors:
            console.print(f"  [red]✗[/red] {escape(display_path(path, styles_root))}: {escape(message)}")


@app.command()
def audit(
    styles_dir: str = typer.Argument(None, help="Stylesheet root (default: STYLESWEEP_STYLES_DIR or src/styles)"),
    components_dir: str = typer.Argument(None, help="Component source root (default: STYLESWEEP_COMPONENTS_DIR or src)"),
    exclude: List[str] = typer.Option(None, "--exclude", "-e", help="Extra class-name glob to ignore (repeatable)"),
    confidence: str = typer.Option(
        None, "--confidence", "-c",
        click_type=click.Choice(CONFIDENCE_LEVELS, case_sensitive=False),
        help="Minimum confidence to report (inclusive)"
    ),
    output_format: str = typer.Option(
        None, "--format", "-f",
        click_type=click.Choice(OUTPUT_FORMATS, case_sensitive=False),
        help="Report format"
    ),
    output: str = typer.Option(None, "--output", "-o", help="Also write the JSON report to this file"),
):
    """Report class selectors that no component references."""
    _, styles_root, components_root, patterns, threshold, fmt = _resolve_options(
        styles_dir, components_dir, exclude, confidence, output_format
    )
    json_mode = fmt == "json"

    if not json_mode:
        console.print(f"[bold blue]Analyzing stylesheets:[/bold blue] {escape(str(styles_root))}")
        console.print(f"[bold blue]Against components:[/bold blue] {escape(str(components_root))}\n")

    with _interruptible() as cancel:
        result = run_analysis(styles_root, components_root, patterns, threshold, cancel,
                              show_progress=not json_mode)

    report = build_report(result)
    if json_mode:
        typer.echo(json.dumps(report, indent=2))
    elif fmt == "detailed":
        _print_detailed(result)
    else:
        _print_summary(result)

    if output:
        written = write_report(report, output)
        if not json_mode:
            console.print(f"\n[green]✓ Report written to {escape(str(written))}[/green]")

    _print_run_warnings(result.warnings, json_mode)


@app.command()
def clean(
    styles_dir: str = typer.Argument(None, help="Stylesheet root (default: STYLESWEEP_STYLES_DIR or src/styles)"),
    components_dir: str = typer.Argument(None, help="Component source root (default: STYLESWEEP_COMPONENTS_DIR or src)"),
    exclude: List[str] = typer.Option(None, "--exclude", "-e", help="Extra class-name glob to ignore (repeatable)"),
    confidence: str = typer.Option(
        None, "--confidence", "-c",
        click_type=click.Choice(CONFIDENCE_LEVELS, case_sensitive=False),
        help="Minimum confidence to remove (inclusive)"
    ),
    output_format: str = typer.Option(
        None, "--format", "-f",
        click_type=click.Choice(OUTPUT_FORMATS, case_sensitive=False),
        help="Report format"
    ),
    dry_run: bool = typer.Option(True, "--dry-run/--no-dry-run", help="Show what would be removed without writing"),
    backup: bool = typer.Option(None, "--backup/--no-backup", help="Back up each stylesheet before rewriting it"),
    interactive: bool = typer.Option(False, "--interactive", "-i", help="Confirm each stylesheet before rewriting it"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Remove the blocks of unused classes from the stylesheets."""
    config, styles_root, components_root, patterns, threshold, fmt = _resolve_options(
        styles_dir, components_dir, exclude, confidence, output_format
    )
    json_mode = fmt == "json"
    create_backup = config.backup_enabled if backup is None else backup

    if not json_mode:
        console.print(f"[bold blue]Analyzing stylesheets:[/bold blue] {escape(str(styles_root))}")
        console.print(f"[bold blue]Against components:[/bold blue] {escape(str(components_root))}\n")

    with _interruptible() as cancel:
        result = run_analysis(styles_root, components_root, patterns, threshold, cancel,
                              show_progress=not json_mode)

        plan = result.deletion_plan()
        if not plan:
            if json_mode:
                typer.echo(json.dumps(build_report(result), indent=2))
            else:
                console.print("[green]✓ No unused classes to remove[/green]")
            _print_run_warnings(result.warnings, json_mode)
            return

        if not json_mode and fmt == "detailed":
            _print_detailed(result)

        # Prompts go to stderr when stdout carries JSON
        ui = err_console if json_mode else console

        if not dry_run and not interactive and not yes:
            ui.print(f"\n[bold yellow]Warning:[/bold yellow] This will rewrite {len(plan)} stylesheets in place.")
            if not create_backup:
                ui.print("[bold yellow]Backups are disabled.[/bold yellow]")
            if not typer.confirm("Proceed with cleanup?", default=False, err=json_mode):
                ui.print("[red]Aborted[/red]")
                return

        def confirm_file(path: Path, definitions: List[ClassDefinition]) -> bool:
            names = ", ".join(sorted(d.name for d in definitions))
            ui.print(f"\n[bold cyan]{escape(display_path(path, styles_root))}[/bold cyan]: {escape(names)}")
            return typer.confirm("Remove these classes?", default=False, err=json_mode)

        engine = DeletionEngine(
            backups=BackupManager(styles_root / MANIFEST_DIR_NAME),
            warnings=result.warnings,
        )
        try:
            deletion = engine.apply_plan(
                plan,
                dry_run=dry_run,
                create_backup=create_backup,
                confirm=confirm_file if interactive else None,
                cancel=cancel,
            )
        except OperationCancelled:
            console.print("[yellow]Cancelled - stylesheets already rewritten keep their changes[/yellow]")
            raise typer.Exit(EXIT_CANCELLED)

    if json_mode:
        report = build_report(result)
        report["deletion"] = build_deletion_report(deletion, styles_root)
        typer.echo(json.dumps(report, indent=2))
    else:
        _print_deletion(deletion, styles_root)
        if dry_run:
            console.print("\n[bold blue]DRY RUN - No changes were made[/bold blue]")
        elif deletion.written_files and create_backup:
            console.print(f"\n[green]✓ Backups recorded in "
                          f"{escape(str(styles_root / MANIFEST_DIR_NAME))}; "
                          f"run 'stylesweep restore' to undo[/green]")

    _print_run_warnings(result.warnings, json_mode)


@app.command()
def restore(
    styles_dir: str = typer.Argument(None, help="Stylesheet root (default: STYLESWEEP_STYLES_DIR or src/styles)"),
    backup_id: str = typer.Option(None, "--id", help="Restore only this backup ID"),
):
    """Restore stylesheets from the backups recorded by 'clean'."""
    config = _load_config()
    styles_root = Path(styles_dir or config.styles_dir).resolve()

    if not styles_root.is_dir():
        console.print(f"[bold red]Error:[/bold red] Styles directory does not exist: {escape(str(styles_root))}")
        raise typer.Exit(1)

    manager = BackupManager(styles_root / MANIFEST_DIR_NAME)

    if backup_id:
        try:
            manager.restore(backup_id)
        except (ValueError, StyleSweepError) as e:
            console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
            raise typer.Exit(1)
        console.print(f"[green]✓ Restored backup {escape(backup_id)}[/green]")
        return

    restored, errors = manager.restore_all()
    if not restored and not errors:
        console.print("[yellow]No unrestored backups found[/yellow]")
        return

    if restored:
        table = Table(title="Restored Stylesheets")
        table.add_column("Stylesheet", style="cyan")
        table.add_column("Backup ID", style="magenta")
        for record in restored:
            table.add_row(escape(display_path(record["original_path"], styles_root)), record["id"])
        console.print(table)

    if errors:
        console.print(f"\n[bold red]Errors ({len(errors)}):[/bold red]")
        for message in errors:
            console.print(f"  [red]✗[/red] {escape(message)}")
        raise typer.Exit(1)


def _version_callback(value: bool):
    if value:
        console.print(f"stylesweep {__version__}", highlight=False)
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True,
                                 help="Show the version and exit"),
):
    """stylesweep - Find and remove unused CSS classes."""
    pass


if __name__ == "__main__":
    app()
