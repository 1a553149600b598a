"""
Console output for the pairminer CLI.
Rich console factory, status messages, progress and the pipeline reporter.
"""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from pathlib import Path

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table


class Icons:
    """Unicode icons for CLI output."""

    CHECK = "✓"
    CROSS = "✗"
    WARNING = "⚠"
    INFO = "ℹ"


# ═══════════════════════════════════════════════════════════════════════════════
# CONSOLE FACTORY
# ═══════════════════════════════════════════════════════════════════════════════

def create_console(stderr: bool = False) -> Console:
    """Create a configured Rich console."""
    return Console(
        stderr=stderr,
        force_terminal=None,
        color_system="auto",
        highlight=True,
    )


console = create_console()
err_console = create_console(stderr=True)


# ═══════════════════════════════════════════════════════════════════════════════
# STATUS MESSAGES
# ═══════════════════════════════════════════════════════════════════════════════

def print_success(message: str, icon: str = Icons.CHECK) -> None:
    console.print(f"[green]{icon}[/green] {message}")


def print_error(message: str, icon: str = Icons.CROSS) -> None:
    err_console.print(f"[red]{icon}[/red] {message}")


def print_warning(message: str, icon: str = Icons.WARNING) -> None:
    console.print(f"[yellow]{icon}[/yellow] {message}")


def print_info(message: str, icon: str = Icons.INFO) -> None:
    console.print(f"[blue]{icon}[/blue] {message}")


# ═══════════════════════════════════════════════════════════════════════════════
# PROGRESS INDICATORS
# ═══════════════════════════════════════════════════════════════════════════════

def create_pipeline_progress(target: Console | None = None) -> Progress:
    """Create progress bars for the mining pipeline (stderr by default)."""
    return Progress(
        SpinnerColumn(style="cyan"),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=30, complete_style="cyan", finished_style="green"),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=target or err_console,
        transient=False,
    )


@dataclass
class PipelineStats:
    files: int = 0
    lines: int = 0
    records: int = 0
    dropped_lines: int = 0
    groups: int = 0
    duplicate_names: int = 0
    edges: int = 0
    positives: int = 0
    negatives: int = 0
    pairs_written: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class PipelineReporter:
    """Progress and counters shared by the reader, the workers and the writer.

    One instance is created per run and handed to every stage; all updates go
    through a lock so stages may report from any thread. ``progress`` is
    optional, tests run without one.
    """

    def __init__(self, progress: Progress | None = None) -> None:
        self.stats = PipelineStats()
        self._lock = threading.Lock()
        self._progress = progress
        self._files_task: TaskID | None = None
        self._groups_task: TaskID | None = None
        self._line_tasks: dict[Path, TaskID] = {}

    def start(self, total_files: int) -> None:
        if self._progress is None:
            return
        self._files_task = self._progress.add_task("Files", total=total_files)
        self._groups_task = self._progress.add_task("Groups", total=None)

    def file_started(self, path: Path) -> None:
        with self._lock:
            self.stats.files += 1
        if self._progress is not None:
            self._line_tasks[path] = self._progress.add_task(f"[IN] {path.name}", total=None)

    def file_finished(self, path: Path) -> None:
        if self._progress is None:
            return
        task = self._line_tasks.pop(path, None)
        if task is not None:
            self._progress.remove_task(task)
        if self._files_task is not None:
            self._progress.advance(self._files_task)

    def line_read(self, path: Path | None = None) -> None:
        with self._lock:
            self.stats.lines += 1
        if self._progress is not None and path in self._line_tasks:
            self._progress.advance(self._line_tasks[path])

    def record_decoded(self) -> None:
        with self._lock:
            self.stats.records += 1

    def line_dropped(self) -> None:
        with self._lock:
            self.stats.dropped_lines += 1

    def group_emitted(self) -> None:
        with self._lock:
            self.stats.groups += 1
        if self._progress is not None and self._groups_task is not None:
            self._progress.update(self._groups_task, total=self.stats.groups)

    def duplicates_found(self, count: int) -> None:
        if count:
            with self._lock:
                self.stats.duplicate_names += count

    def group_done(self, edges: int, positives: int, negatives: int) -> None:
        with self._lock:
            self.stats.edges += edges
            self.stats.positives += positives
            self.stats.negatives += negatives
        if self._progress is not None and self._groups_task is not None:
            self._progress.advance(self._groups_task)

    def pairs_written(self, count: int) -> None:
        with self._lock:
            self.stats.pairs_written += count


def print_pipeline_summary(stats: PipelineStats, out_path: Path | None = None) -> None:
    """Print a summary table of a mining run."""
    table = Table(title="Mining Summary", show_header=True, header_style="bold cyan")
    table.add_column("Category", style="dim")
    table.add_column("Count", justify="right")

    table.add_row("Files read", str(stats.files))
    table.add_row("Lines read", str(stats.lines))
    table.add_row("Records decoded", str(stats.records))
    table.add_row("Lines dropped", str(stats.dropped_lines))
    table.add_row("Groups", str(stats.groups))
    table.add_row("Duplicate names", str(stats.duplicate_names))
    table.add_row("", "")
    table.add_row("Call edges", str(stats.edges))
    table.add_row("[green]Positive pairs[/green]", str(stats.positives))
    table.add_row("[yellow]Negative pairs[/yellow]", str(stats.negatives))
    table.add_row("[bold]Pairs written[/bold]", str(stats.pairs_written))

    console.print(table)
    if out_path is not None:
        print_success(f"Wrote {stats.pairs_written} pairs to {out_path}")
