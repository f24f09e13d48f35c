"""
Core folderize functionality: discovery, date resolution and the move pass.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress
from rich.table import Table

from .constants import IGNORED_DIRECTORIES, get_console, get_logger
from .file_operations import FileOperations
from .history import RunLog
from .metadata import extract
from .models import CandidateFile, ExtractedMetadata, FilingRecord, MoveOutcome, OutcomeStatus
from .planner import build_filing_record
from .progress import ProgressContext
from .stats import StatsManager
from .timestamps import resolve
from .utils import prune_empty_directories


class Folderizer:
    """Files everything under source into dest/YYYY/YYYY-MM by capture date."""

    def __init__(self, source: Path, dest: Path, log_dir: Path, dry_run: bool = False,
                 workers: int = 1, continuous: bool = False, verbose: bool = False,
                 console: Optional[Console] = None):
        self.source = Path(source)
        self.dest = Path(dest)
        self.log_dir = Path(log_dir)
        self.dry_run = dry_run
        self.workers = max(1, workers)
        self.continuous = continuous
        self.stats_manager = StatsManager()

        # Setup logging with separate console and file levels
        self.console = console or get_console()
        console_handler = RichHandler(console=self.console, rich_tracebacks=True)
        console_handler.setLevel(logging.INFO if verbose else logging.WARNING)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        logging.basicConfig(
            level=logging.DEBUG,  # Allow all messages to reach handlers
            format="%(message)s",
            datefmt="[%X]",
            handlers=[console_handler]
        )
        self.logger = get_logger()

        self.file_ops = FileOperations(dry_run=dry_run)

        # Per-session log file in the log directory
        self.run_log = RunLog(log_dir=self.log_dir, dry_run=dry_run)
        self.run_log.setup_session_logger(self.logger)

        self.logger.info(f"Folderize started: {self.source} -> {self.dest}")
        mode = 'DRY RUN' if dry_run else 'CONTINUOUS' if continuous else 'SINGLE'
        self.logger.info(f"Mode: {mode}")

    def close(self) -> None:
        """Release the session log file."""
        self.run_log.close()

    def find_candidate_files(self) -> List[CandidateFile]:
        """Find every regular file under source, hidden files included, in path order."""
        skip_dirs = set()
        for directory in (self.log_dir, self.dest):
            try:
                skip_dirs.add(directory.resolve())
            except OSError:
                continue

        paths = []
        for thisdir, subdirs, files in os.walk(self.source):
            subdirs[:] = [d for d in subdirs
                          if d not in IGNORED_DIRECTORIES
                          and (Path(thisdir) / d).resolve() not in skip_dirs]
            for name in files:
                file_path = Path(thisdir) / name
                if not file_path.is_symlink() and file_path.is_file():
                    paths.append(file_path)

        candidates = []
        for file_path in sorted(paths):
            try:
                candidates.append(CandidateFile.from_path(file_path))
            except OSError as e:
                self.logger.warning(f"Skipping {file_path} - cannot stat: {e}")
        return candidates

    def _extract_safely(self, candidate: CandidateFile) -> Optional[ExtractedMetadata]:
        try:
            return extract(candidate.path)
        except Exception as e:
            self.logger.error(f"Error reading metadata from {candidate.path}: {e}")
            return None

    def prepare_records(self, candidates: List[CandidateFile],
                        progress_ctx: Optional[ProgressContext] = None) -> List[FilingRecord]:
        """Extract metadata, resolve a filing date and plan a destination for each file."""
        progress_ctx = progress_ctx or ProgressContext(total=len(candidates))

        # Extraction is read-only, so it may fan out; map() keeps discovery order
        if self.workers > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                extracted = list(pool.map(self._extract_safely, candidates))
        else:
            extracted = None

        records = []
        for index, candidate in enumerate(candidates):
            self.logger.debug(f"Getting file info: {progress_ctx.position} {candidate.path}")
            metadata = extracted[index] if extracted is not None else self._extract_safely(candidate)
            try:
                resolved = resolve(candidate.stat, metadata)
                records.append(build_filing_record(candidate, resolved, self.dest))
            except Exception as e:
                self.logger.error(f'{progress_ctx.position} Error preparing "{candidate.path}" - {e}')
                self.stats_manager.increment_failed()
            progress_ctx.update(f"Reading: {candidate.name}")
            progress_ctx.advance()

        return records

    def process_records(self, records: List[FilingRecord],
                        progress_ctx: Optional[ProgressContext] = None) -> List[MoveOutcome]:
        """Execute planned moves one at a time, in order."""
        progress_ctx = progress_ctx or ProgressContext(total=len(records))
        outcomes = []
        for record in records:
            try:
                outcome = self.file_ops.execute(record)
            except Exception as e:
                outcome = MoveOutcome(record, OutcomeStatus.FAILED, f"unexpected error: {e}")

            self._report(outcome, progress_ctx.position)
            self.stats_manager.record_outcome(outcome)
            outcomes.append(outcome)
            progress_ctx.update(f"Moving: {record.name}")
            progress_ctx.advance()

        return outcomes

    def _report(self, outcome: MoveOutcome, position: str) -> None:
        """Write one line of the per-file audit trail."""
        record = outcome.record
        dated = (f"[{record.filing_date:%Y-%m-%d} from {record.provenance.value}"
                 f" ({record.date_field})]")
        if outcome.succeeded:
            verb = "Would move" if self.dry_run else "Moved"
            self.logger.info(f'{position} {verb} "{record.source}" to "{record.dest_path}" {dated}')
        elif outcome.skipped:
            self.logger.warning(f'{position} Skipped "{record.source}" - '
                                f'"{record.dest_path}" {outcome.error} {dated}')
        else:
            self.logger.error(f'{position} Error moving "{record.source}" to '
                              f'"{record.dest_path}" - {outcome.error} {dated}')

    def run_pass(self) -> List[MoveOutcome]:
        """Run one complete discovery, planning and move pass."""
        self.logger.info("Checking for files to folderize...")
        candidates = self.find_candidate_files()
        self.stats_manager.increment_passes()
        self.file_ops.clear_claims()

        if not candidates:
            self.logger.info("No files found in source directory")
            return []

        self.logger.info(f"Found {len(candidates)} files")
        with Progress(console=self.console, transient=self.continuous) as progress:
            read_task = progress.add_task("Getting files info...", total=len(candidates))
            records = self.prepare_records(
                candidates, ProgressContext(progress, read_task, total=len(candidates)))

            move_task = progress.add_task("Moving files...", total=len(records))
            outcomes = self.process_records(
                records, ProgressContext(progress, move_task, total=len(records)))

        pass_stats = StatsManager()
        pass_stats.increment_failed(len(candidates) - len(records))
        for outcome in outcomes:
            pass_stats.record_outcome(outcome)
        self.run_log.log_run_summary(self.source, self.dest, pass_stats, self.continuous)
        return outcomes

    def run_continuous(self, interval_seconds: float,
                       stop_event: Optional[threading.Event] = None,
                       max_passes: Optional[int] = None) -> int:
        """Repeat run_pass until stopped; returns the number of passes run.

        A stop request is only honored between passes.
        """
        stop_event = stop_event or threading.Event()
        passes = 0
        while True:
            self.run_pass()
            passes += 1
            if stop_event.is_set() or (max_passes is not None and passes >= max_passes):
                break
            self.logger.info(f"Waiting {interval_seconds / 60:g} minutes to check for more files.")
            if stop_event.wait(interval_seconds):
                break

        self.logger.info(f"Folderize stopped after {passes} passes")
        return passes

    def prune_source(self) -> List[Path]:
        """Remove empty folders left behind in the source tree.

        The destination and log folders are left alone when they sit inside it.
        """
        if self.dry_run:
            return []
        self.logger.info(f"Removing empty folders from {self.source}")
        removed = prune_empty_directories(self.source, keep=[self.dest, self.log_dir])
        self.stats_manager.add_pruned_dirs(len(removed))
        return removed

    def print_summary(self) -> None:
        """Print processing summary."""
        table = Table(title="Folderize Summary")
        table.add_column("Category", style="cyan")
        table.add_column("Count", style="green")

        table.add_row("Moved", str(self.stats_manager.get_moved()))
        table.add_row("  Dated by metadata", str(self.stats_manager.get_metadata_dated()))
        table.add_row("  Dated by file birth time", str(self.stats_manager.get_filesystem_dated()))
        table.add_row("Skipped (already exists)", str(self.stats_manager.get_skipped()))
        table.add_row("Failed", str(self.stats_manager.get_failed()))
        table.add_row("Empty Folders Removed", str(self.stats_manager.get_pruned_dirs()))

        # Format total size
        size_mb = self.stats_manager.get_total_size_mb()
        if size_mb > 1024:
            size_str = f"{size_mb/1024:.1f} GB"
        else:
            size_str = f"{size_mb:.1f} MB"
        table.add_row("Total Size", size_str)

        self.console.print(table)

        if self.stats_manager.has_errors():
            self.console.print(f"\n[red]Some files could not be moved; see {self.run_log.session_log}[/red]")
