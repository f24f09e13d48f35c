"""
Run log management for folderize.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, TYPE_CHECKING

from .constants import LOG_FILE_PREFIX, RUNS_LOG_NAME

if TYPE_CHECKING:
    from .stats import StatsManager


class RunLog:
    """Owns the log directory: a per-session log file and the runs.log audit trail."""

    def __init__(self, log_dir: Path, dry_run: bool = False):
        self.log_dir = Path(log_dir)
        self.dry_run = dry_run
        self.runs_audit_log = self.log_dir / RUNS_LOG_NAME
        self.file_handler: Optional[logging.FileHandler] = None
        self._logger: Optional[logging.Logger] = None

        # Log directory is created on demand; raises OSError if that is impossible
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.session_log = self._session_log_path()

    def _session_log_path(self) -> Path:
        """Timestamped log file name, with a counter if one already exists."""
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        path = self.log_dir / f"{LOG_FILE_PREFIX}{timestamp}.log"
        counter = 1
        while path.exists():
            path = self.log_dir / f"{LOG_FILE_PREFIX}{timestamp}-{counter:02d}.log"
            counter += 1
        return path

    def setup_session_logger(self, logger: logging.Logger) -> None:
        """Configure logger to write to the session log file."""
        file_handler = logging.FileHandler(self.session_log, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        formatter = logging.Formatter(
            '%(asctime)s [%(name)s] %(levelname)s: %(message)s'
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        # Ensure logger level allows DEBUG messages to reach the file handler
        logger.setLevel(logging.DEBUG)
        self.file_handler = file_handler
        self._logger = logger

    def close(self) -> None:
        """Detach and close the session file handler."""
        if self.file_handler is None:
            return
        if self._logger is not None:
            self._logger.removeHandler(self.file_handler)
        self.file_handler.close()
        self.file_handler = None

    def log_run_summary(self, source: Path, dest: Path, stats_manager: "StatsManager",
                        continuous: bool) -> None:
        """Append a one-line pass summary to runs.log."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        if self.dry_run:
            mode = "DRY RUN"
        else:
            mode = "CONTINUOUS" if continuous else "SINGLE"
        status = "PARTIAL" if stats_manager.has_errors() else "SUCCESS"

        summary = (
            f"{timestamp} | {status} | {mode} | "
            f"Source: {source} | Dest: {dest} | "
            f"Moved: {stats_manager.get_moved()} "
            f"({stats_manager.get_metadata_dated()} by metadata, "
            f"{stats_manager.get_filesystem_dated()} by file date) | "
            f"Skipped: {stats_manager.get_skipped()} | Failed: {stats_manager.get_failed()} | "
            f"Size: {stats_manager.get_total_size_mb():.1f}MB | "
            f"Log: {self.session_log.name}\n"
        )

        with open(self.runs_audit_log, 'a', encoding='utf-8') as f:
            f.write(summary)
