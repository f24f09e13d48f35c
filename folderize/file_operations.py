"""
Timestamp-preserving file moves with a skip-on-collision policy.
"""

import os
import shutil
from pathlib import Path
from typing import Iterable, Optional, Set

from .constants import OVERWRITABLE_NAMES, get_logger
from .models import FilingRecord, MoveOutcome, OutcomeStatus, StatSnapshot


class FileOperations:
    """Executes planned moves one file at a time.

    A move is a copy followed by an unlink so it works across devices. The
    original birth, modification and access times are written back onto the
    copy before the source is removed, and the source is only removed once
    the copy and its timestamps are in place.
    """

    def __init__(self, dry_run: bool = False,
                 overwritable_names: Optional[Iterable[str]] = None):
        self.dry_run = dry_run
        self.overwritable_names = frozenset(
            OVERWRITABLE_NAMES if overwritable_names is None else overwritable_names)
        # Destinations a dry run has already handed out in the current pass
        self._claimed: Set[Path] = set()
        self.logger = get_logger("file_operations")

    def is_overwritable(self, name: str) -> bool:
        """Check if a destination file with this name may be replaced."""
        return name in self.overwritable_names

    def clear_claims(self) -> None:
        """Forget dry-run destinations; called at the start of each pass."""
        self._claimed.clear()

    def ensure_directory(self, directory: Path) -> None:
        """Create directory and parents if needed, with dry-run support."""
        if not self.dry_run and not directory.is_dir():
            # Raises FileExistsError when a regular file holds the name
            directory.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def apply_timestamps(path: Path, stat: StatSnapshot) -> None:
        """Write the snapshot's birth, modification and access times onto path.

        There is no portable call for setting birth time. Setting the
        modification time earlier than the current birth time pulls the birth
        time back on filesystems that track it (APFS, HFS+), so the birth time
        is applied first as a modification time and then overwritten.
        """
        if stat.birth_ns < stat.mtime_ns:
            os.utime(path, ns=(stat.atime_ns, stat.birth_ns))
        os.utime(path, ns=(stat.atime_ns, stat.mtime_ns))

    def execute(self, record: FilingRecord) -> MoveOutcome:
        """Move record.source to record.dest_path. Never raises."""
        # Step 1: bucket directory
        try:
            self.ensure_directory(record.dest_dir)
        except OSError as e:
            return self._failed(record, f"could not create {record.dest_dir}: {e}")

        # Step 2: collision check against the destination as it is right now
        exists = record.dest_path.exists() or (self.dry_run and record.dest_path in self._claimed)
        if exists and not self.is_overwritable(record.name):
            return MoveOutcome(record, OutcomeStatus.SKIPPED_COLLISION,
                               "destination already exists")

        if self.dry_run:
            self._claimed.add(record.dest_path)
            return MoveOutcome(record, OutcomeStatus.SUCCEEDED)

        # Step 3: copy bytes
        try:
            shutil.copy2(str(record.source), str(record.dest_path))
        except (OSError, shutil.Error) as e:
            return self._failed(record, f"copy failed: {e}")

        # Step 4: restore original timestamps on the copy
        try:
            self.apply_timestamps(record.dest_path, record.stat)
        except OSError as e:
            return self._failed(record, f"could not restore timestamps on {record.dest_path}: {e}")

        # Step 5: remove the source, keeping the copy if that fails
        try:
            record.source.unlink()
        except OSError as e:
            return self._failed(record, f"copied but could not remove source: {e}")

        self.logger.debug(f"{record.source} -> {record.dest_path}")
        return MoveOutcome(record, OutcomeStatus.SUCCEEDED)

    def _failed(self, record: FilingRecord, message: str) -> MoveOutcome:
        self.logger.debug(f"Move failed for {record.source}: {message}")
        return MoveOutcome(record, OutcomeStatus.FAILED, message)
