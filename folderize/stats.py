"""
Statistics tracking and management for folderize runs.
"""

from typing import Dict

from .models import MoveOutcome, Provenance


class StatsManager:
    """Encapsulates statistics tracking across one or more passes."""

    def __init__(self):
        self._stats = {
            'moved': 0,
            'skipped': 0,
            'failed': 0,
            'metadata_dated': 0,
            'filesystem_dated': 0,
            'total_size': 0,
            'pruned_dirs': 0,
            'passes': 0
        }

    def increment_failed(self, count: int = 1) -> None:
        """Increment failure count for files that could not be prepared or moved."""
        self._stats['failed'] += count

    def increment_passes(self) -> None:
        self._stats['passes'] += 1

    def add_pruned_dirs(self, count: int) -> None:
        self._stats['pruned_dirs'] += count

    def record_outcome(self, outcome: MoveOutcome) -> None:
        """Record a move outcome, counting size and date source for successful moves."""
        if outcome.skipped:
            self._stats['skipped'] += 1
            return
        if outcome.failed:
            self.increment_failed()
            return

        self._stats['moved'] += 1
        self._stats['total_size'] += outcome.record.stat.size
        if outcome.record.provenance is Provenance.METADATA:
            self._stats['metadata_dated'] += 1
        else:
            self._stats['filesystem_dated'] += 1

    def get_stats(self) -> Dict[str, int]:
        """Get a copy of current statistics."""
        return self._stats.copy()

    def get_total_files(self) -> int:
        """Get total count of files handled, whatever the outcome."""
        return self._stats['moved'] + self._stats['skipped'] + self._stats['failed']

    def get_total_size_mb(self) -> float:
        return self._stats['total_size'] / (1024 * 1024)

    def has_errors(self) -> bool:
        """Check if any files failed to move."""
        return self._stats['failed'] > 0

    # Individual stat getters for reporting
    def get_moved(self) -> int:
        return self._stats['moved']

    def get_skipped(self) -> int:
        return self._stats['skipped']

    def get_failed(self) -> int:
        return self._stats['failed']

    def get_metadata_dated(self) -> int:
        return self._stats['metadata_dated']

    def get_filesystem_dated(self) -> int:
        return self._stats['filesystem_dated']

    def get_pruned_dirs(self) -> int:
        return self._stats['pruned_dirs']

    def get_passes(self) -> int:
        return self._stats['passes']
