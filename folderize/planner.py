"""
Destination planning: year / year-month buckets under the destination root.
"""

from datetime import datetime
from pathlib import Path
from typing import Tuple

from .models import CandidateFile, FilingRecord, ResolvedDate


def plan(dest_root: Path, filing_date: datetime, file_name: str) -> Tuple[Path, Path]:
    """Return (dest_dir, dest_path) as dest_root/YYYY/YYYY-MM/file_name.

    The year and month are read straight off filing_date; no timezone
    conversion is applied.
    """
    year = f"{filing_date.year:04d}"
    month = f"{filing_date.month:02d}"
    dest_dir = Path(dest_root) / year / f"{year}-{month}"
    return dest_dir, dest_dir / file_name


def build_filing_record(candidate: CandidateFile, resolved: ResolvedDate,
                        dest_root: Path) -> FilingRecord:
    """Combine a candidate and its resolved date into a planned move."""
    dest_dir, dest_path = plan(dest_root, resolved.date, candidate.name)
    return FilingRecord(
        source=candidate.path,
        filing_date=resolved.date,
        provenance=resolved.provenance,
        date_field=resolved.field,
        dest_dir=dest_dir,
        dest_path=dest_path,
        stat=candidate.stat,
    )
