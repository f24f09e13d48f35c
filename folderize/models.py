"""
Data records passed between discovery, date resolution, planning and moves.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple


class Provenance(str, Enum):
    """Where a filing date came from."""
    METADATA = "metadata"
    FILESYSTEM_BIRTH = "filesystem-birth"


class OutcomeStatus(str, Enum):
    """Result tag for a single move."""
    SUCCEEDED = "succeeded"
    SKIPPED_COLLISION = "skipped-collision"
    FAILED = "failed"


def _ns_to_datetime(value_ns: int) -> datetime:
    return datetime.fromtimestamp(value_ns / 1_000_000_000)


@dataclass(frozen=True)
class StatSnapshot:
    """Filesystem timestamps and size captured once at discovery."""
    birth_ns: int
    mtime_ns: int
    atime_ns: int
    size: int

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "StatSnapshot":
        """Build a snapshot, substituting mtime where the platform has no birth time."""
        birth_ns = getattr(st, "st_birthtime_ns", None)
        if birth_ns is None:
            birth = getattr(st, "st_birthtime", None)
            birth_ns = int(birth * 1_000_000_000) if birth is not None else st.st_mtime_ns
        return cls(birth_ns=birth_ns, mtime_ns=st.st_mtime_ns,
                   atime_ns=st.st_atime_ns, size=st.st_size)

    @property
    def birth_time(self) -> datetime:
        return _ns_to_datetime(self.birth_ns)

    @property
    def modified_time(self) -> datetime:
        return _ns_to_datetime(self.mtime_ns)

    @property
    def accessed_time(self) -> datetime:
        return _ns_to_datetime(self.atime_ns)


@dataclass(frozen=True)
class CandidateFile:
    """A file found under the source root."""
    path: Path
    stat: StatSnapshot

    @property
    def name(self) -> str:
        return self.path.name

    @classmethod
    def from_path(cls, path: Path) -> "CandidateFile":
        path = Path(path).absolute()
        return cls(path=path, stat=StatSnapshot.from_stat(path.stat()))


@dataclass(frozen=True)
class ExtractedMetadata:
    """Capture-time fields read from a file's embedded metadata."""
    dates: Dict[str, datetime] = field(default_factory=dict)
    errors: Tuple[str, ...] = ()  # Fields present but unparseable
    reader: str = "pillow"

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def get(self, field_name: str) -> Optional[datetime]:
        return self.dates.get(field_name)


@dataclass(frozen=True)
class ResolvedDate:
    """The filing date chosen for a file and the strategy that produced it."""
    date: datetime
    provenance: Provenance
    field: str


@dataclass(frozen=True)
class FilingRecord:
    """Everything the move executor needs to relocate one file."""
    source: Path
    filing_date: datetime
    provenance: Provenance
    date_field: str
    dest_dir: Path
    dest_path: Path
    stat: StatSnapshot

    @property
    def name(self) -> str:
        return self.source.name


@dataclass(frozen=True)
class MoveOutcome:
    """Result of executing one filing record."""
    record: FilingRecord
    status: OutcomeStatus
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED

    @property
    def skipped(self) -> bool:
        return self.status is OutcomeStatus.SKIPPED_COLLISION

    @property
    def failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED
