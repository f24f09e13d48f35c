"""Filing-date resolution from embedded metadata and filesystem timestamps."""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from .constants import get_logger
from .models import ExtractedMetadata, Provenance, ResolvedDate, StatSnapshot


logger = get_logger("timestamps")

# Metadata field names, independent of the tool that read them
DATE_TIME_ORIGINAL = "DateTimeOriginal"
DATE_TIME_DIGITIZED = "DateTimeDigitized"
MODIFY_DATE = "ModifyDate"
CREATE_DATE = "CreateDate"
FILE_BIRTH_TIME = "FileBirthTime"

METADATA_FIELDS = (DATE_TIME_ORIGINAL, DATE_TIME_DIGITIZED, MODIFY_DATE, CREATE_DATE)

_DATETIME_PATTERN = re.compile(
    r'(\d{4}[-:]\d{2}[-:]\d{2})[T ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?\s*(Z|[+-]\d{2}:?\d{2})?'
)


def parse_exif_datetime(timestamp_str: str) -> Optional[datetime]:
    """Parse an EXIF or ISO 8601 date-time string.

    Handles raw EXIF (2021:05:03 14:22:01), ISO 8601 (2021-05-03T14:22:01)
    and either form with fractional seconds or a UTC offset. A value with an
    offset is returned aware in that offset; otherwise it is returned naive.
    Returns None for anything that is not a real calendar date, including the
    all-zero placeholder some cameras write.
    """
    if not timestamp_str:
        return None

    match = _DATETIME_PATTERN.match(timestamp_str.strip())
    if not match:
        return None

    date_part = match.group(1).replace(':', '-')
    time_part = match.group(2)
    fractional_part = match.group(3)
    timezone_part = match.group(4)

    try:
        parsed = datetime.strptime(f"{date_part} {time_part}", "%Y-%m-%d %H:%M:%S")
    except ValueError:
        return None

    if fractional_part:
        parsed = parsed.replace(microsecond=int(fractional_part.ljust(6, '0')[:6]))

    if timezone_part:
        if timezone_part == 'Z':
            return parsed.replace(tzinfo=timezone.utc)
        tz_str = timezone_part.replace(':', '')
        sign = 1 if tz_str[0] == '+' else -1
        offset = timedelta(hours=int(tz_str[1:3]), minutes=int(tz_str[3:5]))
        parsed = parsed.replace(tzinfo=timezone(sign * offset))

    return parsed


@dataclass(frozen=True)
class DateStrategy:
    """One named step of the filing-date fallback chain."""
    name: str
    provenance: Provenance
    getter: Callable[[StatSnapshot, Optional[ExtractedMetadata]], Optional[datetime]]

    def __call__(self, stat: StatSnapshot,
                 metadata: Optional[ExtractedMetadata]) -> Optional[datetime]:
        return self.getter(stat, metadata)


def _metadata_field(field_name: str) -> DateStrategy:
    def getter(stat, metadata):
        if metadata is None:
            return None
        return metadata.get(field_name)
    return DateStrategy(field_name, Provenance.METADATA, getter)


DATE_STRATEGIES: List[DateStrategy] = [
    _metadata_field(DATE_TIME_ORIGINAL),
    _metadata_field(DATE_TIME_DIGITIZED),
    _metadata_field(MODIFY_DATE),
    _metadata_field(CREATE_DATE),
    DateStrategy(FILE_BIRTH_TIME, Provenance.FILESYSTEM_BIRTH,
                 lambda stat, metadata: stat.birth_time),
]


def resolve(stat: StatSnapshot, metadata: Optional[ExtractedMetadata],
            strategies: Optional[List[DateStrategy]] = None) -> ResolvedDate:
    """Return the first date produced by the strategy chain."""
    for strategy in strategies or DATE_STRATEGIES:
        value = strategy(stat, metadata)
        if value is not None:
            return ResolvedDate(date=value, provenance=strategy.provenance, field=strategy.name)

    # The birth-time strategy always answers, so only a custom chain gets here
    logger.debug("No strategy produced a date; using file birth time")
    return ResolvedDate(date=stat.birth_time, provenance=Provenance.FILESYSTEM_BIRTH,
                        field=FILE_BIRTH_TIME)
