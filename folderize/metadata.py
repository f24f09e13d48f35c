"""
Embedded capture-time metadata extraction using Pillow, or exiftool for
formats Pillow cannot open.
"""

import json
import re
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import Image, UnidentifiedImageError
from PIL.ExifTags import IFD, Base

from .constants import exiftool_available, get_logger
from .models import ExtractedMetadata
from .timestamps import (CREATE_DATE, DATE_TIME_DIGITIZED, DATE_TIME_ORIGINAL, MODIFY_DATE,
                         parse_exif_datetime)


logger = get_logger("metadata")

_XMP_CREATE_DATE = re.compile(rb'xmp:CreateDate(?:="|>)([^"<]+)')

# exiftool -G1 tag names mapped to field names, in lookup priority order
EXIFTOOL_TAGS: Dict[str, Tuple[str, ...]] = {
    DATE_TIME_ORIGINAL: ("ExifIFD:DateTimeOriginal", "XMP-exif:DateTimeOriginal"),
    DATE_TIME_DIGITIZED: ("ExifIFD:CreateDate", "XMP-exif:DateTimeDigitized"),
    MODIFY_DATE: ("IFD0:ModifyDate", "XMP-xmp:ModifyDate", "QuickTime:ModifyDate"),
    CREATE_DATE: ("XMP-xmp:CreateDate", "QuickTime:CreateDate", "Keys:CreationDate"),
}


def _text(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    return str(value).strip("\x00 ") or None


def _collect(raw: Dict[str, Optional[str]]) -> Tuple[Dict, List[str]]:
    """Parse raw field strings, separating valid dates from parse errors."""
    dates = {}
    errors = []
    for field_name, value in raw.items():
        if value is None:
            continue
        parsed = parse_exif_datetime(value)
        if parsed is None:
            errors.append(f"{field_name}={value!r}")
        else:
            dates[field_name] = parsed
    return dates, errors


def read_with_pillow(path: Path) -> Optional[ExtractedMetadata]:
    """Read EXIF and XMP date fields with Pillow; raises if Pillow cannot open the file."""
    with Image.open(path) as img:
        exif = img.getexif()
        xmp = img.info.get("xmp")

    if not exif and not xmp:
        logger.debug(f"No embedded metadata in {path}")
        return None

    exif_ifd = exif.get_ifd(IFD.Exif) if exif else {}
    raw = {
        DATE_TIME_ORIGINAL: _text(exif_ifd.get(Base.DateTimeOriginal) or exif.get(Base.DateTimeOriginal)),
        DATE_TIME_DIGITIZED: _text(exif_ifd.get(Base.DateTimeDigitized) or exif.get(Base.DateTimeDigitized)),
        MODIFY_DATE: _text(exif.get(Base.DateTime)),
        CREATE_DATE: None,
    }
    if isinstance(xmp, (bytes, str)):
        if isinstance(xmp, str):
            xmp = xmp.encode("utf-8")
        match = _XMP_CREATE_DATE.search(xmp)
        if match:
            raw[CREATE_DATE] = _text(match.group(1))

    dates, errors = _collect(raw)
    return ExtractedMetadata(dates=dates, errors=tuple(errors), reader="pillow")


def read_with_exiftool(path: Path) -> Optional[ExtractedMetadata]:
    """Read date tags through exiftool's JSON output."""
    try:
        result = subprocess.run([
            "exiftool",
            "-q",
            "-json",
            "-G1",
            "-DateTimeOriginal",
            "-CreateDate",
            "-ModifyDate",
            "-CreationDate",
            str(path)],
            capture_output=True, text=True, check=True, timeout=30
        )
        tags = json.loads(result.stdout)[0]
    except subprocess.CalledProcessError as e:
        logger.debug(f"exiftool failed for {path}: {e}")
        return None
    except subprocess.TimeoutExpired:
        logger.debug(f"exiftool timed out for {path}")
        return None
    except OSError as e:
        logger.debug(f"Could not run exiftool for {path}: {e}")
        return None
    except (json.JSONDecodeError, IndexError) as e:
        logger.debug(f"Unreadable exiftool output for {path}: {e}")
        return None

    raw = {}
    for field_name, tag_names in EXIFTOOL_TAGS.items():
        raw[field_name] = next((_text(tags[t]) for t in tag_names if t in tags), None)

    if not any(raw.values()):
        logger.debug(f"No date tags reported by exiftool for {path}")
        return None

    dates, errors = _collect(raw)
    return ExtractedMetadata(dates=dates, errors=tuple(errors), reader="exiftool")


def extract(path: Path) -> Optional[ExtractedMetadata]:
    """Extract capture-time metadata from a file.

    Returns None when the format is unsupported or the file carries no
    embedded metadata. Failures are logged at DEBUG and never raised; callers
    treat None as the normal case for non-image files.
    """
    path = Path(path)
    try:
        metadata = read_with_pillow(path)
    except UnidentifiedImageError:
        if not exiftool_available:
            logger.debug(f"Unsupported format, no metadata read: {path}")
            return None
        return read_with_exiftool(path)
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        # Pillow raises these for truncated or corrupt image data
        logger.debug(f"Error parsing metadata for {path}: {e}")
        return None

    if metadata and metadata.has_errors:
        logger.debug(f"Unparseable date fields in {path}: {', '.join(metadata.errors)}")
    return metadata
