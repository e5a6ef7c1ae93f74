"""Capture time resolution from EXIF tags and filesystem metadata."""

import io
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

import exifread

from .constants import get_logger
from .errors import TimestampUnavailable


logger = get_logger("photoavif.timestamps")

# exifread logs "File format not recognized" for PNG/TIFF without EXIF
logging.getLogger("exifread").setLevel(logging.ERROR)

CAPTURE_TAG = "EXIF DateTimeOriginal"

# EXIF (2024:03:05 10:19:11) and ISO-like (2024-03-05T10:19:11) forms; any
# fractional seconds or timezone suffix after the seconds field is ignored
_DATETIME_PATTERN = re.compile(
    r'^\s*(\d{4})[-:](\d{2})[-:](\d{2})[T ](\d{2}):(\d{2}):(\d{2})'
    r'(?:\.\d+)?(?:Z|[+-]\d{2}:?\d{2})?\s*$'
)


class TimestampSource(Enum):
    EXIF = "exif"
    FILESYSTEM = "filesystem"


@dataclass(frozen=True)
class CaptureInstant:
    """The single authoritative capture time of one source file."""
    timestamp: datetime
    source: TimestampSource


def parse_exif_datetime(text: str) -> Optional[datetime]:
    """Parse an EXIF or ISO 8601 date-time string into a naive datetime.

    Returns None when the string is not a valid calendar date-time, which
    covers both garbage and the all-zero placeholder some cameras write.
    """
    match = _DATETIME_PATTERN.match(text.replace('\x00', ''))
    if not match:
        return None

    try:
        return datetime(*(int(part) for part in match.groups()))
    except ValueError:
        return None


def read_exif_datetime(data: bytes) -> Optional[datetime]:
    """Return the DateTimeOriginal tag from image bytes, or None if absent."""
    try:
        tags = exifread.process_file(io.BytesIO(data), details=False)
    except Exception as e:
        logger.debug(f"Unreadable EXIF block: {e}")
        return None

    tag = tags.get(CAPTURE_TAG) if tags else None
    if tag is None:
        return None

    value = tag.values if isinstance(tag.values, str) else str(tag)
    timestamp = parse_exif_datetime(value)
    if timestamp is None:
        logger.debug(f"Malformed {CAPTURE_TAG} value: {value!r}")
    return timestamp


def filesystem_timestamp(stat_result: os.stat_result) -> Optional[datetime]:
    """Creation time where the platform records it, modification time otherwise."""
    raw = getattr(stat_result, "st_birthtime", None)
    if raw is None:
        raw = getattr(stat_result, "st_mtime", None)
    if raw is None:
        return None

    try:
        return datetime.fromtimestamp(raw).replace(microsecond=0)
    except (OverflowError, OSError, ValueError):
        return None


def resolve_capture_instant(path: Path, data: bytes,
                            stat_result: Optional[os.stat_result] = None) -> CaptureInstant:
    """Resolve the capture instant: EXIF tag first, filesystem time second."""
    exif_date = read_exif_datetime(data)
    if exif_date is not None:
        logger.debug(f"Capture time from EXIF: {path} = {exif_date}")
        return CaptureInstant(exif_date, TimestampSource.EXIF)

    if stat_result is None:
        try:
            stat_result = path.stat()
        except OSError as e:
            raise TimestampUnavailable(f"no capture tag and no filesystem metadata: {e}") from e

    fs_date = filesystem_timestamp(stat_result)
    if fs_date is None:
        raise TimestampUnavailable("no capture tag and no usable filesystem timestamp")

    logger.debug(f"Capture time from filesystem: {path} = {fs_date}")
    return CaptureInstant(fs_date, TimestampSource.FILESYSTEM)
