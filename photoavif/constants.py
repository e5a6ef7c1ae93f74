"""
File extension constants and settings for photo conversion.
"""

import logging
import os
from typing import Optional

from rich.console import Console

PROGRAM = "photoavif"

# Input formats, matched case-insensitively
JPG_EXTENSIONS = (".jpg", ".jpeg")
PHOTO_EXTENSIONS = JPG_EXTENSIONS + (".png", ".tiff")

# Output format and fixed encoder settings
OUTPUT_EXTENSION = ".avif"
AVIF_QUALITY = 80   # 0-100
AVIF_SPEED = 6      # 0-10, higher is faster

# Target filename pattern: YYYY年MM月DD日 HH-mm-ss[(k)].avif
NAME_PATTERN = "{year:04d}年{month:02d}月{day:02d}日 {hour:02d}-{minute:02d}-{second:02d}"
MAX_SUFFIX = 10000

# Hidden in-progress files written next to their final location
PARTIAL_PREFIX = "."
PARTIAL_SUFFIX = ".partial"

_console: Optional[Console] = None


def get_console() -> Console:
    """Shared rich console for progress, logging and summaries."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def get_logger(name: str = PROGRAM) -> logging.Logger:
    return logging.getLogger(name)


def default_workers() -> int:
    """Worker pool size matching the available parallelism."""
    return os.cpu_count() or 1
