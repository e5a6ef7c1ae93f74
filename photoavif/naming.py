"""
Collision-free target filename allocation shared by concurrent jobs.
"""

import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Set

from .constants import MAX_SUFFIX, NAME_PATTERN, OUTPUT_EXTENSION, get_logger
from .errors import NameAllocationFailed


def format_base_name(when: datetime) -> str:
    """Format a capture time as YYYY年MM月DD日 HH-mm-ss."""
    return NAME_PATTERN.format(year=when.year, month=when.month, day=when.day,
                               hour=when.hour, minute=when.minute, second=when.second)


def format_target_name(when: datetime, counter: int = 0) -> str:
    """Full output filename, with a (k) suffix for counter >= 1."""
    suffix = f"({counter})" if counter else ""
    return f"{format_base_name(when)}{suffix}{OUTPUT_EXTENSION}"


class NameAllocator:
    """Hands out unique output names per directory for the lifetime of a batch.

    Each directory has its own lock and claim table. A name is free when it is
    neither on disk nor claimed by another job in this run, and the check and
    the claim happen inside one critical section, so two jobs resolving to the
    same capture time can never receive the same name. Lower suffixes are
    always tried first.
    """

    def __init__(self, max_suffix: int = MAX_SUFFIX):
        self.max_suffix = max_suffix
        self.logger = get_logger("photoavif.naming")
        self._registry_lock = threading.Lock()
        self._locks: Dict[Path, threading.Lock] = {}
        self._claims: Dict[Path, Set[str]] = {}

    def _directory_lock(self, directory: Path) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(directory)
            if lock is None:
                lock = self._locks[directory] = threading.Lock()
                self._claims[directory] = set()
            return lock

    def allocate(self, when: datetime, directory: Path) -> str:
        """Claim and return the lowest free name for this capture time."""
        with self._directory_lock(directory):
            claimed = self._claims[directory]
            for counter in range(self.max_suffix + 1):
                name = format_target_name(when, counter)
                if name in claimed or (directory / name).exists():
                    continue
                claimed.add(name)
                self.logger.debug(f"Claimed {directory / name}")
                return name

        raise NameAllocationFailed(
            f"more than {self.max_suffix} files named {format_base_name(when)} in {directory}"
        )

    def release(self, directory: Path, name: str) -> None:
        """Give back a claim whose output was never written."""
        with self._directory_lock(directory):
            self._claims[directory].discard(name)
        self.logger.debug(f"Released {directory / name}")

    def claimed(self, directory: Path) -> Set[str]:
        """Snapshot of the names claimed in a directory so far."""
        with self._directory_lock(directory):
            return set(self._claims[directory])
