"""
Batch result aggregation for photo conversion runs.
"""

from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

from .errors import ErrorKind
from .job import JobResult, JobStatus


@dataclass(frozen=True)
class FailureRecord:
    source: Path
    kind: ErrorKind
    reason: str


class BatchResult:
    """Counts successes and failures as jobs complete, in completion order."""

    def __init__(self, discovered: int = 0):
        self.discovered = discovered
        self.converted = 0
        self.failures: List[FailureRecord] = []
        self.completed: List[JobResult] = []
        self.bytes_in = 0
        self.bytes_out = 0
        self.interrupted = False
        self._by_kind: Counter = Counter()

    def record(self, result: JobResult) -> None:
        """Add one finished job to the totals."""
        self.completed.append(result)
        if result.status == JobStatus.CONVERTED:
            self.converted += 1
            self.bytes_in += result.bytes_in
            self.bytes_out += result.bytes_out
            return

        self._by_kind[result.error] += 1
        self.failures.append(FailureRecord(result.source, result.error, result.reason))

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def processed(self) -> int:
        return len(self.completed)

    @property
    def cleanup_failures(self) -> List[FailureRecord]:
        return [f for f in self.failures if f.kind == ErrorKind.CLEANUP_FAILED]

    def count(self, kind: ErrorKind) -> int:
        return self._by_kind[kind]

    def counts_by_kind(self) -> Dict[ErrorKind, int]:
        return {kind: self._by_kind[kind] for kind in ErrorKind if self._by_kind[kind]}

    def has_errors(self) -> bool:
        return bool(self.failures)

    def get_saved_bytes(self) -> int:
        return self.bytes_in - self.bytes_out

    def get_saved_percent(self) -> float:
        if not self.bytes_in:
            return 0.0
        return self.get_saved_bytes() / self.bytes_in * 100
