"""
Single-file conversion job: timestamp, decode, encode, name, write, delete.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from .constants import get_logger
from .conversion import AvifConverter, decode_image
from .errors import DecodeFailed, ErrorKind, JobError
from .file_operations import FileOperations
from .naming import NameAllocator
from .timestamps import CaptureInstant, resolve_capture_instant


class JobState(Enum):
    DISCOVERED = "discovered"
    TIMESTAMP_RESOLVED = "timestamp_resolved"
    DECODED = "decoded"
    ENCODED = "encoded"
    WRITTEN = "written"
    ORIGINAL_DELETED = "original_deleted"
    FAILED = "failed"


class JobStatus(Enum):
    CONVERTED = "converted"
    FAILED = "failed"
    CLEANUP_FAILED = "cleanup_failed"


# Category for an unexpected error, keyed by the last state reached
STAGE_FAILURES: Dict[JobState, ErrorKind] = {
    JobState.DISCOVERED: ErrorKind.TIMESTAMP_UNAVAILABLE,
    JobState.TIMESTAMP_RESOLVED: ErrorKind.DECODE_FAILED,
    JobState.DECODED: ErrorKind.ENCODE_FAILED,
    JobState.ENCODED: ErrorKind.WRITE_FAILED,
    JobState.WRITTEN: ErrorKind.CLEANUP_FAILED,
}


@dataclass
class JobResult:
    """Outcome of one file job."""
    source: Path
    status: JobStatus
    state: JobState
    output: Optional[Path] = None
    error: Optional[ErrorKind] = None
    reason: str = ""
    instant: Optional[CaptureInstant] = None
    bytes_in: int = 0
    bytes_out: int = 0
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.status == JobStatus.CONVERTED


class FileJob:
    """Converts one source file in place and reports a tagged result.

    The original is only deleted after the output has been written and
    synced. Any failure before that leaves the original untouched and no
    output behind; a failed delete afterwards is reported as CleanupFailed.
    No exception escapes run().
    """

    def __init__(self, source: Path, allocator: NameAllocator, converter: AvifConverter,
                 file_ops: FileOperations):
        self.source = source
        self.allocator = allocator
        self.converter = converter
        self.file_ops = file_ops
        self.state = JobState.DISCOVERED
        self.instant: Optional[CaptureInstant] = None
        self.output: Optional[Path] = None
        self.bytes_in = 0
        self.bytes_out = 0
        self.logger = get_logger("photoavif.job")

    def run(self) -> JobResult:
        try:
            self._convert()
        except JobError as e:
            return self._fail(e.kind, str(e))
        except Exception as e:
            kind = STAGE_FAILURES.get(self.state, ErrorKind.WRITE_FAILED)
            self.logger.exception(f"Unexpected error processing {self.source}")
            return self._fail(kind, f"{type(e).__name__}: {e}")

        self.logger.info(f"{self.source} -> {self.output}")
        return self._result(JobStatus.CONVERTED)

    def _advance(self, state: JobState) -> None:
        self.logger.debug(f"{self.source.name}: {self.state.value} -> {state.value}")
        self.state = state

    def _convert(self) -> None:
        directory = self.source.parent
        try:
            data = self.source.read_bytes()
        except OSError as e:
            raise DecodeFailed(f"could not read source: {e}") from e
        self.bytes_in = len(data)

        self.instant = resolve_capture_instant(self.source, data)
        self._advance(JobState.TIMESTAMP_RESOLVED)

        decoded = decode_image(data, self.source)
        del data
        self._advance(JobState.DECODED)

        encoded = self.converter.encode(decoded)
        del decoded
        self.bytes_out = len(encoded)
        self._advance(JobState.ENCODED)

        name = self.allocator.allocate(self.instant.timestamp, directory)
        try:
            self.file_ops.write_output(encoded, directory / name)
        except BaseException:
            self.allocator.release(directory, name)
            raise
        self.output = directory / name
        self._advance(JobState.WRITTEN)

        self.file_ops.delete_original(self.source)
        self._advance(JobState.ORIGINAL_DELETED)

    def _fail(self, kind: ErrorKind, reason: str) -> JobResult:
        if kind == ErrorKind.CLEANUP_FAILED:
            self.logger.error(f"{self.source}: {reason}; both {self.source.name} "
                              f"and {self.output.name if self.output else 'the output'} exist")
            return self._result(JobStatus.CLEANUP_FAILED, kind, reason)

        self.logger.error(f"{kind} for {self.source}: {reason}")
        self.state = JobState.FAILED
        return self._result(JobStatus.FAILED, kind, reason)

    def _result(self, status: JobStatus, error: Optional[ErrorKind] = None,
                reason: str = "") -> JobResult:
        return JobResult(source=self.source, status=status, state=self.state,
                         output=self.output, error=error, reason=reason,
                         instant=self.instant, bytes_in=self.bytes_in,
                         bytes_out=self.bytes_out, dry_run=self.file_ops.dry_run)
