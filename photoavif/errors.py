"""
Per-file error categories for the conversion pipeline.
"""

from enum import Enum


class ErrorKind(Enum):
    TIMESTAMP_UNAVAILABLE = "TimestampUnavailable"
    DECODE_FAILED = "DecodeFailed"
    ENCODE_FAILED = "EncodeFailed"
    NAME_ALLOCATION_FAILED = "NameAllocationFailed"
    WRITE_FAILED = "WriteFailed"
    CLEANUP_FAILED = "CleanupFailed"

    def __str__(self) -> str:
        return self.value


class JobError(Exception):
    """Base error for a single file job; never fatal to the batch."""
    kind: ErrorKind


class TimestampUnavailable(JobError):
    kind = ErrorKind.TIMESTAMP_UNAVAILABLE


class DecodeFailed(JobError):
    kind = ErrorKind.DECODE_FAILED


class EncodeFailed(JobError):
    kind = ErrorKind.ENCODE_FAILED


class NameAllocationFailed(JobError):
    kind = ErrorKind.NAME_ALLOCATION_FAILED


class WriteFailed(JobError):
    kind = ErrorKind.WRITE_FAILED


class CleanupFailed(JobError):
    kind = ErrorKind.CLEANUP_FAILED
