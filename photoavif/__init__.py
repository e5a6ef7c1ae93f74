"""
photoavif - Rename photos by capture time and convert them to AVIF.

Walks a directory tree, names every JPEG, PNG and TIFF photo after the moment
it was taken and replaces it with a smaller AVIF file in the same folder.

MIT License.
"""

__version__ = "1.0.0"


# Public API
from .cli import main
from .conversion import AvifConverter
from .core import PhotoConverter, find_source_files
from .job import FileJob, JobResult, JobStatus
from .naming import NameAllocator
from .results import BatchResult
from .timestamps import CaptureInstant, resolve_capture_instant

__all__ = [ "main", "AvifConverter", "PhotoConverter", "find_source_files", "FileJob", "JobResult",
            "JobStatus", "NameAllocator", "BatchResult", "CaptureInstant", "resolve_capture_instant" ]
