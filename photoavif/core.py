"""
Core batch conversion functionality.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, List, Optional

from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress
from rich.table import Table

from .constants import PHOTO_EXTENSIONS, default_workers, get_console, get_logger
from .conversion import AvifConverter
from .errors import ErrorKind
from .file_operations import FileOperations
from .job import FileJob, JobResult
from .naming import NameAllocator
from .progress import ProgressContext
from .results import BatchResult


def find_source_files(root: Path) -> List[Path]:
    """Find every supported photo under root, recursively."""
    files = []
    for file_path in root.rglob("*"):
        if file_path.suffix.lower() in PHOTO_EXTENSIONS and file_path.is_file():
            files.append(file_path)
    return sorted(files)


def format_size(num_bytes: int) -> str:
    size_mb = num_bytes / (1024 * 1024)
    if abs(size_mb) > 1024:
        return f"{size_mb/1024:.1f} GB"
    return f"{size_mb:.1f} MB"


class PhotoConverter:
    """Main class for converting a photo tree to date-named AVIF files."""

    def __init__(self, root: Path, workers: Optional[int] = None, dry_run: bool = False,
                 verbose: bool = False, converter: Optional[AvifConverter] = None):
        self.root = root
        self.workers = workers or default_workers()
        self.dry_run = dry_run

        # Setup logging with separate console and logger levels
        self.console = get_console()
        self.logger = get_logger()
        if not any(isinstance(h, RichHandler) for h in self.logger.handlers):
            console_handler = RichHandler(console=self.console, rich_tracebacks=True,
                                          show_path=False)
            console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
            self.logger.addHandler(console_handler)
        for handler in self.logger.handlers:
            if isinstance(handler, RichHandler):
                handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
        self.logger.setLevel(logging.DEBUG)

        self.allocator = NameAllocator()
        self.converter = converter or AvifConverter()
        self.file_ops = FileOperations(dry_run=dry_run)
        self.result = BatchResult()

        self.logger.info(f"Starting conversion: {self.root}")
        self.logger.info(f"Mode: {'DRY RUN' if self.dry_run else 'CONVERT'}, workers: {self.workers}")

    def find_source_files(self) -> List[Path]:
        files = find_source_files(self.root)
        self.result.discovered = len(files)
        self.logger.info(f"Found {len(files)} photos under {self.root}")
        return files

    def create_job(self, source: Path) -> FileJob:
        return FileJob(source, allocator=self.allocator, converter=self.converter,
                       file_ops=self.file_ops)

    def run_job(self, source: Path) -> JobResult:
        return self.create_job(source).run()

    def process_files(self, files: List[Path],
                      progress_ctx: Optional[ProgressContext] = None) -> BatchResult:
        """Convert all files on the worker pool and aggregate their results."""
        self.logger.info(f"Starting to process {len(files)} files")

        # If no progress context provided, create our own
        if progress_ctx is None:
            with Progress(console=self.console, transient=True) as progress:
                task = progress.add_task("Converting photos...", total=len(files))
                return self._process_files_with_progress(files, ProgressContext(progress, task))
        return self._process_files_with_progress(files, progress_ctx)

    def _process_files_with_progress(self, files: List[Path],
                                     progress_ctx: ProgressContext) -> BatchResult:
        if not files:
            return self.result

        recorded = set()
        executor = ThreadPoolExecutor(max_workers=self.workers,
                                      thread_name_prefix="photoavif")
        futures: Dict[Future, Path] = {}
        try:
            for path in files:
                futures[executor.submit(self.run_job, path)] = path
            for future in as_completed(futures):
                recorded.add(future)
                self._record(future, progress_ctx)
        except KeyboardInterrupt:
            # Stop dispatching, let running jobs finish, keep their results
            self.result.interrupted = True
            self.logger.warning("Interrupted: waiting for running conversions to finish")
            executor.shutdown(wait=True, cancel_futures=True)
            for future in futures:
                if future not in recorded and future.done() and not future.cancelled() \
                        and future.exception() is None:
                    self._record(future, progress_ctx)
        finally:
            executor.shutdown(wait=True)

        return self.result

    def _record(self, future: Future, progress_ctx: ProgressContext) -> None:
        result = future.result()
        self.result.record(result)
        progress_ctx.job_finished(result)

    def print_summary(self) -> None:
        """Print processing summary."""
        result = self.result
        title = "Conversion Summary (dry run)" if self.dry_run else "Conversion Summary"
        table = Table(title=title)
        table.add_column("Category", style="cyan")
        table.add_column("Count", style="green")

        table.add_row("Photos Found", str(result.discovered))
        table.add_row("Converted", str(result.converted))
        table.add_row("Failed", str(result.failed))
        for kind, count in result.counts_by_kind().items():
            table.add_row(f"  {kind}", str(count))
        if result.interrupted:
            table.add_row("Not Started", str(result.discovered - result.processed))

        table.add_row("Original Size", format_size(result.bytes_in))
        table.add_row("AVIF Size", format_size(result.bytes_out))
        table.add_row("Space Saved", f"{format_size(result.get_saved_bytes())} "
                                     f"({result.get_saved_percent():.1f}%)")

        # Print summary table
        self.console.print(table)

        untouched = [f for f in result.failures if f.kind != ErrorKind.CLEANUP_FAILED]
        if untouched:
            self.console.print("\n[red]Failed files (originals left untouched):[/red]")
            for failure in untouched:
                self.console.print(f"  - {escape(str(failure.source))}: "
                                   f"[yellow]{failure.kind}[/yellow] {escape(failure.reason)}")

        if result.cleanup_failures:
            self.console.print("\n[yellow]Converted files whose originals could not be deleted; "
                               "reconcile these manually:[/yellow]")
            for failure in result.cleanup_failures:
                self.console.print(f"  - {escape(str(failure.source))}: {escape(failure.reason)}")
