"""Progress tracking context for photoavif batches."""

from typing import Optional
from rich.markup import escape
from rich.progress import Progress, TaskID

from .job import JobResult


class ProgressContext:
    """Wraps an optional rich progress task advanced once per finished job."""

    def __init__(self, progress: Optional[Progress] = None, task: Optional[TaskID] = None):
        self.progress = progress
        self.task = task

    @property
    def is_active(self) -> bool:
        return self.progress is not None and self.task is not None

    def job_finished(self, result: JobResult) -> None:
        """Show the finished job and advance by one."""
        if not self.is_active:
            return

        if result.ok:
            description = f"Converted: {escape(result.source.name)}"
        else:
            description = f"[red]{result.error}[/red]: {escape(result.source.name)}"
        self.progress.update(self.task, description=description)
        self.progress.advance(self.task, 1)
