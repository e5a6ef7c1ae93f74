"""
Durable output writes and safe deletion of converted originals.
"""

import errno
import os
import tempfile
from pathlib import Path
from typing import Optional

from .constants import PARTIAL_PREFIX, PARTIAL_SUFFIX, get_logger
from .errors import CleanupFailed, WriteFailed

# errno values meaning the filesystem cannot hard link
LINK_UNSUPPORTED = {errno.EPERM, errno.ENOTSUP, errno.EOPNOTSUPP}


class FileOperations:
    """Filesystem side effects of a job, with dry-run support."""

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run
        self.logger = get_logger("photoavif.file_operations")

    def write_output(self, data: bytes, dest: Path) -> None:
        """Write bytes to dest through a synced temp file in the same directory.

        The final name only appears once the content is complete and flushed
        to disk, and never replaces an existing file; on any failure nothing
        is left behind.
        """
        if self.dry_run:
            self.logger.info(f"DRY RUN: Would write {dest}")
            return

        temp_path: Optional[Path] = None
        try:
            fd, temp_name = tempfile.mkstemp(dir=dest.parent, prefix=PARTIAL_PREFIX,
                                             suffix=PARTIAL_SUFFIX)
            temp_path = Path(temp_name)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())

            # Verify the write before it becomes visible
            if temp_path.stat().st_size != len(data):
                raise OSError(f"Size mismatch after write: {temp_path}")

            self._publish(temp_path, dest)

        except OSError as e:
            raise WriteFailed(f"could not write {dest.name}: {e}") from e
        finally:
            if temp_path is not None:
                self.delete_safely(temp_path)

    def _publish(self, temp_path: Path, dest: Path) -> None:
        """Give the synced temp file its final name without clobbering anything.

        The hard link fails if dest already exists, whoever created it. The temp
        name is removed by the caller afterwards.
        """
        try:
            os.link(temp_path, dest)
        except OSError as e:
            if e.errno not in LINK_UNSUPPORTED:
                raise
            # Filesystem without hard links
            self.logger.debug(f"Hard links unsupported in {dest.parent}, renaming instead")
            if dest.exists():
                raise FileExistsError(errno.EEXIST, "Output appeared during conversion", str(dest))
            os.replace(temp_path, dest)

        self.sync_directory(dest.parent)

    def sync_directory(self, directory: Path) -> None:
        """Flush a directory entry change to disk where the platform allows it."""
        if os.name != "posix":
            return
        try:
            fd = os.open(directory, os.O_RDONLY)
        except OSError as e:
            self.logger.warning(f"Could not open {directory} to sync it: {e}")
            return
        try:
            os.fsync(fd)
        except OSError as e:
            self.logger.warning(f"Could not sync directory {directory}: {e}")
        finally:
            os.close(fd)

    def delete_original(self, source: Path) -> None:
        """Remove a source file whose converted output is already on disk."""
        if self.dry_run:
            self.logger.info(f"DRY RUN: Would delete {source}")
            return

        try:
            source.unlink()
        except OSError as e:
            raise CleanupFailed(f"converted, but could not delete original: {e}") from e

        if source.exists():
            raise CleanupFailed("converted, but original still exists after delete")

    def delete_safely(self, *files_to_delete: Optional[Path]) -> bool:
        """Unlink the file path(s) provided. Return all(success)."""
        success = True
        for file_to_delete in files_to_delete:
            if file_to_delete and file_to_delete.exists():
                try:
                    file_to_delete.unlink()
                except OSError as e:
                    self.logger.warning(f"Could not remove {file_to_delete}: {e}")
                    success = False

        return success
