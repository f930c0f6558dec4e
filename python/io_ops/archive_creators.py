"""
ZIP archive creation with a memory-bounded flush cycle.

The writer streams the scan manifest into a ZIP file. Every so often (see
MemoryGuard) it closes the archive, collects garbage and reopens the same
path in append mode, so long runs over very large trees do not accumulate
handle state.
"""

import gc
import os
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from colored_logger import get_colored_logger
from .file_scanner import FileEntry
from .memory_guard import MemoryGuard

logger = get_colored_logger(__name__)


class ArchiveCreationError(OSError):
    """The archive file could not be created."""


class ArchiveReopenError(OSError):
    """The archive could not be reopened for append during a flush cycle."""


def should_report_progress(current_index: int, total_files: int) -> bool:
    """Report roughly every 5% and on the final file."""
    return (
        current_index % max(1, total_files // 20) == 0
        or current_index == total_files - 1
    )


class ZipArchiveSession:
    """One open ZIP handle bound to a fixed path; can be closed and reopened."""

    def __init__(self, archive_path: Path, compression_level: int = 6):
        self.archive_path = Path(archive_path)
        self.compression_level = compression_level
        self.reopen_count = 0
        self._zipf: Optional[zipfile.ZipFile] = None

    @property
    def is_open(self) -> bool:
        return self._zipf is not None

    def _create_zipfile_instance(self, mode: str) -> zipfile.ZipFile:
        return zipfile.ZipFile(
            self.archive_path,
            mode,
            zipfile.ZIP_DEFLATED,
            compresslevel=self.compression_level,
            allowZip64=True,  # Support large archives
            strict_timestamps=False,  # Clamp pre-1980 mtimes instead of failing
        )

    def open(self) -> None:
        """Create (or truncate) the archive."""
        self._zipf = self._create_zipfile_instance("w")

    def reopen(self) -> None:
        """Open the existing archive for append."""
        self._zipf = self._create_zipfile_instance("a")
        self.reopen_count += 1

    def close(self) -> None:
        if self._zipf is not None:
            zipf, self._zipf = self._zipf, None
            zipf.close()

    def flush(self) -> None:
        """Release the handle, reclaim memory and reacquire it in append mode."""
        self.close()
        gc.collect()
        self.reopen()

    def add(self, file_path: str, archive_name: str, compress: bool = True) -> None:
        if self._zipf is None:
            raise ValueError("Archive session is not open")

        compress_type = zipfile.ZIP_DEFLATED if compress else zipfile.ZIP_STORED
        self._zipf.write(file_path, archive_name, compress_type=compress_type)

    def __enter__(self) -> "ZipArchiveSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


@dataclass
class ArchiveWriteResult:
    archive_path: Path
    added: int = 0
    skipped: int = 0
    flushes: int = 0


class ZipArchiveWriter:
    """Writes a scan manifest into a ZIP archive."""

    def __init__(
        self,
        memory_guard: Optional[MemoryGuard] = None,
        log: Optional[Callable[[str], None]] = None,
        compression_level: int = 6,
    ):
        self.memory_guard = memory_guard or MemoryGuard.from_cap()
        self.compression_level = compression_level
        self._log = log or logger.info

    @staticmethod
    def resolve_file_path(entry_path: str, base_dir: str) -> str:
        if base_dir and not os.path.isabs(entry_path):
            return os.path.join(base_dir, entry_path.lstrip(os.sep))
        return entry_path

    @staticmethod
    def archive_name_for(file_path: str, base_dir: str, use_relative_names: bool) -> str:
        basename = os.path.basename(file_path)
        if not (use_relative_names and base_dir):
            return basename

        if not file_path.startswith(base_dir):
            return basename

        relative = file_path[len(base_dir):].lstrip(os.sep)
        return relative or basename

    def _flush(self, session: ZipArchiveSession, iteration: int, usage: int) -> None:
        self._log(
            f"Memory check at iteration {iteration}: usage={usage} bytes, "
            f"threshold={self.memory_guard.threshold_bytes} bytes. "
            "Flushing zip. Please wait.."
        )
        try:
            session.flush()
        except (OSError, zipfile.BadZipFile) as e:
            self._log(f"Unable to reopen zip archive for append: {session.archive_path}")
            raise ArchiveReopenError(
                f"Unable to reopen {session.archive_path} for append: {e}"
            ) from e

    def write(
        self,
        entries: Sequence[FileEntry],
        archive_path: Path,
        base_dir: str = "",
        use_relative_names: bool = True,
        compress: bool = True,
    ) -> ArchiveWriteResult:
        """
        Add every readable manifest entry to the archive at archive_path.

        Unreadable, vanished or unaddable files are counted as skipped.

        Raises:
            ArchiveCreationError: If the archive cannot be created.
            ArchiveReopenError: If a flush cycle cannot reopen the archive. Entries
                written before the last successful close remain intact.
        """
        base_dir = base_dir.rstrip(os.sep) if base_dir else ""
        session = ZipArchiveSession(archive_path, self.compression_level)
        result = ArchiveWriteResult(archive_path=Path(archive_path))

        self._log(f"ZIP process started. Target zip: {archive_path}")
        self._log(f"ZIP compression is set to {'TRUE' if compress else 'FALSE'}")

        try:
            session.open()
        except OSError as e:
            self._log(f"Failed to create zip archive at {archive_path}")
            raise ArchiveCreationError(f"Cannot create {archive_path}: {e}") from e

        total = len(entries)
        try:
            for iteration, entry in enumerate(entries, 1):
                file_path = self.resolve_file_path(entry.path, base_dir)

                if not entry.readable or not os.access(file_path, os.R_OK):
                    self._log(f"Unreadable or missing file skipped: {file_path}")
                    result.skipped += 1
                    continue

                archive_name = self.archive_name_for(
                    file_path, base_dir, use_relative_names
                )
                self._log(f"Adding file: {archive_name}")

                try:
                    session.add(file_path, archive_name, compress)
                except (OSError, ValueError, zipfile.BadZipFile) as e:
                    # ValueError covers unencodable names (UnicodeEncodeError)
                    self._log(f"Failed to add file to zip: {file_path} as {archive_name} ({e})")
                    result.skipped += 1
                    continue

                result.added += 1

                usage = self.memory_guard.current_usage()
                if self.memory_guard.should_flush(iteration, usage):
                    self._flush(session, iteration, usage)
                    result.flushes += 1

                if should_report_progress(iteration - 1, total):
                    logger.progress(
                        "Archiving progress: %d/%d files (%.1f%%)",
                        iteration,
                        total,
                        iteration / total * 100,
                    )
        finally:
            session.close()
            gc.collect()

        self._log(
            f"ZIP process completed. Added: {result.added}; Skipped: {result.skipped}"
        )
        return result
