"""
Directory scanning and filtering for backup runs.

This module walks a target directory, applies the directory, dotfile,
extension and modification-date filters, and produces the manifest of
files to archive in a deterministic order.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence

from colored_logger import get_colored_logger
from .date_filter import DateFilterMode, DateRange

logger = get_colored_logger(__name__)


class DirectoryError(OSError):
    """The scan root (or a directory below it) cannot be read."""


@dataclass(frozen=True)
class FileEntry:
    path: str
    readable: bool


@dataclass
class ScanCounters:
    """Container for filter statistics accumulated during one scan."""

    excluded_dirs: int = 0
    excluded_files: int = 0


@dataclass(frozen=True)
class ScanFilters:
    include_dot_files: bool = False
    exclude_dirs: Sequence[str] = ()
    exclude_extensions: Sequence[str] = ()
    include_extensions: Sequence[str] = ()
    date_range: DateRange = field(default_factory=DateRange)


def extension_of(name: str) -> str:
    """Lowercase extension without the dot; "" when the name has none."""
    return os.path.splitext(name)[1][1:].lower()


class DirectoryScanner:
    """Scans a directory tree and returns the filtered, sorted manifest."""

    def __init__(
        self,
        filters: Optional[ScanFilters] = None,
        relative: bool = True,
        log: Optional[Callable[[str], None]] = None,
    ):
        self.filters = filters or ScanFilters()
        self.relative = relative
        self.counters = ScanCounters()
        self._log = log or logger.info

    def _check_root(self, root: str) -> Path:
        root = root.rstrip(os.sep) if root != os.sep else root
        if not root:
            raise DirectoryError("Empty directory path provided")

        root_path = Path(root)
        if not root_path.is_dir() or not os.access(root_path, os.R_OK):
            raise DirectoryError(f"Directory not found or not readable: {root}")
        return root_path

    def _walk(self, directory: Path) -> Iterator[Path]:
        """Yield every entry below directory, parents before their children."""
        try:
            children = list(directory.iterdir())
        except OSError as e:
            raise DirectoryError(f"Cannot list directory {directory}: {e}") from e

        for child in children:
            if self._is_excluded_dir(child):
                continue

            yield child

            if child.is_dir() and not child.is_symlink():
                yield from self._walk(child)

    def _is_excluded_dir(self, path: Path) -> bool:
        full_path = str(path)
        for pattern in self.filters.exclude_dirs:
            if pattern and pattern in full_path:
                self._log(f"{full_path} excluded.")
                self.counters.excluded_dirs += 1
                return True
        return False

    def _passes_extension_filters(self, path: Path) -> bool:
        ext = extension_of(path.name)

        if ext in self.filters.exclude_extensions:
            self._log(f"{path} excluded.")
            self.counters.excluded_files += 1
            return False

        # Only reachable with an empty exclude set; the two are mutually exclusive
        if self.filters.include_extensions and ext not in self.filters.include_extensions:
            self._log(f"File {path} is not included.")
            self.counters.excluded_files += 1
            return False

        return True

    def _passes_date_filter(self, path: Path) -> bool:
        date_range = self.filters.date_range
        if date_range.mode is DateFilterMode.ALL:
            return True

        try:
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            self._log(f"File {path} excluded. Removed during scan")
            self.counters.excluded_files += 1
            return False

        if date_range.contains(mtime):
            return True

        self._log(f"File {path} excluded. Modified {_format_mtime(mtime)}")
        self.counters.excluded_files += 1
        return False

    def _display_path(self, path: Path, root: Path) -> str:
        if self.relative:
            return str(path.relative_to(root))
        return str(path)

    def scan(self, root: str) -> List[FileEntry]:
        """
        Scan root and return the manifest.

        Raises:
            DirectoryError: If root (or any directory below it) cannot be read.
        """
        root_path = self._check_root(root)
        self.counters = ScanCounters()
        results: List[FileEntry] = []

        try:
            for path in self._walk(root_path):
                if not path.is_file():
                    continue

                if not self.filters.include_dot_files and path.name.startswith("."):
                    continue

                if not self._passes_extension_filters(path):
                    continue

                if not self._passes_date_filter(path):
                    continue

                readable = os.access(path, os.R_OK)
                if not readable:
                    self._log(f"Unreadable file detected: {path}")

                results.append(FileEntry(self._display_path(path, root_path), readable))
        except OSError as e:
            self._log(f"Exception during directory scan: {e}")
            raise

        results.sort(key=lambda entry: (entry.path.lower(), entry.path))

        self._log(
            f"Excluded dir:{self.counters.excluded_dirs}. "
            f"Excluded files:{self.counters.excluded_files}"
        )
        return results


def _format_mtime(mtime: float) -> str:
    return datetime.fromtimestamp(mtime).strftime("%Y-%m-%d")
