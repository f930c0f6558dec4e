from .size_parser import parse_byte_size
from .date_filter import DateFilterMode, DateRange, parse_date

# Scanning components
from .file_scanner import (
    DirectoryError,
    DirectoryScanner,
    FileEntry,
    ScanCounters,
    ScanFilters,
    extension_of,
)

# Archive writing components
from .memory_guard import InvalidMemoryCapError, MemoryGuard
from .archive_creators import (
    ArchiveCreationError,
    ArchiveReopenError,
    ArchiveWriteResult,
    ZipArchiveSession,
    ZipArchiveWriter,
)
from .archive_verifier import ZipArchiveVerifier
from .path_utils import ArchivePathGenerator

# Run orchestration
from .archive_manager import (
    BackupManager,
    BackupResult,
    BackupStage,
    create_backup,
)

__all__ = [
    # Sizes and dates
    "parse_byte_size",
    "DateFilterMode",
    "DateRange",
    "parse_date",
    # File scanning components
    "DirectoryError",
    "DirectoryScanner",
    "FileEntry",
    "ScanCounters",
    "ScanFilters",
    "extension_of",
    # Archive writing components
    "InvalidMemoryCapError",
    "MemoryGuard",
    "ArchiveCreationError",
    "ArchiveReopenError",
    "ArchiveWriteResult",
    "ZipArchiveSession",
    "ZipArchiveWriter",
    "ZipArchiveVerifier",
    "ArchivePathGenerator",
    # Orchestration
    "BackupManager",
    "BackupResult",
    "BackupStage",
    "create_backup",
]
