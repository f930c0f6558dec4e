"""
Backup Manager - orchestrates one backup run.

A run is a linear sequence of stages:

    VALIDATE -> CHECK_TARGET -> FILTER_SETUP -> SCAN -> CHECK_MANIFEST
             -> ARCHIVE -> REPORT -> DONE

Any fatal condition halts the run at its stage: the cause is written to the
run log and a failed BackupResult is returned. Nothing is retried.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from colored_logger import get_colored_logger
from run_logger import RunLogger
from settings import BackupConfig, validate_parameters

from .archive_creators import (
    ArchiveCreationError,
    ArchiveReopenError,
    ZipArchiveWriter,
)
from .archive_verifier import ZipArchiveVerifier
from .date_filter import DateRange
from .file_scanner import DirectoryScanner, FileEntry, ScanFilters
from .memory_guard import InvalidMemoryCapError, MemoryGuard
from .path_utils import ArchivePathGenerator

logger = get_colored_logger(__name__)

BANNER = "dirbackup 1.0"


class BackupStage(Enum):
    VALIDATE = "validate"
    CHECK_TARGET = "check_target"
    FILTER_SETUP = "filter_setup"
    SCAN = "scan"
    CHECK_MANIFEST = "check_manifest"
    ARCHIVE = "archive"
    REPORT = "report"
    DONE = "done"


@dataclass
class BackupResult:
    success: bool = False
    stage: BackupStage = BackupStage.VALIDATE
    message: str = ""
    archive_path: Optional[Path] = None
    log_file: Optional[Path] = None
    scanned: int = 0
    unreadable: int = 0
    added: int = 0
    skipped: int = 0
    flushes: int = 0
    excluded_dirs: int = 0
    excluded_files: int = 0


class BackupHalted(Exception):
    """Raised inside a run to stop it at the current stage."""

    def __init__(self, stage: BackupStage, message: str):
        super().__init__(message)
        self.stage = stage
        self.message = message


class BackupManager:
    """
    Runs the scan-filter-archive pipeline for one validated BackupConfig.

    The manager owns the config and the run log for the duration of the run.
    Components below it raise; only this class decides whether a run halts.
    """

    def __init__(
        self,
        config: BackupConfig,
        run_logger: Optional[RunLogger] = None,
        memory_guard: Optional[MemoryGuard] = None,
    ):
        self.config = config
        self.run_logger = run_logger or RunLogger.create(
            config.log_location, config.custom_name
        )
        self.memory_guard = memory_guard
        self.path_generator = ArchivePathGenerator()
        self.verifier = ZipArchiveVerifier()
        self.process_started = False
        self.result: Optional[BackupResult] = None

    @classmethod
    def from_parameters(
        cls,
        raw: Dict[str, Any],
        run_logger: Optional[RunLogger] = None,
        memory_guard: Optional[MemoryGuard] = None,
    ) -> "BackupManager":
        """Validate a raw parameter bag; runs immediately when autoStart is set."""
        validation = validate_parameters(raw)
        manager = cls(validation.config, run_logger, memory_guard)

        for key in validation.rejected:
            manager.run_logger.warning(f"Param {key} is not supported.")

        if manager.config.auto_start:
            manager.start()
        return manager

    @property
    def log_file(self) -> Path:
        return self.run_logger.log_file

    @property
    def archive_path(self) -> Optional[Path]:
        return self.result.archive_path if self.result else None

    def _log(self, message: str) -> None:
        self.run_logger.write(message)

    def start(self) -> BackupResult:
        """Run the backup once and return its result."""
        if self.process_started:
            self.run_logger.warning("Invalid. Backup Process already started.")
            return self.result

        self.process_started = True
        self.result = BackupResult(log_file=self.log_file)

        try:
            self._run(self.result)
        except BackupHalted as halt:
            self.result.success = False
            self.result.stage = halt.stage
            self.result.message = halt.message
            self.run_logger.error(halt.message)
            self.run_logger.error("Backup Process Stopped...")
            logger.failure("Backup halted at stage %s", halt.stage.value)

        return self.result

    def _run(self, result: BackupResult) -> None:
        started = "started with autoStart" if self.config.auto_start else "started"
        self._log(BANNER)
        self._log("-----------------------------------")
        self._log(f"Backup Process {self.config.custom_name or ''} {started}")

        result.stage = BackupStage.CHECK_TARGET
        self._check_target()

        result.stage = BackupStage.FILTER_SETUP
        filters = self._setup_filters()

        result.stage = BackupStage.SCAN
        manifest = self._scan(filters, result)

        result.stage = BackupStage.CHECK_MANIFEST
        if not manifest:
            raise BackupHalted(
                BackupStage.CHECK_MANIFEST, "Files returned zero. No archive created."
            )

        result.stage = BackupStage.ARCHIVE
        self._archive(manifest, result)

        result.stage = BackupStage.REPORT
        self._report(result)

        result.stage = BackupStage.DONE
        result.success = True
        result.message = "Backup Process Succeeded."

    def _check_target(self) -> None:
        target = self.config.target_directory
        self._log(f"Checking dir {target} ...")
        if not target or not os.path.isdir(target) or not os.access(target, os.R_OK):
            raise BackupHalted(BackupStage.CHECK_TARGET, f"Dir : {target} unreadable")

    def _setup_filters(self) -> ScanFilters:
        config = self.config

        if config.exclude_dirs:
            self._log(f"Exclude Dir count: {len(config.exclude_dirs)}")

        if config.has_conflicting_extension_filters:
            self._log(
                f"Detected exclusion:{len(config.exclude_extensions)} "
                f"inclusion:{len(config.include_extensions)}"
            )
            raise BackupHalted(
                BackupStage.FILTER_SETUP,
                "File extensions exclusion and inclusion cannot be used together.",
            )

        date_range = DateRange.from_strings(config.before_date, config.after_date)
        for line in date_range.describe():
            self._log(line)

        return ScanFilters(
            include_dot_files=config.include_dot_files,
            exclude_dirs=config.exclude_dirs,
            exclude_extensions=config.exclude_extensions,
            include_extensions=config.include_extensions,
            date_range=date_range,
        )

    def _scan(self, filters: ScanFilters, result: BackupResult) -> List[FileEntry]:
        scanner = DirectoryScanner(filters, relative=True, log=self._log)
        try:
            manifest = scanner.scan(self.config.target_directory)
        except OSError as e:
            self._log(f"Top-level exception: {e}")
            raise BackupHalted(
                BackupStage.SCAN,
                "An error occurred while scanning directories. "
                "Check the log file for details.",
            ) from e

        result.scanned = len(manifest)
        result.unreadable = sum(1 for entry in manifest if not entry.readable)
        result.excluded_dirs = scanner.counters.excluded_dirs
        result.excluded_files = scanner.counters.excluded_files

        self._log(f"Total files scanned: {result.scanned}")
        self._log(f"Unreadable files logged: {result.unreadable}")
        return manifest

    def _archive(self, manifest: List[FileEntry], result: BackupResult) -> None:
        config = self.config

        try:
            guard = self.memory_guard or MemoryGuard.from_cap(config.memory_cap)
        except InvalidMemoryCapError as e:
            raise BackupHalted(BackupStage.ARCHIVE, f"Error: {e}.") from e

        archive_path = self.path_generator.build_archive_path(
            config.destination_directory, config.custom_name, config.replace_existing
        )
        self._log(f"Creating Zip with filename {archive_path.name}")

        if config.replace_existing:
            try:
                if self.path_generator.remove_existing(archive_path):
                    self._log("Old File Deleted")
            except OSError as e:
                raise BackupHalted(
                    BackupStage.ARCHIVE, f"Cannot replace {archive_path}: {e}"
                ) from e

        writer = ZipArchiveWriter(guard, log=self._log)
        try:
            written = writer.write(
                manifest,
                archive_path,
                base_dir=config.target_directory,
                use_relative_names=config.use_relative_names,
                compress=config.use_compression,
            )
        except ArchiveCreationError as e:
            raise BackupHalted(
                BackupStage.ARCHIVE, f"Error when zipping files: {e}"
            ) from e
        except ArchiveReopenError as e:
            raise BackupHalted(
                BackupStage.ARCHIVE,
                "Error occurred on append operation. Please check Log for more detail.",
            ) from e

        result.archive_path = written.archive_path
        result.added = written.added
        result.skipped = written.skipped
        result.flushes = written.flushes

    def _report(self, result: BackupResult) -> None:
        archive = str(result.archive_path)
        if not self.verifier.verify_integrity(archive):
            self.run_logger.warning(f"Archive integrity check failed: {result.archive_path}")
        else:
            entries = self.verifier.count_entries(archive)
            self._log(f"Archive entries: {entries}")
            if entries != result.added:
                self.run_logger.warning(
                    f"Archive holds {entries} entries, expected {result.added}"
                )

        self._log("Backup Process Succeeded.")
        self._log(f"ZIP File: {result.archive_path}")
        self._log(f"Log File: {self.log_file}")
        logger.success(
            "Backup complete: %d added, %d skipped, %d flush cycles",
            result.added,
            result.skipped,
            result.flushes,
        )


def create_backup(
    target_directory: str,
    destination_directory: str = "",
    custom_name: Optional[str] = None,
    use_compression: bool = True,
    run_logger: Optional[RunLogger] = None,
) -> BackupResult:
    """
    Back up a directory with no filters applied.

    Args:
        target_directory: Directory to archive
        destination_directory: Where to write the archive (cwd if empty)
        custom_name: Optional name appended to the archive and log file names
        use_compression: Deflate entries when True, store them otherwise
        run_logger: Log sink; one is created under ./log when omitted

    Returns:
        BackupResult for the run
    """
    config = BackupConfig(
        target_directory=target_directory,
        destination_directory=destination_directory,
        custom_name=custom_name,
        use_compression=use_compression,
    )
    return BackupManager(config, run_logger=run_logger).start()
