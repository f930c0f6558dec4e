#!/usr/bin/env python3
"""
Directory Backup CLI Tool

Builds a filtered ZIP backup of a directory tree.

Usage:
    python3 cli_backup.py run --target /srv/www --destination /backups
    python3 cli_backup.py run --config backup.json --exclude-ext jpg,png
    python3 cli_backup.py verify /backups/20240101_120000.zip
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from colored_logger import setup_colored_logging, get_colored_logger
from io_ops.archive_manager import BackupManager
from io_ops.archive_verifier import ZipArchiveVerifier
from settings import load_parameters_file

logger = get_colored_logger(__name__)


def _parse_csv(csv_str: str) -> List[str]:
    """
    Splits a comma-separated string into a list of non-empty items, stripping whitespace.
    """
    if not csv_str:
        return []
    return [item.strip() for item in csv_str.split(",") if item.strip()]


class BackupCLI:
    """Command-line interface for directory backups."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="Create filtered, memory-bounded ZIP backups of a directory",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Back up a directory into /backups
  python3 cli_backup.py run --target /srv/www --destination /backups

  # Use a JSON parameter file, skipping images
  python3 cli_backup.py run --config backup.json --exclude-ext jpg,png

  # Only files modified during the first half of 2024
  python3 cli_backup.py run --target ~/docs --after 2024-01-01 --before 2024-06-30

  # Verify an archive
  python3 cli_backup.py verify /backups/20240101_120000.zip
            """,
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable debug output"
        )

        subparsers = parser.add_subparsers(dest="command", help="Available commands")

        run_parser = subparsers.add_parser("run", help="Run a backup")
        run_parser.add_argument("--config", "-c", help="JSON parameter file")
        run_parser.add_argument("--target", "-t", help="Directory to back up")
        run_parser.add_argument(
            "--destination", "-d", help="Directory for the archive (default: cwd)"
        )
        run_parser.add_argument("--name", "-n", help="Custom archive name")
        run_parser.add_argument(
            "--replace",
            action="store_true",
            default=None,
            help="Overwrite an existing archive with the same name",
        )
        run_parser.add_argument(
            "--no-compression",
            dest="use_compression",
            action="store_false",
            default=None,
            help="Store files without compression",
        )
        run_parser.add_argument(
            "--include-dotfiles",
            action="store_true",
            default=None,
            help="Include files whose name starts with a dot",
        )
        run_parser.add_argument(
            "--exclude-dir",
            action="append",
            default=[],
            help="Skip paths containing this text (repeatable, case-sensitive)",
        )
        run_parser.add_argument(
            "--exclude-ext", default="", help="Comma-separated extensions to skip"
        )
        run_parser.add_argument(
            "--include-ext", default="", help="Comma-separated extensions to keep"
        )
        run_parser.add_argument("--before", help="Only files modified on/before this date")
        run_parser.add_argument("--after", help="Only files modified on/after this date")
        run_parser.add_argument(
            "--memory-cap", help='Memory budget for archiving, e.g. "512M"'
        )
        run_parser.add_argument("--log-dir", help="Directory for the run log")

        verify_parser = subparsers.add_parser("verify", help="Verify archive integrity")
        verify_parser.add_argument("archive_path", help="Path to the archive to verify")

        return parser

    def build_parameters(self, args: argparse.Namespace) -> Dict[str, Any]:
        """Merge the optional parameter file with command-line overrides."""
        params: Dict[str, Any] = {}
        if args.config:
            params.update(load_parameters_file(args.config))

        overrides = {
            "backupTargetdirectory": args.target,
            "zipSaveLocation": args.destination,
            "customZipName": args.name,
            "replace": args.replace,
            "useCompression": args.use_compression,
            "includeDotFile": args.include_dotfiles,
            "beforeDate": args.before,
            "afterDate": args.after,
            "memoryCap": args.memory_cap,
            "logLocation": args.log_dir,
        }
        params.update({key: value for key, value in overrides.items() if value is not None})

        if args.exclude_dir:
            params["excludeDir"] = list(args.exclude_dir)
        if args.exclude_ext:
            params["excludeExtensions"] = _parse_csv(args.exclude_ext)
        if args.include_ext:
            params["includeExtensions"] = _parse_csv(args.include_ext)

        return params

    def run(self, args: Optional[list] = None) -> int:
        """Run the CLI with the given arguments."""
        parsed_args = self.parser.parse_args(args)

        if parsed_args.verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            if parsed_args.command == "run":
                return self._handle_run(parsed_args)
            elif parsed_args.command == "verify":
                return self._handle_verify(parsed_args)
            else:
                logger.error("Unknown command: %s", parsed_args.command)
                return 1

        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130

    def _handle_run(self, args) -> int:
        """Handle the 'run' command."""
        params = self.build_parameters(args)
        if not params.get("backupTargetdirectory"):
            logger.error("No target directory given (use --target or a config file)")
            return 1

        manager = BackupManager.from_parameters(params)
        result = manager.start() if not manager.process_started else manager.result

        if result.success:
            logger.success("Archive created: %s", result.archive_path)
            return 0

        logger.error("Backup failed at %s: %s", result.stage.value, result.message)
        logger.info("See log file: %s", result.log_file)
        return 1

    def _handle_verify(self, args) -> int:
        """Handle the 'verify' command."""
        archive_path = Path(args.archive_path)
        if not archive_path.exists():
            logger.error("Archive file does not exist: %s", archive_path)
            return 1

        verifier = ZipArchiveVerifier()
        if verifier.verify_integrity(str(archive_path)):
            info = verifier.get_archive_info(str(archive_path))
            logger.success(
                "Archive integrity verified: %s (%d files)", archive_path, info["file_count"]
            )
            return 0

        logger.error("Archive integrity check failed: %s", archive_path)
        return 1


def main():
    """Main entry point for the CLI."""
    setup_colored_logging(level=logging.INFO)

    cli = BackupCLI()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
