"""
Path utilities for archive operations.

This module resolves where an archive is written and how it is named.
"""

import os
import re
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional

from colored_logger import get_colored_logger

logger = get_colored_logger(__name__)


class ArchivePathGenerator:
    """Resolves archive destinations and builds timestamped archive names."""

    EXTENSION = "zip"

    def sanitize_name(self, name: str, max_length: int = 200) -> str:
        """Strip path separators and reserved characters from a custom name."""
        name = re.sub(r'[<>:"/\\|?*\x00-\x1f]', "_", name or "")
        name = name.strip().strip(".")
        return name[:max_length]

    def generate_timestamp(self, now: Optional[datetime] = None) -> str:
        return (now or datetime.now()).strftime("%Y%m%d_%H%M%S")

    def resolve_destination(self, destination: str) -> Path:
        """
        Return a usable directory for the archive.

        An empty destination means the current working directory. A missing
        one is created; if that fails the system temporary directory is used.
        """
        destination = (destination or "").rstrip(os.sep)
        if not destination:
            return Path.cwd()

        path = Path(destination)
        if path.is_dir():
            return path

        try:
            path.mkdir(parents=True, exist_ok=True)
            return path
        except OSError as e:
            fallback = Path(tempfile.gettempdir())
            logger.warning(
                "Cannot create destination %s (%s), using %s", destination, e, fallback
            )
            return fallback

    def build_archive_name(
        self,
        custom_name: Optional[str] = None,
        replace_existing: bool = False,
        now: Optional[datetime] = None,
    ) -> str:
        """
        Build the archive file name.

        Replacing runs reuse a stable name (the custom name, when given) so the
        previous archive can be overwritten; other runs prefix the timestamp.
        """
        timestamp = self.generate_timestamp(now)
        safe_name = self.sanitize_name(custom_name) if custom_name else ""

        if replace_existing:
            stem = safe_name or timestamp
        else:
            stem = f"{timestamp}_{safe_name}" if safe_name else timestamp

        return f"{stem}.{self.EXTENSION}"

    def build_archive_path(
        self,
        destination: str,
        custom_name: Optional[str] = None,
        replace_existing: bool = False,
        now: Optional[datetime] = None,
    ) -> Path:
        directory = self.resolve_destination(destination)
        return directory / self.build_archive_name(custom_name, replace_existing, now)

    @staticmethod
    def remove_existing(archive_path: Path) -> bool:
        """Delete a same-named archive; returns True if one was removed."""
        if not archive_path.exists():
            return False
        archive_path.unlink()
        return True
