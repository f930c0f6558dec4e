"""
Archive integrity verification.

Used after a backup run to confirm the ZIP written across several
open/close sessions is still a single readable archive.
"""

import zipfile
from pathlib import Path
from typing import Any, Dict

from colored_logger import get_colored_logger

logger = get_colored_logger(__name__)


class ZipArchiveVerifier:
    """Verifies ZIP archive integrity."""

    def verify_integrity(self, archive_path: str) -> bool:
        """Verify ZIP archive integrity."""
        try:
            with zipfile.ZipFile(archive_path, "r") as zipf:
                bad_file = zipf.testzip()
                if bad_file is not None:
                    logger.debug("ZIP integrity check failed on file: %s", bad_file)
                    return False
                return True
        except (OSError, zipfile.BadZipFile) as e:
            logger.debug("ZIP integrity verification failed: %s", e)
            return False

    def count_entries(self, archive_path: str) -> int:
        with zipfile.ZipFile(archive_path, "r") as zipf:
            return len(zipf.infolist())

    def get_archive_info(self, archive_path: str) -> Dict[str, Any]:
        """Get size and entry statistics for a ZIP archive."""
        path = Path(archive_path)
        if not path.exists():
            raise FileNotFoundError(f"Archive not found: {archive_path}")

        with zipfile.ZipFile(path, "r") as zipf:
            file_list = zipf.infolist()

        compressed = sum(f.compress_size for f in file_list)
        uncompressed = sum(f.file_size for f in file_list)
        return {
            "path": str(path),
            "size_bytes": path.stat().st_size,
            "file_count": len(file_list),
            "compressed_size": compressed,
            "uncompressed_size": uncompressed,
            "compression_ratio": (
                (1 - compressed / uncompressed) * 100 if uncompressed > 0 else 0
            ),
        }
