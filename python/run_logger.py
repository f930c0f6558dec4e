"""
Per-run log file for backup runs.

Every line is appended to the run's log file as ``[YYYY-MM-DD HH:MM:SS] message``
and mirrored to the console logger. Failing to write the file never stops a
backup; the console copy is still emitted.
"""

import logging
import re
import tempfile
import time
from pathlib import Path
from typing import List, Optional

from colored_logger import get_colored_logger

try:
    import fcntl
except ImportError:  # Windows: no advisory locking
    fcntl = None

logger = get_colored_logger(__name__)

DEFAULT_LOG_DIRNAME = "log"


class RunLogger:
    """Append-only, timestamped log sink for one backup run."""

    def __init__(self, log_file: Path, console_name: str = "backup.run"):
        self.log_file = Path(log_file)
        self.lines: List[str] = []
        self._console = get_colored_logger(console_name)

    @property
    def log_file_name(self) -> str:
        return self.log_file.name

    @classmethod
    def create(
        cls,
        log_location: str = "",
        custom_name: Optional[str] = None,
        epoch: Optional[int] = None,
    ) -> "RunLogger":
        """
        Pick the log file for a run.

        The file lives in log_location (``./log`` by default), created on demand.
        If the directory cannot be created the system temp directory is used.
        """
        epoch = int(time.time()) if epoch is None else epoch
        safe_name = re.sub(r"[<>:\"/\\|?*]", "_", custom_name or "").strip()
        file_name = f"{safe_name}_{epoch}.txt" if safe_name else f"Log_backup_{epoch}.txt"

        location = Path(log_location) if log_location else Path.cwd() / DEFAULT_LOG_DIRNAME
        try:
            location.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Cannot create log directory %s: %s", location, e)
            return cls(Path(tempfile.gettempdir()) / f"log_file_{epoch}.txt")

        return cls(location / file_name)

    @staticmethod
    def format_line(message: str, timestamp: Optional[float] = None) -> str:
        stamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(timestamp))
        return f"[{stamp}] {message}\n"

    def _append(self, line: str) -> None:
        try:
            # Undecodable file names arrive surrogate-escaped
            with open(
                self.log_file, "a", encoding="utf-8", errors="backslashreplace"
            ) as f:
                if fcntl is not None:
                    fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                try:
                    f.write(line)
                    f.flush()
                finally:
                    if fcntl is not None:
                        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except (OSError, ValueError) as e:
            logger.debug("Failed to write log file %s: %s", self.log_file, e)

    def write(self, message: str, level: int = logging.INFO) -> None:
        line = self.format_line(message)
        self.lines.append(line)
        self._append(line)
        self._console.log(level, "%s", message)

    def warning(self, message: str) -> None:
        self.write(message, logging.WARNING)

    def error(self, message: str) -> None:
        self.write(message, logging.ERROR)
