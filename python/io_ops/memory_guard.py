"""
Memory accounting for the archive flush cycle.

The archive writer asks a MemoryGuard after every added file whether the
open archive handle should be closed and reopened. That happens every
FLUSH_INTERVAL files, or as soon as the process resident set reaches
SAFETY_FACTOR of the memory target.
"""

from typing import Callable, Optional

import psutil

from colored_logger import get_colored_logger
from .size_parser import parse_byte_size

logger = get_colored_logger(__name__)


class InvalidMemoryCapError(ValueError):
    """Configured memory cap is unparseable, non-positive or above the platform limit."""


def process_memory_usage() -> int:
    """Resident set size of the current process in bytes."""
    return psutil.Process().memory_info().rss


class MemoryGuard:
    SAFETY_FACTOR = 0.8
    DEFAULT_CAP = "256M"
    FLUSH_INTERVAL = 500

    def __init__(
        self,
        target_bytes: int,
        usage_probe: Optional[Callable[[], int]] = None,
        flush_interval: int = FLUSH_INTERVAL,
    ):
        self.target_bytes = target_bytes
        self.threshold_bytes = int(target_bytes * self.SAFETY_FACTOR)
        self.flush_interval = max(1, flush_interval)
        self._usage_probe = usage_probe or process_memory_usage

    @staticmethod
    def platform_limit() -> Optional[int]:
        """Soft address-space limit of this process, or None when unlimited/unknown."""
        rlimit_as = getattr(psutil, "RLIMIT_AS", None)
        if rlimit_as is None:
            return None

        try:
            soft, _hard = psutil.Process().rlimit(rlimit_as)
        except (psutil.Error, OSError) as e:
            logger.debug("Could not read address-space limit: %s", e)
            return None

        if soft == psutil.RLIM_INFINITY or soft <= 0:
            return None
        return soft

    @classmethod
    def from_cap(
        cls,
        memory_cap: str = "",
        usage_probe: Optional[Callable[[], int]] = None,
        flush_interval: int = FLUSH_INTERVAL,
    ) -> "MemoryGuard":
        """
        Build a guard from a configured cap string such as "512M".

        Without a cap the platform limit is used, or DEFAULT_CAP when the
        platform imposes none.

        Raises:
            InvalidMemoryCapError: If the cap is not positive or exceeds the platform limit.
        """
        limit = cls.platform_limit()

        if memory_cap:
            target = parse_byte_size(memory_cap)
            if target <= 0 or (limit is not None and target > limit):
                raise InvalidMemoryCapError(f"memoryCap {memory_cap} is invalid")
        elif limit is not None:
            target = limit
        else:
            target = parse_byte_size(cls.DEFAULT_CAP)

        logger.debug(
            "Memory target %d bytes, flush threshold %d bytes",
            target,
            int(target * cls.SAFETY_FACTOR),
        )
        return cls(target, usage_probe=usage_probe, flush_interval=flush_interval)

    def current_usage(self) -> int:
        return self._usage_probe()

    def should_flush(self, count: int, usage: int) -> bool:
        return count % self.flush_interval == 0 or usage >= self.threshold_bytes
