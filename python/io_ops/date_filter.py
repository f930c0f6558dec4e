"""
Modification-date filtering for directory scans.

Before/after bounds come in as free-form date strings. They are parsed once,
swapped if given in the wrong order, and reduced to a DateFilterMode that the
scanner consults for every candidate file.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional

from dateutil import parser as date_parser

from colored_logger import get_colored_logger

logger = get_colored_logger(__name__)


class DateFilterMode(Enum):
    ALL = "All"
    UPPER_BOUND_ONLY = "Upperbound"
    LOWER_BOUND_ONLY = "Lowerbound"
    BETWEEN = "Between"


def parse_date(value: Optional[str]) -> Optional[float]:
    """Parse a date string as local time into epoch seconds; empty means absent."""
    if not value or not value.strip():
        return None

    try:
        return date_parser.parse(value.strip()).timestamp()
    except (ValueError, OverflowError) as e:
        logger.warning("Ignoring unparseable date %r: %s", value, e)
        return None


@dataclass(frozen=True)
class DateRange:
    before: Optional[float] = None
    after: Optional[float] = None

    @classmethod
    def from_strings(cls, before: str = "", after: str = "") -> "DateRange":
        before_ts = parse_date(before)
        after_ts = parse_date(after)

        # Reversed bounds would filter everything out
        if before_ts is not None and after_ts is not None and before_ts < after_ts:
            before_ts, after_ts = after_ts, before_ts

        return cls(before=before_ts, after=after_ts)

    @property
    def mode(self) -> DateFilterMode:
        if self.before is None and self.after is not None:
            return DateFilterMode.LOWER_BOUND_ONLY
        if self.after is None and self.before is not None:
            return DateFilterMode.UPPER_BOUND_ONLY
        if self.before is not None and self.after is not None:
            return DateFilterMode.BETWEEN
        return DateFilterMode.ALL

    def contains(self, mtime: float) -> bool:
        mode = self.mode
        if mode is DateFilterMode.UPPER_BOUND_ONLY:
            return mtime <= self.before
        if mode is DateFilterMode.LOWER_BOUND_ONLY:
            return self.after <= mtime
        if mode is DateFilterMode.BETWEEN:
            return self.after <= mtime <= self.before
        return True

    def describe(self) -> List[str]:
        lines = [f"Date mode is set to {self.mode.value}"]
        if self.before is not None:
            lines.append(f"Before date is set to : [{_format_day(self.before)}]")
        if self.after is not None:
            lines.append(f"After date is set to : [{_format_day(self.after)}]")
        return lines


def _format_day(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d")
