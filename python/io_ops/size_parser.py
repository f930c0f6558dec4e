"""
Human-readable byte sizes ("256M", "1G", "512k") to byte counts.
"""

import re

_LEADING_INT = re.compile(r"^[+-]?\d+")

UNIT_MULTIPLIERS = {
    "g": 1024 * 1024 * 1024,
    "m": 1024 * 1024,
    "k": 1024,
}


def _leading_int(value: str) -> int:
    match = _LEADING_INT.match(value)
    return int(match.group(0)) if match else 0


def parse_byte_size(value: str) -> int:
    """
    Convert a size string to bytes.

    The last character selects the unit (g, m or k, case-insensitive); any
    other suffix, or none, means the leading integer is already a byte count.
    A malformed numeric prefix counts as zero.
    """
    value = (value or "").strip()
    if not value:
        return 0

    multiplier = UNIT_MULTIPLIERS.get(value[-1].lower(), 1)
    return _leading_int(value) * multiplier
