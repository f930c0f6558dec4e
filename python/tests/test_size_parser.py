"""
Tests for human-readable byte size parsing.
"""

import unittest

from io_ops.size_parser import parse_byte_size


class TestParseByteSize(unittest.TestCase):
    """Byte size strings should convert to exact byte counts."""

    def test_unit_suffixes(self):
        self.assertEqual(parse_byte_size("256M"), 268435456)
        self.assertEqual(parse_byte_size("1G"), 1073741824)
        self.assertEqual(parse_byte_size("512k"), 524288)

    def test_suffix_is_case_insensitive(self):
        self.assertEqual(parse_byte_size("2m"), parse_byte_size("2M"))
        self.assertEqual(parse_byte_size("1g"), 1024**3)

    def test_no_suffix_means_bytes(self):
        self.assertEqual(parse_byte_size("100"), 100)

    def test_unknown_suffix_uses_leading_number(self):
        self.assertEqual(parse_byte_size("10X"), 10)
        self.assertEqual(parse_byte_size("64b"), 64)

    def test_whitespace_is_trimmed(self):
        self.assertEqual(parse_byte_size("  8M \n"), 8 * 1024 * 1024)

    def test_malformed_prefix_parses_as_zero(self):
        self.assertEqual(parse_byte_size("abc"), 0)
        self.assertEqual(parse_byte_size("M"), 0)
        self.assertEqual(parse_byte_size(""), 0)

    def test_negative_values_are_preserved(self):
        """An "unlimited" marker such as -1 must remain recognisable."""
        self.assertEqual(parse_byte_size("-1"), -1)


if __name__ == "__main__":
    unittest.main()
