"""
Test suite for the dirbackup tool.

Test Categories:
- Unit tests: size parsing, parameter validation, date ranges, memory guard
- Component tests: directory scanning and ZIP writing against real temp trees
- Integration tests: full backup runs through BackupManager and the CLI
"""
